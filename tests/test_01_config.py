"""
Tests for configuration validation and defaults.

Tests cover:
- AppConfig.from_settings() - all sections
- Defaults class values
- ConfigValidationError on invalid values
- String log level coercion ("DEBUG" -> 4)
- Environment overrides for secrets
- Missing sections use defaults
"""
import pytest

from decible.core.config import (
    AppConfig,
    ConfigValidationError,
    Defaults,
    Settings,
    apply_env_overrides,
    load_settings,
    settings_path,
)

_SECRET_ENV = (
    "DECIBLE_PROVIDER_API_KEY",
    "ELEVENLABS_API_KEY",
    "DECIBLE_PROVIDER_BASE_URL",
    "SUPABASE_URL",
    "SUPABASE_SERVICE_ROLE_KEY",
    "SUPABASE_JWT_SECRET",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in _SECRET_ENV:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestDefaults:
    """Tests for Defaults class values."""

    def test_generation_defaults(self):
        assert Defaults.GENERATION_MAX_TEXT_LENGTH == 5000
        assert Defaults.GENERATION_COST_PER_CHARACTER == 1

    def test_history_defaults(self):
        assert Defaults.HISTORY_DEFAULT_LIMIT == 50
        assert Defaults.HISTORY_MAX_LIMIT == 100

    def test_geo_defaults(self):
        """India is the fallback market."""
        assert Defaults.GEO_HEADER == "x-vercel-ip-country"
        assert Defaults.GEO_DEFAULT_COUNTRY == "IN"

    def test_credit_and_rate_limit_defaults(self):
        assert Defaults.CREDITS_DEFAULT_LIMIT == 20
        assert Defaults.CREDITS_MAX_LIMIT == 100
        assert Defaults.RATE_LIMIT_ENABLED is True
        assert Defaults.BACKEND_PROFILES_TABLE == "user_profiles"
        assert Defaults.BACKEND_TRANSACTIONS_TABLE == "credit_transactions"

    def test_preview_defaults(self):
        assert Defaults.PREVIEW_CACHE_MAX_ITEMS == 100
        assert Defaults.PREVIEW_CACHE_TTL_SECONDS == 0

    def test_logging_defaults(self):
        assert Defaults.LOGGING_LEVEL == 2


class TestAppConfigFromSettings:
    """Tests for AppConfig.from_settings()."""

    def test_empty_settings_use_defaults(self):
        config = Settings(raw={}).get_app_config()
        assert config.provider.base_url == Defaults.PROVIDER_BASE_URL
        assert config.provider.api_key is None
        assert config.backend.url is None
        assert config.backend.storage_bucket == "generations"
        assert config.auth.jwt_audience == "authenticated"
        assert config.geo.default_country == "IN"
        assert config.history.default_limit == 50
        assert config.credits.default_limit == 20
        assert config.rate_limit.enabled is True
        assert config.backend.profiles_table == "user_profiles"
        assert config.logging.level == 2

    def test_sections_are_read(self):
        raw = {
            "provider": {"base_url": "https://tts.example/", "model_id": "m2", "timeout_s": 12},
            "backend": {"url": "https://db.example/", "service_key": "k", "storage_bucket": "audio"},
            "geo": {"header": "CF-IPCountry", "default_country": "us"},
            "generation": {"max_text_length": 1000},
            "history": {"default_limit": 10, "max_limit": 20},
            "credits": {"default_limit": 5, "max_limit": 50},
            "rate_limit": {"enabled": False},
        }
        config = AppConfig.from_settings(Settings(raw=raw))

        assert config.provider.base_url == "https://tts.example"
        assert config.provider.model_id == "m2"
        assert config.provider.timeout_s == 12.0
        assert config.backend.url == "https://db.example"
        assert config.backend.storage_bucket == "audio"
        assert config.geo.header == "cf-ipcountry"
        assert config.geo.default_country == "US"
        assert config.generation.max_text_length == 1000
        assert config.history.max_limit == 20
        assert config.credits.default_limit == 5
        assert config.credits.max_limit == 50
        assert config.rate_limit.enabled is False

    def test_none_section_uses_defaults(self):
        """A YAML key with no body parses as None."""
        config = Settings(raw={"provider": None, "history": None}).get_app_config()
        assert config.provider.model_id == Defaults.PROVIDER_MODEL_ID
        assert config.history.max_limit == 100

    @pytest.mark.parametrize("level_str,expected", [
        ("MINIMAL", 1),
        ("INFO", 2),
        ("verbose", 3),
        ("DEBUG", 4),
        ("3", 3),
        ("nonsense", 2),
    ])
    def test_string_log_level(self, level_str, expected):
        config = Settings(raw={"logging": {"level": level_str}}).get_app_config()
        assert config.logging.level == expected


class TestValidation:
    """ConfigValidationError on out-of-range values."""

    def test_non_positive_timeout_rejected(self):
        with pytest.raises(ConfigValidationError, match="provider.timeout_s"):
            Settings(raw={"provider": {"timeout_s": 0}}).get_app_config()

    def test_non_positive_max_text_length_rejected(self):
        with pytest.raises(ConfigValidationError, match="max_text_length"):
            Settings(raw={"generation": {"max_text_length": -1}}).get_app_config()

    def test_negative_cost_rejected(self):
        with pytest.raises(ConfigValidationError, match="cost_per_character"):
            Settings(raw={"generation": {"cost_per_character": -2}}).get_app_config()

    def test_default_limit_above_max_rejected(self):
        with pytest.raises(ConfigValidationError, match="exceeds"):
            Settings(raw={"history": {"default_limit": 200, "max_limit": 100}}).get_app_config()

    def test_credit_default_above_max_rejected(self):
        with pytest.raises(ConfigValidationError, match="credits.default_limit"):
            Settings(raw={"credits": {"default_limit": 30, "max_limit": 10}}).get_app_config()

    def test_non_positive_credit_limit_rejected(self):
        with pytest.raises(ConfigValidationError, match="credits.max_limit"):
            Settings(raw={"credits": {"max_limit": 0}}).get_app_config()

    def test_empty_profiles_table_rejected(self):
        with pytest.raises(ConfigValidationError, match="profiles_table"):
            Settings(raw={"backend": {"profiles_table": ""}}).get_app_config()

    def test_zero_preview_cache_rejected(self):
        with pytest.raises(ConfigValidationError, match="cache_max_items"):
            Settings(raw={"preview": {"cache_max_items": 0}}).get_app_config()

    def test_bad_country_rejected(self):
        with pytest.raises(ConfigValidationError, match="two-letter"):
            Settings(raw={"geo": {"default_country": "IND"}}).get_app_config()

    def test_empty_bucket_rejected(self):
        with pytest.raises(ConfigValidationError, match="storage_bucket"):
            Settings(raw={"backend": {"storage_bucket": "  "}}).get_app_config()

    def test_log_level_out_of_range(self):
        with pytest.raises(ConfigValidationError, match="logging.level"):
            Settings(raw={"logging": {"level": 7}}).get_app_config()


class TestEnvironmentOverrides:
    """Secrets come from the environment."""

    def test_supabase_variables(self, clean_env):
        clean_env.setenv("SUPABASE_URL", "https://proj.example")
        clean_env.setenv("SUPABASE_SERVICE_ROLE_KEY", "svc")
        clean_env.setenv("SUPABASE_JWT_SECRET", "jwt")

        raw = apply_env_overrides({})
        assert raw["backend"] == {"url": "https://proj.example", "service_key": "svc"}
        assert raw["auth"] == {"jwt_secret": "jwt"}

    def test_decible_key_wins_over_elevenlabs_key(self, clean_env):
        clean_env.setenv("DECIBLE_PROVIDER_API_KEY", "primary")
        clean_env.setenv("ELEVENLABS_API_KEY", "secondary")
        assert apply_env_overrides({})["provider"]["api_key"] == "primary"

    def test_elevenlabs_key_used_alone(self, clean_env):
        clean_env.setenv("ELEVENLABS_API_KEY", "secondary")
        assert apply_env_overrides({})["provider"]["api_key"] == "secondary"

    def test_existing_section_kept(self, clean_env):
        clean_env.setenv("ELEVENLABS_API_KEY", "k")
        raw = apply_env_overrides({"provider": {"model_id": "m"}})
        assert raw["provider"] == {"model_id": "m", "api_key": "k"}

    def test_unset_variables_change_nothing(self, clean_env):
        assert apply_env_overrides({"geo": {"default_country": "US"}}) == {"geo": {"default_country": "US"}}


class TestLoadSettings:
    """YAML loading."""

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(str(tmp_path / "missing.yaml"))

    def test_loads_yaml_and_env(self, tmp_path, clean_env):
        path = tmp_path / "settings.yaml"
        path.write_text("provider:\n  model_id: eleven_turbo_v2\nhistory:\n  default_limit: 25\n", encoding="utf-8")
        clean_env.setenv("DECIBLE_PROVIDER_API_KEY", "from-env")

        settings = load_settings(str(path))
        config = settings.get_app_config()

        assert config.provider.api_key == "from-env"
        assert config.provider.model_id == "eleven_turbo_v2"
        assert config.history.default_limit == 25

    def test_empty_file_is_defaults(self, tmp_path, clean_env):
        path = tmp_path / "settings.yaml"
        path.write_text("", encoding="utf-8")
        assert load_settings(str(path)).raw == {}

    def test_repository_settings_are_valid(self, clean_env):
        config = load_settings("config/settings.yaml").get_app_config()
        assert config.geo.default_country == "IN"
        assert config.generation.max_text_length == 5000
        assert config.credits.default_limit == 20
        assert config.rate_limit.enabled is True
        assert config.backend.transactions_table == "credit_transactions"

    def test_settings_path_env(self, monkeypatch):
        monkeypatch.setenv("DECIBLE_SETTINGS", "/etc/decible.yaml")
        assert settings_path() == "/etc/decible.yaml"


class TestSettingsContainer:
    def test_raw_values_reach_config(self):
        config = Settings(raw={
            "provider": {"api_key": "k"},
            "backend": {"url": "https://db/"},
            "geo": {"header": "X-Country", "default_country": "gb"},
        }).get_app_config()
        assert config.provider.api_key == "k"
        assert config.backend.url == "https://db"
        assert config.geo.header == "x-country"
        assert config.geo.default_country == "GB"

    def test_settings_is_frozen(self):
        settings = Settings(raw={})
        with pytest.raises(Exception):
            settings.raw = {"x": 1}
