"""
Configuration Management for decible.

This module provides centralized configuration handling with:
    - Default values (Defaults class)
    - Dataclass-based configuration objects per section
    - YAML file loading with environment variable overrides
    - Validation with meaningful error messages

Configuration Hierarchy (highest priority first):
    1. Environment variables (SUPABASE_URL, DECIBLE_PROVIDER_API_KEY, etc.)
    2. YAML config file (config/settings.yaml or $DECIBLE_SETTINGS)
    3. Defaults class values

Secrets are never read from the YAML file in production deployments; they
are injected through the environment and land in the same raw dictionary.

Example settings.yaml:
    provider:
      base_url: https://api.elevenlabs.io
      model_id: eleven_monolingual_v1

    backend:
      storage_bucket: generations

    logging:
      level: 2  # NORMAL
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
import os
import yaml


DEFAULT_SETTINGS_PATH = "config/settings.yaml"


class ConfigValidationError(Exception):
    """
    Raised when configuration validation fails.

    This exception is thrown when a configuration value is outside
    acceptable bounds or of the wrong type.
    """
    pass


class Defaults:
    """
    Centralized default configuration values.

    Sections:
        - Provider: speech-synthesis API
        - Backend: REST tables and object storage
        - Auth: access token verification
        - Geo: country header and fallback
        - Generation: request limits and credit cost
        - History: listing limits
        - Credits: transaction paging
        - RateLimit: per-tier generation limits
        - Preview: voice sample cache
        - Logging: log level and formatting
    """

    # ─────────────────────────────────────────────────────────────────────────
    # Speech Provider
    # ─────────────────────────────────────────────────────────────────────────
    PROVIDER_BASE_URL = "https://api.elevenlabs.io"
    PROVIDER_MODEL_ID = "eleven_monolingual_v1"
    PROVIDER_TIMEOUT_S = 60.0

    # ─────────────────────────────────────────────────────────────────────────
    # Backend-as-a-service
    # ─────────────────────────────────────────────────────────────────────────
    BACKEND_STORAGE_BUCKET = "generations"
    BACKEND_HISTORY_TABLE = "generation_history"
    BACKEND_PROFILES_TABLE = "user_profiles"
    BACKEND_TRANSACTIONS_TABLE = "credit_transactions"
    BACKEND_TIMEOUT_S = 10.0

    # ─────────────────────────────────────────────────────────────────────────
    # Auth
    # ─────────────────────────────────────────────────────────────────────────
    AUTH_JWT_AUDIENCE = "authenticated"
    AUTH_JWT_ALGORITHM = "HS256"

    # ─────────────────────────────────────────────────────────────────────────
    # Geo
    # ─────────────────────────────────────────────────────────────────────────
    GEO_HEADER = "x-vercel-ip-country"
    GEO_DEFAULT_COUNTRY = "IN"

    # ─────────────────────────────────────────────────────────────────────────
    # Generation
    # ─────────────────────────────────────────────────────────────────────────
    GENERATION_MAX_TEXT_LENGTH = 5000   # Characters per request
    GENERATION_COST_PER_CHARACTER = 1   # Credits per character

    # ─────────────────────────────────────────────────────────────────────────
    # History
    # ─────────────────────────────────────────────────────────────────────────
    HISTORY_DEFAULT_LIMIT = 50
    HISTORY_MAX_LIMIT = 100

    # ─────────────────────────────────────────────────────────────────────────
    # Credits
    # ─────────────────────────────────────────────────────────────────────────
    CREDITS_DEFAULT_LIMIT = 20          # Transactions per page
    CREDITS_MAX_LIMIT = 100

    # ─────────────────────────────────────────────────────────────────────────
    # Rate limiting
    # ─────────────────────────────────────────────────────────────────────────
    RATE_LIMIT_ENABLED = True

    # ─────────────────────────────────────────────────────────────────────────
    # Voice previews
    # ─────────────────────────────────────────────────────────────────────────
    PREVIEW_CACHE_MAX_ITEMS = 100
    PREVIEW_CACHE_TTL_SECONDS = 0       # 0 = keep until evicted

    # ─────────────────────────────────────────────────────────────────────────
    # Logging
    # ─────────────────────────────────────────────────────────────────────────
    LOGGING_LEVEL = 2                   # NORMAL
    LOGGING_TEXT_PREVIEW_CHARS = 60


@dataclass
class ProviderConfig:
    """
    Speech provider connection settings.

    ``api_key`` is optional at load time; a missing key is reported when a
    synthesis is attempted.
    """
    base_url: str = Defaults.PROVIDER_BASE_URL
    api_key: Optional[str] = None
    model_id: str = Defaults.PROVIDER_MODEL_ID
    timeout_s: float = Defaults.PROVIDER_TIMEOUT_S


@dataclass
class BackendConfig:
    """Backend REST/storage settings. URL and service key come from the environment."""
    url: Optional[str] = None
    service_key: Optional[str] = None
    storage_bucket: str = Defaults.BACKEND_STORAGE_BUCKET
    history_table: str = Defaults.BACKEND_HISTORY_TABLE
    profiles_table: str = Defaults.BACKEND_PROFILES_TABLE
    transactions_table: str = Defaults.BACKEND_TRANSACTIONS_TABLE
    timeout_s: float = Defaults.BACKEND_TIMEOUT_S


@dataclass
class AuthConfig:
    jwt_secret: Optional[str] = None
    jwt_audience: str = Defaults.AUTH_JWT_AUDIENCE
    jwt_algorithm: str = Defaults.AUTH_JWT_ALGORITHM


@dataclass
class GeoConfig:
    header: str = Defaults.GEO_HEADER
    default_country: str = Defaults.GEO_DEFAULT_COUNTRY


@dataclass
class GenerationConfig:
    """Limits applied before a request is forwarded to the provider."""
    max_text_length: int = Defaults.GENERATION_MAX_TEXT_LENGTH
    cost_per_character: int = Defaults.GENERATION_COST_PER_CHARACTER


@dataclass
class HistoryConfig:
    default_limit: int = Defaults.HISTORY_DEFAULT_LIMIT
    max_limit: int = Defaults.HISTORY_MAX_LIMIT


@dataclass
class CreditsConfig:
    default_limit: int = Defaults.CREDITS_DEFAULT_LIMIT
    max_limit: int = Defaults.CREDITS_MAX_LIMIT


@dataclass
class RateLimitConfig:
    """
    Per-user generation rate limiting.

    Windows and per-tier limits are fixed (see services.rate_limit); this
    section only switches the limiter on or off.
    """
    enabled: bool = Defaults.RATE_LIMIT_ENABLED


@dataclass
class PreviewConfig:
    """
    Voice preview cache configuration.

    Previews are short synthesized samples encoded as data URLs; the cache
    keeps at most ``cache_max_items`` of them.
    """
    cache_max_items: int = Defaults.PREVIEW_CACHE_MAX_ITEMS
    cache_ttl_seconds: int = Defaults.PREVIEW_CACHE_TTL_SECONDS


@dataclass
class LoggingConfig:
    """
    Logging configuration.

    Log levels:
        1 = MINIMAL: Startup, shutdown, critical errors only
        2 = NORMAL: Request lifecycle, upstream calls (default)
        3 = VERBOSE: Per-stage timing, cache decisions
        4 = DEBUG: Internal state, full tracing
    """
    text_preview_chars: int = Defaults.LOGGING_TEXT_PREVIEW_CHARS
    level: int = Defaults.LOGGING_LEVEL


@dataclass
class AppConfig:
    """
    Validated application configuration.

    Usage:
        settings = load_settings("config/settings.yaml")
        config = AppConfig.from_settings(settings)
        print(config.provider.model_id)
    """
    provider: ProviderConfig = field(default_factory=ProviderConfig)
    backend: BackendConfig = field(default_factory=BackendConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    geo: GeoConfig = field(default_factory=GeoConfig)
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    credits: CreditsConfig = field(default_factory=CreditsConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    preview: PreviewConfig = field(default_factory=PreviewConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "AppConfig":
        """
        Create AppConfig from Settings with validation.

        Args:
            settings: Raw Settings object loaded from YAML.

        Returns:
            Validated AppConfig instance.

        Raises:
            ConfigValidationError: If any value fails validation.
        """
        raw = settings.raw

        # ─────────────────────────────────────────────────────────────────────
        # Provider
        # ─────────────────────────────────────────────────────────────────────
        provider_raw = raw.get("provider", {}) or {}
        provider = ProviderConfig(
            base_url=str(provider_raw.get("base_url", Defaults.PROVIDER_BASE_URL)).rstrip("/"),
            api_key=provider_raw.get("api_key") or None,
            model_id=str(provider_raw.get("model_id", Defaults.PROVIDER_MODEL_ID)),
            timeout_s=float(provider_raw.get("timeout_s", Defaults.PROVIDER_TIMEOUT_S)),
        )
        cls._validate_positive("provider.timeout_s", provider.timeout_s)

        # ─────────────────────────────────────────────────────────────────────
        # Backend
        # ─────────────────────────────────────────────────────────────────────
        backend_raw = raw.get("backend", {}) or {}
        url = backend_raw.get("url") or None
        backend = BackendConfig(
            url=str(url).rstrip("/") if url else None,
            service_key=backend_raw.get("service_key") or None,
            storage_bucket=str(backend_raw.get("storage_bucket", Defaults.BACKEND_STORAGE_BUCKET)),
            history_table=str(backend_raw.get("history_table", Defaults.BACKEND_HISTORY_TABLE)),
            profiles_table=str(backend_raw.get("profiles_table", Defaults.BACKEND_PROFILES_TABLE)),
            transactions_table=str(backend_raw.get("transactions_table", Defaults.BACKEND_TRANSACTIONS_TABLE)),
            timeout_s=float(backend_raw.get("timeout_s", Defaults.BACKEND_TIMEOUT_S)),
        )
        cls._validate_positive("backend.timeout_s", backend.timeout_s)
        cls._validate_not_empty("backend.storage_bucket", backend.storage_bucket)
        cls._validate_not_empty("backend.history_table", backend.history_table)
        cls._validate_not_empty("backend.profiles_table", backend.profiles_table)
        cls._validate_not_empty("backend.transactions_table", backend.transactions_table)

        # ─────────────────────────────────────────────────────────────────────
        # Auth
        # ─────────────────────────────────────────────────────────────────────
        auth_raw = raw.get("auth", {}) or {}
        auth = AuthConfig(
            jwt_secret=auth_raw.get("jwt_secret") or None,
            jwt_audience=str(auth_raw.get("jwt_audience", Defaults.AUTH_JWT_AUDIENCE)),
            jwt_algorithm=str(auth_raw.get("jwt_algorithm", Defaults.AUTH_JWT_ALGORITHM)),
        )

        # ─────────────────────────────────────────────────────────────────────
        # Geo
        # ─────────────────────────────────────────────────────────────────────
        geo_raw = raw.get("geo", {}) or {}
        geo = GeoConfig(
            header=str(geo_raw.get("header", Defaults.GEO_HEADER)).lower(),
            default_country=str(geo_raw.get("default_country", Defaults.GEO_DEFAULT_COUNTRY)).upper(),
        )
        if len(geo.default_country) != 2 or not geo.default_country.isalpha():
            raise ConfigValidationError(
                f"geo.default_country must be a two-letter country code, got {geo.default_country!r}"
            )

        # ─────────────────────────────────────────────────────────────────────
        # Generation
        # ─────────────────────────────────────────────────────────────────────
        generation_raw = raw.get("generation", {}) or {}
        generation = GenerationConfig(
            max_text_length=int(generation_raw.get("max_text_length", Defaults.GENERATION_MAX_TEXT_LENGTH)),
            cost_per_character=int(
                generation_raw.get("cost_per_character", Defaults.GENERATION_COST_PER_CHARACTER)
            ),
        )
        cls._validate_positive("generation.max_text_length", generation.max_text_length)
        cls._validate_non_negative("generation.cost_per_character", generation.cost_per_character)

        # ─────────────────────────────────────────────────────────────────────
        # History
        # ─────────────────────────────────────────────────────────────────────
        history_raw = raw.get("history", {}) or {}
        history = HistoryConfig(
            default_limit=int(history_raw.get("default_limit", Defaults.HISTORY_DEFAULT_LIMIT)),
            max_limit=int(history_raw.get("max_limit", Defaults.HISTORY_MAX_LIMIT)),
        )
        cls._validate_positive("history.default_limit", history.default_limit)
        cls._validate_positive("history.max_limit", history.max_limit)
        if history.default_limit > history.max_limit:
            raise ConfigValidationError(
                f"history.default_limit ({history.default_limit}) exceeds "
                f"history.max_limit ({history.max_limit})"
            )

        # ─────────────────────────────────────────────────────────────────────
        # Credits
        # ─────────────────────────────────────────────────────────────────────
        credits_raw = raw.get("credits", {}) or {}
        credits = CreditsConfig(
            default_limit=int(credits_raw.get("default_limit", Defaults.CREDITS_DEFAULT_LIMIT)),
            max_limit=int(credits_raw.get("max_limit", Defaults.CREDITS_MAX_LIMIT)),
        )
        cls._validate_positive("credits.default_limit", credits.default_limit)
        cls._validate_positive("credits.max_limit", credits.max_limit)
        if credits.default_limit > credits.max_limit:
            raise ConfigValidationError(
                f"credits.default_limit ({credits.default_limit}) exceeds "
                f"credits.max_limit ({credits.max_limit})"
            )

        # ─────────────────────────────────────────────────────────────────────
        # Rate limiting
        # ─────────────────────────────────────────────────────────────────────
        rate_limit_raw = raw.get("rate_limit", {}) or {}
        rate_limit = RateLimitConfig(
            enabled=bool(rate_limit_raw.get("enabled", Defaults.RATE_LIMIT_ENABLED)),
        )

        # ─────────────────────────────────────────────────────────────────────
        # Preview cache
        # ─────────────────────────────────────────────────────────────────────
        preview_raw = raw.get("preview", {}) or {}
        preview = PreviewConfig(
            cache_max_items=int(preview_raw.get("cache_max_items", Defaults.PREVIEW_CACHE_MAX_ITEMS)),
            cache_ttl_seconds=int(preview_raw.get("cache_ttl_seconds", Defaults.PREVIEW_CACHE_TTL_SECONDS)),
        )
        cls._validate_positive("preview.cache_max_items", preview.cache_max_items)
        cls._validate_non_negative("preview.cache_ttl_seconds", preview.cache_ttl_seconds)

        # ─────────────────────────────────────────────────────────────────────
        # Logging
        # ─────────────────────────────────────────────────────────────────────
        logging_raw = raw.get("logging", {}) or {}
        log_level_raw = logging_raw.get("level", Defaults.LOGGING_LEVEL)

        # String levels ("INFO", "DEBUG", "3")
        if isinstance(log_level_raw, str):
            level_map = {
                "MINIMAL": 1, "1": 1,
                "NORMAL": 2, "INFO": 2, "2": 2,
                "VERBOSE": 3, "3": 3,
                "DEBUG": 4, "TRACE": 4, "4": 4,
            }
            log_level = level_map.get(log_level_raw.strip().upper(), Defaults.LOGGING_LEVEL)
        else:
            log_level = int(log_level_raw)

        logging_cfg = LoggingConfig(
            text_preview_chars=int(logging_raw.get("text_preview_chars", Defaults.LOGGING_TEXT_PREVIEW_CHARS)),
            level=log_level,
        )
        cls._validate_non_negative("logging.text_preview_chars", logging_cfg.text_preview_chars)
        cls._validate_range("logging.level", logging_cfg.level, 1, 4)

        return cls(
            provider=provider,
            backend=backend,
            auth=auth,
            geo=geo,
            generation=generation,
            history=history,
            credits=credits,
            rate_limit=rate_limit,
            preview=preview,
            logging=logging_cfg,
        )

    @staticmethod
    def _validate_positive(name: str, value: int | float) -> None:
        """Validate that a value is positive (> 0)."""
        if value <= 0:
            raise ConfigValidationError(f"{name} must be positive, got {value}")

    @staticmethod
    def _validate_non_negative(name: str, value: int | float) -> None:
        """Validate that a value is non-negative (>= 0)."""
        if value < 0:
            raise ConfigValidationError(f"{name} must be non-negative, got {value}")

    @staticmethod
    def _validate_range(name: str, value: int | float, min_val: int | float, max_val: int | float) -> None:
        """Validate that a value is within a range [min_val, max_val]."""
        if not (min_val <= value <= max_val):
            raise ConfigValidationError(f"{name} must be between {min_val} and {max_val}, got {value}")

    @staticmethod
    def _validate_not_empty(name: str, value: str) -> None:
        if not value.strip():
            raise ConfigValidationError(f"{name} must not be empty")


@dataclass(frozen=True)
class Settings:
    """
    Immutable settings container loaded from YAML.

    This is the raw settings object before validation. Use
    get_app_config() to get the validated AppConfig.

    Attributes:
        raw: Dictionary of raw configuration values.
    """
    raw: Dict[str, Any]

    def get_app_config(self) -> AppConfig:
        """
        Get validated AppConfig from these settings.

        Raises:
            ConfigValidationError: If validation fails.
        """
        return AppConfig.from_settings(self)


# Environment variable -> (section, key). First variable listed wins.
_ENV_OVERRIDES: Tuple[Tuple[str, str, str], ...] = (
    ("DECIBLE_PROVIDER_API_KEY", "provider", "api_key"),
    ("ELEVENLABS_API_KEY", "provider", "api_key"),
    ("DECIBLE_PROVIDER_BASE_URL", "provider", "base_url"),
    ("SUPABASE_URL", "backend", "url"),
    ("SUPABASE_SERVICE_ROLE_KEY", "backend", "service_key"),
    ("SUPABASE_JWT_SECRET", "auth", "jwt_secret"),
)


def apply_env_overrides(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Apply environment variable overrides to a raw settings dictionary.

    Environment variable overrides:
        - DECIBLE_PROVIDER_API_KEY / ELEVENLABS_API_KEY: provider.api_key
        - DECIBLE_PROVIDER_BASE_URL: provider.base_url
        - SUPABASE_URL: backend.url
        - SUPABASE_SERVICE_ROLE_KEY: backend.service_key
        - SUPABASE_JWT_SECRET: auth.jwt_secret

    Returns:
        The same dictionary, updated in place.
    """
    applied = set()
    for env_name, section, key in _ENV_OVERRIDES:
        value = os.getenv(env_name)
        if not value or (section, key) in applied:
            continue
        section_raw = raw.get(section)
        if not isinstance(section_raw, dict):
            section_raw = raw[section] = {}
        section_raw[key] = value
        applied.add((section, key))
    return raw


def load_settings(path: str = DEFAULT_SETTINGS_PATH) -> Settings:
    """
    Load settings from a YAML configuration file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        Settings object with loaded configuration and environment overrides.

    Raises:
        FileNotFoundError: If the settings file doesn't exist.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"settings file not found: {p.resolve()}")

    with p.open("r", encoding="utf-8") as f:
        raw: Dict[str, Any] = yaml.safe_load(f) or {}

    return Settings(raw=apply_env_overrides(raw))


def settings_path() -> str:
    """Resolve the settings file path ($DECIBLE_SETTINGS or the default)."""
    return os.getenv("DECIBLE_SETTINGS", DEFAULT_SETTINGS_PATH)
