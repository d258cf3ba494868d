"""
Tests for error classes and the JSON error contract.

Tests cover:
- ErrorCode values and HTTP status mapping
- DecibleError creation and serialization
- Subclass defaults (code, client-safe message)
- Exception inheritance
- Credit errors carry their amounts in the body
"""
import pytest

from decible.services.errors import (
    STATUS_MAP,
    AuthRequiredError,
    ConfigurationError,
    DecibleError,
    ErrorCode,
    InsufficientCreditsError,
    InvalidInputError,
    NotFoundError,
    PersistenceError,
    ProviderError,
    StorageError,
)


class TestErrorCode:
    """Tests for ErrorCode constants and their statuses."""

    @pytest.mark.parametrize("code,status", [
        (ErrorCode.INVALID_INPUT, 400),
        (ErrorCode.AUTH_REQUIRED, 401),
        (ErrorCode.NOT_FOUND, 404),
        (ErrorCode.INSUFFICIENT_CREDITS, 402),
        (ErrorCode.RATE_LIMITED, 429),
        (ErrorCode.PROVIDER_FAILED, 500),
        (ErrorCode.STORAGE_FAILED, 500),
        (ErrorCode.PERSISTENCE_FAILED, 500),
        (ErrorCode.CONFIG_ERROR, 500),
        (ErrorCode.INTERNAL_ERROR, 500),
    ])
    def test_status_map(self, code, status):
        assert STATUS_MAP[code] == status

    def test_codes_are_their_names(self):
        assert ErrorCode.PROVIDER_FAILED == "PROVIDER_FAILED"
        assert ErrorCode.AUTH_REQUIRED == "AUTH_REQUIRED"


class TestDecibleError:
    """Tests for the base exception."""

    def test_creation(self):
        error = DecibleError("Something broke")
        assert error.message == "Something broke"
        assert str(error) == "Something broke"
        assert error.code == ErrorCode.INTERNAL_ERROR
        assert error.details == {}
        assert error.status_code == 500

    def test_explicit_code(self):
        error = DecibleError("Nope", code=ErrorCode.NOT_FOUND)
        assert error.status_code == 404

    def test_unknown_code_is_500(self):
        assert DecibleError("x", code="WHATEVER").status_code == 500

    def test_to_dict(self):
        error = DecibleError("Bad thing", code=ErrorCode.INVALID_INPUT, details={"field": "text"})
        assert error.to_dict() == {"ok": False, "error": "INVALID_INPUT", "message": "Bad thing"}

    def test_details_not_serialized(self):
        """Upstream detail stays out of the client body."""
        error = ProviderError(details={"body": "upstream secret"})
        assert "upstream secret" not in str(error.to_dict())


class TestSubclasses:
    """Default codes and messages."""

    @pytest.mark.parametrize("cls,code,message", [
        (AuthRequiredError, ErrorCode.AUTH_REQUIRED, "Authentication required"),
        (ProviderError, ErrorCode.PROVIDER_FAILED, "Failed to generate audio"),
        (StorageError, ErrorCode.STORAGE_FAILED, "Failed to store generated audio"),
        (PersistenceError, ErrorCode.PERSISTENCE_FAILED, "Failed to access generation history"),
        (ConfigurationError, ErrorCode.CONFIG_ERROR, "Service is not configured"),
    ])
    def test_defaults(self, cls, code, message):
        error = cls()
        assert error.code == code
        assert error.message == message
        assert isinstance(error, DecibleError)

    def test_invalid_input_and_not_found_need_message(self):
        assert InvalidInputError("bad").status_code == 400
        assert NotFoundError("gone").status_code == 404

    def test_catchable_as_base(self):
        with pytest.raises(DecibleError):
            raise StorageError()

    def test_no_extra_headers_by_default(self):
        assert StorageError().headers == {}


class TestInsufficientCredits:
    def test_body(self):
        error = InsufficientCreditsError(120, 40)
        assert error.status_code == 402
        assert error.to_dict() == {
            "ok": False,
            "error": "INSUFFICIENT_CREDITS",
            "message": "You need 120 credits but only have 40. Please upgrade or purchase more credits.",
            "creditsNeeded": 120,
            "creditsRemaining": 40,
        }
