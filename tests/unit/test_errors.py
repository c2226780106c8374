"""Unit tests for error classification utilities."""

import pytest

from tasukun.core.errors import (
    AuthenticationRequired,
    AuthExchangeError,
    AuthRefreshError,
    DatabaseError,
    ErrorCode,
    NoRefreshTokenError,
    NoTokenError,
    ProviderError,
    RecordNotFoundError,
    TokenUnavailableError,
    ValidationError,
    classify_error_with_response,
)


@pytest.mark.unit
class TestClassifyErrorWithResponse:
    """Tests for classify_error_with_response function."""

    @pytest.mark.parametrize(
        ("exception", "status_code", "code"),
        [
            (AuthenticationRequired("no session"), 401, ErrorCode.ERR_AUTHENTICATION_REQUIRED),
            (ValidationError("bad input"), 400, ErrorCode.ERR_VALIDATION),
            (DatabaseError("constraint failed"), 400, ErrorCode.ERR_STORE),
            (RecordNotFoundError("missing"), 404, ErrorCode.ERR_NOT_FOUND),
            (NoTokenError("no tokens"), 403, ErrorCode.ERR_CALENDAR_NOT_LINKED),
            (NoRefreshTokenError("no refresh"), 403, ErrorCode.ERR_CALENDAR_NOT_LINKED),
            (AuthExchangeError("invalid_grant"), 400, ErrorCode.ERR_AUTH_EXCHANGE),
            (AuthRefreshError("revoked"), 403, ErrorCode.ERR_AUTH_REFRESH),
            (ProviderError("upstream down"), 502, ErrorCode.ERR_PROVIDER),
        ],
    )
    def test_domain_errors_map_to_status(self, exception, status_code, code):
        """Each domain error carries its own HTTP status and code."""
        status, body = classify_error_with_response(exception)

        assert status == status_code
        assert body.code == code
        assert body.error == exception.message

    def test_unexpected_error_is_internal(self):
        """Anything outside the taxonomy becomes a 500 with its message."""
        status, body = classify_error_with_response(RuntimeError("boom"))

        assert status == 500
        assert body.code == ErrorCode.ERR_UNEXPECTED
        assert body.error == "boom"
        assert body.suggestion is not None

    def test_unexpected_error_without_message_uses_type_name(self):
        """Empty messages fall back to the exception type."""
        _, body = classify_error_with_response(KeyError())

        assert body.error == "KeyError"

    def test_token_errors_share_parent(self):
        """Both missing-token cases are a TokenUnavailableError."""
        assert issubclass(NoTokenError, TokenUnavailableError)
        assert issubclass(NoRefreshTokenError, TokenUnavailableError)
        assert issubclass(RecordNotFoundError, DatabaseError)

    def test_suggestion_included(self):
        """Errors with a remediation hint expose it."""
        _, body = classify_error_with_response(AuthRefreshError("revoked"))

        assert body.suggestion is not None
        assert "authorization" in body.suggestion.lower()

    def test_provider_error_keeps_upstream_status(self):
        """The provider's status code is kept for diagnostics."""
        error = ProviderError("bad request", provider_status=400)

        assert error.provider_status == 400
        assert error.status_code == 502
