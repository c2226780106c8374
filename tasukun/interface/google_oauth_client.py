"""Google OAuth 2.0 client: consent URL, code exchange and token refresh over httpx."""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any
from urllib.parse import urlencode

import httpx

from tasukun.core.config import constants, settings
from tasukun.core.errors import AuthExchangeError, AuthRefreshError, ProviderError, TasukunError
from tasukun.domain.google import TokenSet


logger = logging.getLogger(__name__)


def safe_google_error_message(response: httpx.Response) -> str:
    """Extract a short, single-line error message from a Google error response."""
    try:
        payload = response.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        description = payload.get("error_description")
        if isinstance(description, str) and description.strip():
            return " ".join(description.split())[:200]
        error_payload = payload.get("error")
        if isinstance(error_payload, dict):
            message = error_payload.get("message")
            if isinstance(message, str) and message.strip():
                return " ".join(message.split())[:200]
        if isinstance(error_payload, str) and error_payload.strip():
            return " ".join(error_payload.split())[:200]

    raw_text = response.text.strip()
    if raw_text:
        return " ".join(raw_text.split())[:200]
    return "Request failed without an error payload"


def _coerce_expires_in_seconds(value: Any) -> int:
    if isinstance(value, bool):
        return constants.GOOGLE_DEFAULT_EXPIRES_IN_SECONDS
    if isinstance(value, int | float):
        return int(value) if value > 0 else constants.GOOGLE_DEFAULT_EXPIRES_IN_SECONDS
    return constants.GOOGLE_DEFAULT_EXPIRES_IN_SECONDS


class GoogleOAuthClient:
    """Talks to Google's authorization and token endpoints for one OAuth client."""

    def __init__(
        self,
        *,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._client_id = client_id
        self._client_secret = client_secret
        self._redirect_uri = redirect_uri
        self._http_client = http_client

    def generate_authorization_url(self) -> str:
        """Build the consent-screen URL requesting offline calendar access."""
        query = urlencode(
            {
                "client_id": self._client_id,
                "redirect_uri": self._redirect_uri,
                "response_type": "code",
                "access_type": "offline",
                "prompt": "consent",
                "scope": " ".join(constants.GOOGLE_OAUTH_SCOPES),
            }
        )
        return f"{constants.GOOGLE_AUTH_URL}?{query}"

    async def exchange_code(self, code: str) -> TokenSet:
        """Trade a one-time authorization code for an initial token set.

        Raises:
            AuthExchangeError: If Google rejects the code (invalid, expired or reused)
            ProviderError: If the token endpoint cannot be reached
        """
        return await self._request_token(
            {
                "code": code,
                "client_id": self._client_id,
                "client_secret": self._client_secret,
                "redirect_uri": self._redirect_uri,
                "grant_type": "authorization_code",
            },
            error_cls=AuthExchangeError,
            operation="code exchange",
        )

    async def refresh(self, refresh_token: str) -> TokenSet:
        """Obtain a new access token from a refresh token.

        Raises:
            AuthRefreshError: If Google rejects the refresh token (revoked or invalid)
            ProviderError: If the token endpoint cannot be reached
        """
        return await self._request_token(
            {
                "client_id": self._client_id,
                "client_secret": self._client_secret,
                "refresh_token": refresh_token,
                "grant_type": "refresh_token",
            },
            error_cls=AuthRefreshError,
            operation="token refresh",
        )

    async def _post_form(self, data: dict[str, str]) -> httpx.Response:
        headers = {"Accept": "application/json"}
        if self._http_client is not None:
            return await self._http_client.post(constants.GOOGLE_TOKEN_URL, data=data, headers=headers)
        async with httpx.AsyncClient(timeout=constants.GOOGLE_API_TIMEOUT_SECONDS) as client:
            return await client.post(constants.GOOGLE_TOKEN_URL, data=data, headers=headers)

    async def _request_token(
        self,
        data: dict[str, str],
        *,
        error_cls: type[TasukunError],
        operation: str,
    ) -> TokenSet:
        try:
            response = await self._post_form(data)
        except httpx.HTTPError as e:
            logger.error("google_token_request_failed", extra={"operation": operation, "error": str(e)})
            raise ProviderError(f"Google OAuth {operation} request failed: {e}") from e

        if not response.is_success:
            message = safe_google_error_message(response)
            logger.warning(
                "google_token_request_rejected",
                extra={"operation": operation, "status_code": response.status_code, "error": message},
            )
            raise error_cls(f"Google OAuth {operation} failed ({response.status_code}): {message}")

        try:
            payload = response.json()
        except ValueError as e:
            raise ProviderError(f"Google OAuth {operation} returned invalid JSON") from e

        access_token = payload.get("access_token") if isinstance(payload, dict) else None
        if not isinstance(access_token, str) or not access_token.strip():
            raise ProviderError(f"Google OAuth {operation} response is missing a non-empty access_token")

        refresh_token = payload.get("refresh_token")
        expires_in = _coerce_expires_in_seconds(payload.get("expires_in"))

        return TokenSet(
            access_token=access_token.strip(),
            refresh_token=refresh_token if isinstance(refresh_token, str) and refresh_token.strip() else None,
            expiry_date=datetime.now(UTC) + timedelta(seconds=expires_in),
        )


def get_google_oauth_client() -> GoogleOAuthClient:
    """FastAPI dependency building the OAuth client from settings."""
    return GoogleOAuthClient(
        client_id=settings.require_credential("google_client_id", "Google OAuth client ID"),
        client_secret=settings.require_credential("google_client_secret", "Google OAuth client secret"),
        redirect_uri=settings.google_redirect_uri,
    )
