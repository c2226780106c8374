"""Google OAuth token lifecycle: authorization, persistence, expiry detection and refresh.

Token states for one user:

    Unauthorized -> Authorized(valid) -> Authorized(expired) -> Authorized(valid) (refresh)
    Authorized(expired) -> unusable until re-authorization (refresh rejected)

The record is never deleted here; a rejected refresh surfaces AuthRefreshError and the
caller restarts the authorization flow.
"""

import logging
from datetime import UTC, datetime, timedelta

from tasukun.core.config import Constants, settings
from tasukun.core.db_client import DBClient, sanitize_param
from tasukun.core.errors import NoRefreshTokenError, NoTokenError
from tasukun.core.logging import log_with_user_context, span, token_fingerprint
from tasukun.domain.create_models import GoogleTokenCreate
from tasukun.domain.google import GoogleTokenRecord, TokenSet
from tasukun.domain.task import as_utc
from tasukun.interface.google_oauth_client import GoogleOAuthClient


logger = logging.getLogger(__name__)

COLLECTION = Constants.GOOGLE_TOKENS_COLLECTION


def generate_authorization_url(*, oauth_client: GoogleOAuthClient) -> str:
    """Consent-screen URL requesting offline calendar access."""
    return oauth_client.generate_authorization_url()


async def exchange_code(*, oauth_client: GoogleOAuthClient, code: str) -> TokenSet:
    """Trade a one-time authorization code for a token set.

    Raises:
        AuthExchangeError: If the code is invalid, expired or already used
    """
    with span("oauth_service.exchange_code"):
        return await oauth_client.exchange_code(code)


async def get_token_record(*, db: DBClient, user_id: str) -> GoogleTokenRecord | None:
    """Load the stored credential for a user, if any."""
    record = await db.get_first_record(
        collection=COLLECTION,
        filter_query=f'user_id = "{sanitize_param(user_id)}"',
    )
    return GoogleTokenRecord.model_validate(record) if record else None


async def persist_tokens(*, db: DBClient, user_id: str, token_set: TokenSet) -> GoogleTokenRecord:
    """Upsert the user's token record with full replace semantics.

    Google only returns a refresh token on the first consent (or when it rotates one),
    so a token set without one is written together with the refresh token already stored.

    Args:
        db: Store client
        user_id: Owner of the credential
        token_set: Tokens returned by Google

    Returns:
        The stored record
    """
    with span("oauth_service.persist_tokens"):
        refresh_token = token_set.refresh_token
        if refresh_token is None:
            existing = await get_token_record(db=db, user_id=user_id)
            refresh_token = existing.refresh_token if existing else None

        payload = GoogleTokenCreate(
            user_id=user_id,
            access_token=token_set.access_token,
            refresh_token=refresh_token,
            expiry_date=as_utc(token_set.expiry_date),
        )
        record = await db.upsert_record(
            collection=COLLECTION,
            data=payload.model_dump(mode="json"),
            conflict_field="user_id",
        )
        log_with_user_context(
            logger,
            "info",
            "Google tokens stored",
            user_id=user_id,
            token=token_fingerprint(payload.access_token),
            has_refresh_token=refresh_token is not None,
            expiry_date=payload.expiry_date.isoformat(),
        )
        return GoogleTokenRecord.model_validate(record)


def is_expired(record: GoogleTokenRecord, *, now: datetime, margin_seconds: int = 0) -> bool:
    """True once `now` is past the expiry date (minus the configured margin)."""
    return as_utc(now) > as_utc(record.expiry_date) - timedelta(seconds=margin_seconds)


async def refresh_access_token(*, db: DBClient, oauth_client: GoogleOAuthClient, user_id: str) -> str:
    """Regenerate the access token from the stored refresh token and persist the result.

    Raises:
        NoRefreshTokenError: If no refresh token is stored (no network call is made)
        AuthRefreshError: If Google rejects the refresh token
    """
    with span("oauth_service.refresh_access_token"):
        record = await get_token_record(db=db, user_id=user_id)
        if record is None or not record.refresh_token:
            log_with_user_context(logger, "warning", "No refresh token stored", user_id=user_id)
            raise NoRefreshTokenError("No refresh token found")

        token_set = await oauth_client.refresh(record.refresh_token)
        await persist_tokens(db=db, user_id=user_id, token_set=token_set)
        log_with_user_context(logger, "info", "Google access token refreshed", user_id=user_id)
        return token_set.access_token


async def get_valid_access_token(
    *,
    db: DBClient,
    oauth_client: GoogleOAuthClient,
    user_id: str,
    now: datetime | None = None,
) -> str:
    """Return a usable access token, refreshing it once if it has expired.

    Raises:
        NoTokenError: If the user never authorized calendar access
        NoRefreshTokenError: If the token expired and no refresh token is stored
        AuthRefreshError: If Google rejects the refresh
    """
    with span("oauth_service.get_valid_access_token"):
        record = await get_token_record(db=db, user_id=user_id)
        if record is None:
            raise NoTokenError("No tokens found for user")

        if is_expired(
            record,
            now=now or datetime.now(UTC),
            margin_seconds=settings.google_token_expiry_margin_seconds,
        ):
            log_with_user_context(logger, "info", "Google access token expired", user_id=user_id)
            return await refresh_access_token(db=db, oauth_client=oauth_client, user_id=user_id)

        return record.access_token
