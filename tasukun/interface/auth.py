"""Session authentication for API requests.

Sessions are issued by the identity service as itsdangerous-signed tokens carrying
``{"user_id", "email"}``. Requests present them either as a Bearer token or in the
``session`` cookie.
"""

import logging

from fastapi import Request
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from pydantic import ValidationError as PydanticValidationError

from tasukun.core.config import settings
from tasukun.core.errors import AuthenticationRequired
from tasukun.domain.user import SessionUser


logger = logging.getLogger(__name__)

SESSION_COOKIE_NAME = "session"

session_serializer = URLSafeTimedSerializer(str(settings.secret_key), salt="user-session")


def create_session_token(user: SessionUser) -> str:
    """Sign a session token for a user."""
    return session_serializer.dumps(user.model_dump())


def _extract_token(request: Request) -> str | None:
    authorization = request.headers.get("Authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return request.cookies.get(SESSION_COOKIE_NAME)


async def require_user(request: Request) -> SessionUser:
    """Resolve the authenticated user or reject the request with 401."""
    token = _extract_token(request)
    if not token:
        logger.warning("auth_missing_session", extra={"path": request.url.path})
        raise AuthenticationRequired("Authentication required")

    try:
        session_data = session_serializer.loads(token, max_age=settings.session_max_age_seconds)
    except SignatureExpired as err:
        logger.warning("auth_session_expired", extra={"path": request.url.path})
        raise AuthenticationRequired("Session expired") from err
    except BadSignature as err:
        logger.warning("auth_session_tampered", extra={"path": request.url.path})
        raise AuthenticationRequired("Invalid session") from err

    try:
        return SessionUser.model_validate(session_data)
    except PydanticValidationError as err:
        logger.warning("auth_session_malformed", extra={"path": request.url.path})
        raise AuthenticationRequired("Invalid session") from err
