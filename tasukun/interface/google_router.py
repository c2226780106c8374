"""Google OAuth and calendar HTTP API."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import RedirectResponse

from tasukun.core.db_client import DBClient, get_db_client
from tasukun.domain.google import EventData, RemoteEvent
from tasukun.domain.user import SessionUser
from tasukun.interface.auth import require_user
from tasukun.interface.google_calendar_client import GoogleCalendarClient, get_google_calendar_client
from tasukun.interface.google_oauth_client import GoogleOAuthClient, get_google_oauth_client
from tasukun.services import calendar_service, oauth_service


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/google", tags=["google"])

CurrentUser = Annotated[SessionUser, Depends(require_user)]
Store = Annotated[DBClient, Depends(get_db_client)]
OAuthClient = Annotated[GoogleOAuthClient, Depends(get_google_oauth_client)]


@router.get("/auth")
async def start_authorization(_user: CurrentUser, oauth_client: OAuthClient) -> RedirectResponse:
    """Redirect the browser to Google's consent screen."""
    url = oauth_service.generate_authorization_url(oauth_client=oauth_client)
    return RedirectResponse(url=url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)


@router.get("/auth-url")
async def get_authorization_url(_user: CurrentUser, oauth_client: OAuthClient) -> dict[str, str]:
    """Return the consent-screen URL for clients that navigate themselves."""
    return {"url": oauth_service.generate_authorization_url(oauth_client=oauth_client)}


@router.get("/callback")
async def authorization_callback(
    user: CurrentUser,
    db: Store,
    oauth_client: OAuthClient,
    code: Annotated[str, Query(min_length=1, description="One-time authorization code from Google")],
) -> dict[str, str]:
    """Exchange the authorization code and store the resulting tokens."""
    token_set = await oauth_service.exchange_code(oauth_client=oauth_client, code=code)
    await oauth_service.persist_tokens(db=db, user_id=user.user_id, token_set=token_set)
    logger.info("google_calendar_connected", extra={"user_id": user.user_id})
    return {"status": "connected"}


@router.post("/calendar/events", status_code=status.HTTP_201_CREATED, response_model_by_alias=True)
async def create_calendar_event(
    event: EventData,
    user: CurrentUser,
    db: Store,
    oauth_client: OAuthClient,
    calendar_client: Annotated[GoogleCalendarClient, Depends(get_google_calendar_client)],
) -> RemoteEvent:
    """Create an event in the caller's primary calendar."""
    return await calendar_service.create_event(
        db=db,
        oauth_client=oauth_client,
        calendar_client=calendar_client,
        user_id=user.user_id,
        event=event,
    )
