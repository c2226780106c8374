"""User domain models."""

from pydantic import BaseModel, Field


class SessionUser(BaseModel):
    """Authenticated user carried by a session token."""

    user_id: str = Field(..., min_length=1, description="Identity service user ID")
    email: str | None = Field(default=None, description="Email address reported by the identity service")
