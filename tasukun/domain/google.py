"""Google integration domain models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class TokenSet(BaseModel):
    """Credentials returned by the Google token endpoint."""

    access_token: str = Field(..., min_length=1)
    refresh_token: str | None = Field(default=None, description="Only present when Google (re)issues one")
    expiry_date: datetime = Field(..., description="Absolute access token expiry (UTC)")


class GoogleTokenRecord(BaseModel):
    """Persisted OAuth credential state for one user."""

    id: str
    user_id: str
    access_token: str
    refresh_token: str | None = None
    expiry_date: datetime


class EventData(BaseModel):
    """Internal calendar event shape."""

    model_config = ConfigDict(extra="forbid")

    summary: str = Field(..., min_length=1)
    description: str | None = None
    start: datetime
    end: datetime

    @field_validator("summary")
    @classmethod
    def validate_summary(cls, v: str) -> str:
        """Reject whitespace-only summaries."""
        stripped = v.strip()
        if not stripped:
            msg = "Summary must not be empty"
            raise ValueError(msg)
        return stripped

    @model_validator(mode="after")
    def validate_time_range(self) -> "EventData":
        """End must come after start."""
        if self.end <= self.start:
            msg = "Event end must be after its start"
            raise ValueError(msg)
        return self


class RemoteEvent(BaseModel):
    """Event as returned by the Google Calendar API."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str
    status: str | None = None
    summary: str | None = None
    html_link: str | None = Field(default=None, alias="htmlLink")
