from datetime import UTC, datetime

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


def _utc_naive_now() -> datetime:
    """Naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    return datetime.now(UTC).replace(tzinfo=None)


class IntegrationToken(SQLModel, table=True):
    """OAuth credentials for one external provider (single row per provider/type)."""

    __tablename__ = "integration_tokens"
    __table_args__ = (UniqueConstraint("provider", "token_type"),)
    id: int | None = Field(default=None, primary_key=True)
    provider: str = Field(index=True)
    token_type: str = "oauth"
    access_token: str | None = None
    refresh_token: str | None = None
    expires_at: datetime | None = None  # naive UTC
    created_at: datetime = Field(default_factory=_utc_naive_now)
    updated_at: datetime = Field(default_factory=_utc_naive_now)
