"""Inputs to the staged-rollout decision."""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _as_utc(v: datetime) -> datetime:
    if v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v


class Announcement(BaseModel):
    """Manifest scalars published with an update.

    Written by the download side to the announcement file; only the
    publish date and rollout priority are consumed here.
    """

    model_config = ConfigDict(frozen=True)

    date: datetime = Field(..., description="Publish timestamp of the manifest")
    priority: float = Field(..., ge=0, description="Rollout window in days")

    @field_validator("date", mode="after")
    @classmethod
    def naive_is_utc(cls, v: datetime) -> datetime:
        """Treat naive timestamps as UTC."""
        return _as_utc(v)


class UpdateDecisionInput(BaseModel):
    """Everything the rollout probability depends on, fixed for one run."""

    model_config = ConfigDict(frozen=True)

    announced_at: datetime
    priority: float = Field(..., ge=0)
    now: datetime
    fallback: bool = False

    @field_validator("announced_at", "now", mode="after")
    @classmethod
    def naive_is_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)

    @property
    def elapsed_seconds(self) -> float:
        """Seconds between announcement and now (negative if clock is behind)."""
        return (self.now - self.announced_at).total_seconds()

    @property
    def window_seconds(self) -> float:
        """Length of the rollout window in seconds."""
        return self.priority * 86400
