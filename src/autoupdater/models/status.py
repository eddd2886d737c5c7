"""Outcome enums for autoupdater runs."""

from enum import Enum


class AttemptOutcome(str, Enum):
    """Result of one attempt against a single mirror.

    Stage order per mirror:
    download → verify → upgrade → success
        ↓         ↓         ↓
    downloadFailed / verificationFailed / applyFailed → abort hooks → next mirror
    """

    SUCCESS = "success"
    DOWNLOAD_FAILED = "downloadFailed"
    VERIFICATION_FAILED = "verificationFailed"
    APPLY_FAILED = "applyFailed"


class UpdateResult(str, Enum):
    """Successful terminal states of a run (all exit with status 0)."""

    UPDATED = "updated"
    DISABLED = "disabled"
    SKIPPED = "skipped"
    NOT_ANNOUNCED = "notAnnounced"
