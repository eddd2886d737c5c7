"""Configuration file schema and the per-run context built from it."""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from autoupdater.models.decision import Announcement


class BranchSettings(BaseModel):
    """One release branch: where to fetch from and whom to trust."""

    name: Optional[str] = Field(None, description="Human-readable branch name")
    mirrors: list[str] = Field(
        ..., min_length=1, description="Mirror identifiers (usually base URLs)"
    )
    pubkeys: list[str] = Field(..., description="Trusted signing public keys")
    good_signatures: int = Field(
        ..., gt=0, description="Minimum number of valid signatures required"
    )

    @field_validator("mirrors")
    @classmethod
    def no_empty_mirrors(cls, v: list[str]) -> list[str]:
        """Reject blank mirror entries."""
        if any(not m.strip() for m in v):
            raise ValueError("Mirror entries must not be empty")
        return v


class Settings(BaseModel):
    """Global ``settings`` section of the configuration file."""

    enabled: bool = Field(False, description="Run updates when not forced")
    branch: Optional[str] = Field(None, description="Default branch")
    version_file: Optional[Path] = Field(
        None, description="File whose first line is the installed version"
    )
    announcement_file: Optional[Path] = Field(
        None, description="JSON file holding the announced date and priority"
    )
    lock_file: Path = Field(Path("/var/run/autoupdater.lock"))
    hook_dir: Path = Field(
        Path("/usr/lib/autoupdater"),
        description="Parent of download.d, abort.d and upgrade.d",
    )
    work_dir: Path = Field(
        Path("/tmp/autoupdater"), description="Where download hooks leave artifacts"
    )
    verifier: str = Field("ecdsaverify", description="Signature verifier program")
    hook_timeout: Optional[float] = Field(
        600.0, gt=0, description="Per-hook time limit in seconds (None: unbounded)"
    )

    @field_validator("enabled", mode="before")
    @classmethod
    def legacy_enabled_flag(cls, v):
        """Accept the legacy "1"/"0" strings; only "1" enables."""
        if v is None:
            return False
        if isinstance(v, str):
            return v.strip() == "1"
        return v


class ConfigFile(BaseModel):
    """Root of the JSON configuration store."""

    settings: Settings
    branches: dict[str, BranchSettings] = Field(default_factory=dict)


class RunContext(BaseModel):
    """Immutable values for a single run, passed to every component."""

    model_config = ConfigDict(frozen=True)

    branch: str
    branch_name: Optional[str] = None
    mirrors: tuple[str, ...]
    pubkeys: tuple[str, ...]
    good_signatures: int = Field(..., gt=0)
    enabled: bool = False
    old_version: Optional[str] = None
    force: bool = False
    fallback: bool = False
    lock_file: Path = Path("/var/run/autoupdater.lock")
    hook_dir: Path = Path("/usr/lib/autoupdater")
    work_dir: Path = Path("/tmp/autoupdater")
    verifier: str = "ecdsaverify"
    hook_timeout: Optional[float] = 600.0
    announcement: Optional[Announcement] = None

    @property
    def download_dir(self) -> Path:
        return self.hook_dir / "download.d"

    @property
    def abort_dir(self) -> Path:
        return self.hook_dir / "abort.d"

    @property
    def upgrade_dir(self) -> Path:
        return self.hook_dir / "upgrade.d"
