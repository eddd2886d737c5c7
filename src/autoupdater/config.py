"""Configuration store loading for the autoupdater."""

import json
import logging
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from autoupdater.errors import ConfigurationError
from autoupdater.models.decision import Announcement
from autoupdater.models.settings import ConfigFile, RunContext

DEFAULT_CONFIG_PATH = Path("/etc/autoupdater.json")

logger = logging.getLogger("autoupdater.config")


def load_config(path: Union[str, Path] = DEFAULT_CONFIG_PATH) -> ConfigFile:
    """Load and validate the JSON configuration file.

    Args:
        path: Location of the configuration file

    Returns:
        Parsed ConfigFile

    Raises:
        ConfigurationError: If the file is missing, not JSON, or invalid
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"unable to load settings: {path} not found")
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"unable to load settings from {path}: {e}")

    if not isinstance(data, dict) or "settings" not in data:
        raise ConfigurationError(f"unable to load settings: no settings section in {path}")

    try:
        config = ConfigFile(**data)
    except ValidationError as e:
        raise ConfigurationError(f"invalid settings in {path}: {_describe(e)}")

    logger.debug(f"Loaded config from {path}: branches={sorted(config.branches)}")
    return config


def read_version_file(path: Union[str, Path]) -> Optional[str]:
    """Return the first line of the version file, or None if unavailable."""
    try:
        with open(path, "rb") as f:
            raw = f.readline()
    except OSError as e:
        logger.warning(f"Unable to read version file {path}: {e}")
        return None

    line = raw.decode("utf-8", errors="replace").rstrip("\n")
    return line or None


def load_announcement(path: Union[str, Path]) -> Optional[Announcement]:
    """Load the announced (date, priority) pair.

    Returns:
        Announcement, or None if the file does not exist

    Raises:
        ConfigurationError: If the file exists but cannot be parsed
    """
    path = Path(path)
    if not path.exists():
        logger.debug(f"No announcement file at {path}")
        return None

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return Announcement(**data)
    except ValidationError as e:
        raise ConfigurationError(f"invalid announcement in {path}: {_describe(e)}")
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, TypeError) as e:
        raise ConfigurationError(f"unable to load announcement from {path}: {e}")


def build_context(
    config: ConfigFile,
    branch: Optional[str] = None,
    force: bool = False,
    fallback: bool = False,
) -> RunContext:
    """Resolve the branch and collect everything a run needs.

    The command-line branch takes precedence over the configured default.

    Raises:
        ConfigurationError: If no branch is given or it is not configured
    """
    settings = config.settings
    branch = branch or settings.branch
    if not branch:
        raise ConfigurationError("no branch given in settings or command line")

    branch_settings = config.branches.get(branch)
    if branch_settings is None:
        raise ConfigurationError(f"unable to load branch configuration for '{branch}'")

    old_version = None
    if settings.version_file is not None:
        old_version = read_version_file(settings.version_file)

    announcement = None
    if settings.announcement_file is not None:
        announcement = load_announcement(settings.announcement_file)

    return RunContext(
        branch=branch,
        branch_name=branch_settings.name,
        mirrors=tuple(branch_settings.mirrors),
        pubkeys=tuple(branch_settings.pubkeys),
        good_signatures=branch_settings.good_signatures,
        enabled=settings.enabled,
        old_version=old_version,
        force=force,
        fallback=fallback,
        lock_file=settings.lock_file,
        hook_dir=settings.hook_dir,
        work_dir=settings.work_dir,
        verifier=settings.verifier,
        hook_timeout=settings.hook_timeout,
        announcement=announcement,
    )


def load_context(
    path: Union[str, Path] = DEFAULT_CONFIG_PATH,
    branch: Optional[str] = None,
    force: bool = False,
    fallback: bool = False,
) -> RunContext:
    """Load the configuration file and build the run context from it."""
    return build_context(load_config(path), branch=branch, force=force, fallback=fallback)


def _describe(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err["loc"])
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)
