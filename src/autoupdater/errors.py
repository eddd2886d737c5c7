"""Exception and warning types raised by the autoupdater."""


class AutoupdaterError(Exception):
    """Base class for errors that end an autoupdater run."""


class ConfigurationError(AutoupdaterError):
    """Required settings are missing or invalid."""


class LockFileError(ConfigurationError):
    """The lock file could not be opened."""


class LockContentionError(AutoupdaterError):
    """Another autoupdater instance holds the run lock."""

    def __init__(self, path: str):
        super().__init__("another instance is currently running")
        self.path = path


AlreadyRunning = LockContentionError


class UptimeUnavailableError(AutoupdaterError):
    """System uptime could not be determined."""


class NoUsableMirrorError(AutoupdaterError):
    """Every configured mirror was attempted and none succeeded."""

    def __init__(self, attempts: int):
        super().__init__("no usable mirror found")
        self.attempts = attempts


class ClockFaultWarning(UserWarning):
    """The local clock is behind the announcement date."""
