class RangeLogError(Exception):
    """Base class for everything raised inside rangelog."""


class ConfigError(RangeLogError):
    """Configuration file missing or invalid."""


class StartupFatal(RangeLogError):
    """No usable port: the poll loop must not start."""


class ReadIoError(RangeLogError):
    """A serial read failed for a reason other than a timeout."""

    def __init__(self, path: str, cause: Exception):
        super().__init__(f"{path}: {cause}")
        self.path = path
        self.cause = cause
