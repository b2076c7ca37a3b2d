"""Error taxonomy shared by the cache and durable halves."""


class ShadowError(Exception):
    """Base error."""

    def __init__(self, message: str = "Shadow store error"):
        self.message = message
        super().__init__(self.message)


class ValidationError(ShadowError):
    """Malformed caller input. Raised before any I/O."""

    def __init__(self, message: str = "Validation error"):
        super().__init__(message)


class ConfigError(ShadowError):
    """Structural misconfiguration, raised at construction time."""

    def __init__(self, message: str = "Configuration error"):
        super().__init__(message)


class CacheFailure(ShadowError):
    """The cache rejected or failed the caller-facing half of a command."""

    def __init__(self, message: str = "Cache failure", key: str | None = None):
        self.key = key
        super().__init__(message)


class ListIndexError(ShadowError, IndexError):
    """A list index or rank that matches no element."""

    def __init__(self, message: str = "index not found"):
        super().__init__(message)
