"""Skills gap engine exceptions."""


class SkillsGapError(Exception):
    """Base exception for skills gap errors."""


class DataUnavailable(SkillsGapError):
    """Required tables/columns are absent or empty."""


class InvalidArgument(SkillsGapError):
    """Caller supplied a missing or unknown identifier."""

    def __init__(self, message: str, not_found: bool = False):
        super().__init__(message)
        self.not_found = not_found


class ProviderError(SkillsGapError):
    """Text provider failed, timed out or returned unparseable output."""


class StorageError(SkillsGapError):
    """I/O failure while reading from the repository."""


class StorageUnreachable(StorageError):
    """The database cannot be opened at all."""
