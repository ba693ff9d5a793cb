"""
Custom exception hierarchy for picsort.

Per-file errors (hashing, copying) are caught by the dispatcher and reported
for the file alone; ConfigurationError is the only one that stops a run.
"""


class PicsortError(Exception):
    """Base exception for all picsort errors."""
    pass


class FileHashError(PicsortError):
    """Raised when a file cannot be read for fingerprinting."""
    pass


class MetadataExtractionError(PicsortError):
    """Raised when embedded metadata cannot be decoded from a file."""
    pass


class FileOperationError(PicsortError):
    """Raised when a copy into the destination tree fails."""
    pass


class DateUnresolvableError(PicsortError):
    """Raised when every date strategy declined a file."""
    pass


class ConfigurationError(PicsortError):
    """Raised for setup problems detected before any file is processed."""
    pass


class RegistryClosedError(PicsortError):
    """Raised when a closed duplicate registry is used."""
    pass
