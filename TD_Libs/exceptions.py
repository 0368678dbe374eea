"""
Error types for TdStudio.

Classes:
    StudioError: Base class for all library errors
    SurfaceUnavailableError: A drawing surface could not be created
    ImageDecodeError: Input bytes are not a decodable image
    PersistenceError: The storage medium rejected a write
    QuotaExceededError: The storage medium is out of capacity
"""


class StudioError(Exception):
    """Base class for TdStudio errors."""


class SurfaceUnavailableError(StudioError):
    """Raised when a drawing surface cannot be obtained."""


class ImageDecodeError(StudioError, ValueError):
    """Raised when raw bytes cannot be decoded into an image."""


class PersistenceError(StudioError):
    """Raised when a storage medium fails to write or remove a value."""


class QuotaExceededError(PersistenceError):
    """Raised when a write would exceed the storage medium's capacity."""

    def __init__(self, key: str, required: int, quota: int) -> None:
        super().__init__(
            f"Writing '{key}' needs {required} units but the quota is {quota}"
        )
        self.key = key
        self.required = required
        self.quota = quota
