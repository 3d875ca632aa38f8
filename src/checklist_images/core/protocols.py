"""Protocol definitions for dependency injection and testability."""

from typing import Any, List, Protocol

from .models import UploadResult


class StorageClientProtocol(Protocol):
    """Protocol for the object-storage collaborator."""

    async def upload(
        self,
        bucket: str,
        path: str,
        data: bytes,
        *,
        cache_control: str,
        upsert: bool,
        content_type: str,
    ) -> None:
        """Store ``data`` at ``bucket/path``; raises StorageError on failure."""
        ...

    def get_public_url(self, bucket: str, path: str) -> str:
        """Derive the public URL of ``bucket/path`` without a network call."""
        ...


class RegistrationClientProtocol(Protocol):
    """Protocol for the bulk image registration backend."""

    async def register(self, results: List[UploadResult]) -> None:
        """Persist all results in one call; raises RegistrationError on failure."""
        ...


class LoggerProtocol(Protocol):
    """Protocol for logging operations."""

    def debug(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log debug message."""
        ...

    def info(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log info message."""
        ...

    def warning(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log warning message."""
        ...

    def error(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log error message."""
        ...
