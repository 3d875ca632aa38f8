"""Exception hierarchy for checklist-images."""

from __future__ import annotations

from typing import Optional


class ChecklistImagesError(Exception):
    """Base exception for all checklist-images errors."""


class ConfigurationError(ChecklistImagesError):
    """Error raised for invalid configuration options."""


class DecodeError(ChecklistImagesError):
    """Raised when the source bytes cannot be decoded as an image."""

    def __init__(self, message: str, filename: Optional[str] = None):
        super().__init__(message)
        self.filename = filename


class EncodeError(ChecklistImagesError):
    """Raised when a pixel buffer cannot be encoded to bytes."""


class StorageError(ChecklistImagesError):
    """Error raised when the storage collaborator rejects an upload."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class RegistrationError(ChecklistImagesError):
    """Error raised when the bulk registration call fails."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status
