"""Network collaborators: object storage and the registration backend."""

from .registration import HttpRegistrationClient
from .storage import S3StorageClient

__all__ = ["HttpRegistrationClient", "S3StorageClient"]
