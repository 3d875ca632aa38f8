"""Testing utilities and fakes for checklist-images."""

from .fakes import (
    FakeBucket,
    FakeLogger,
    FakeRegistrationClient,
    FakeStorageClient,
    StoredObject,
    create_noise_image,
    create_quadrant_image,
    create_test_image,
    encode_jpeg,
    make_source_image,
    to_stored_orientation,
)

__all__ = [
    "FakeStorageClient",
    "FakeRegistrationClient",
    "FakeLogger",
    "FakeBucket",
    "StoredObject",
    "create_test_image",
    "create_noise_image",
    "create_quadrant_image",
    "encode_jpeg",
    "make_source_image",
    "to_stored_orientation",
]
