"""Factory classes for creating configured service instances."""

from typing import Optional

import aioboto3

from ..clients.registration import HttpRegistrationClient
from ..clients.storage import S3StorageClient
from .compression import ImageCompressor
from .decoding import create_image_decoder
from .exceptions import ConfigurationError
from .models import UploaderConfig
from .observability import MetricsCollector, StructuredLogger
from .protocols import LoggerProtocol, RegistrationClientProtocol, StorageClientProtocol
from .services import ChecklistImageUploader


class LoggerFactory:
    """Factory for creating logger instances."""

    @staticmethod
    def create_logger(name: str, level: Optional[str] = None) -> LoggerProtocol:
        return StructuredLogger(name, level=level)


class StorageClientFactory:
    """Factory for creating storage client instances."""

    @staticmethod
    def create_s3_storage(
        region_name: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        public_base_url: Optional[str] = None,
    ) -> StorageClientProtocol:
        return S3StorageClient(
            session=aioboto3.Session(),
            region_name=region_name,
            endpoint_url=endpoint_url,
            public_base_url=public_base_url,
        )


class UploaderFactory:
    """Factory for creating a fully wired ChecklistImageUploader."""

    @staticmethod
    def create_uploader(
        api_base_url: Optional[str] = None,
        storage: Optional[StorageClientProtocol] = None,
        registry: Optional[RegistrationClientProtocol] = None,
        logger: Optional[LoggerProtocol] = None,
        config: Optional[UploaderConfig] = None,
        metrics_collector: Optional[MetricsCollector] = None,
        decode_in_threads: Optional[bool] = None,
    ) -> ChecklistImageUploader:
        """
        Create an uploader, building default collaborators where omitted.

        ``api_base_url`` is required unless ``registry`` is given.
        """
        config = config or UploaderConfig()

        if storage is None:
            storage = StorageClientFactory.create_s3_storage()

        if registry is None:
            if not api_base_url:
                raise ConfigurationError("api_base_url is required when no registry is given")
            registry = HttpRegistrationClient(api_base_url, endpoint=config.bulk_endpoint)

        if logger is None:
            logger = LoggerFactory.create_logger("checklist-images.uploader")

        compressor = ImageCompressor(decoder=create_image_decoder(decode_in_threads))

        return ChecklistImageUploader(
            storage=storage,
            registry=registry,
            logger=logger,
            compressor=compressor,
            config=config,
            metrics_collector=metrics_collector,
        )
