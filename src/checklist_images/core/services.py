"""Checklist image upload orchestration."""

import time
import uuid
from contextlib import nullcontext
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from .compression import ImageCompressor
from .concurrency import run_with_concurrency
from .error_handling import BatchOperationContextManager
from .models import (
    CompressionOptions,
    SourceImage,
    UploadResult,
    UploadTask,
    UploaderConfig,
    clamp_concurrency,
)
from .observability import LogContext, MetricsCollector, StructuredLogger
from .protocols import LoggerProtocol, RegistrationClientProtocol, StorageClientProtocol


def build_storage_path(record_id: Any, context_id: int, filename: str) -> str:
    """Storage key of an artifact, namespaced by record and checklist item."""
    return f"os-{record_id}/check-{context_id}/{filename}"


class UploadTaskFactory:
    """Factory for creating upload tasks."""

    @staticmethod
    def create_tasks(
        files_by_item: Mapping[str, Sequence[SourceImage]],
        item_to_context_id: Mapping[str, int],
    ) -> List[UploadTask]:
        """Flatten item -> files into one task per file.

        Items without a context id, or with no files, contribute nothing.
        """
        tasks = []

        for item_title, files in files_by_item.items():
            context_id = item_to_context_id.get(item_title)
            if not context_id or not files:
                continue
            for file in files:
                tasks.append(UploadTask(file=file, context_id=context_id))

        return tasks


class ChecklistImageUploader:
    """Compresses, uploads and registers checklist photos."""

    def __init__(
        self,
        storage: StorageClientProtocol,
        registry: RegistrationClientProtocol,
        logger: Optional[LoggerProtocol] = None,
        compressor: Optional[ImageCompressor] = None,
        config: Optional[UploaderConfig] = None,
        metrics_collector: Optional[MetricsCollector] = None,
        id_factory: Callable[[], Any] = uuid.uuid4,
    ):
        self._storage = storage
        self._registry = registry
        self._logger = logger or StructuredLogger("checklist-images.uploader")
        self._compressor = compressor or ImageCompressor()
        self._config = config or UploaderConfig()
        self._metrics_collector = metrics_collector
        self._id_factory = id_factory

    @property
    def config(self) -> UploaderConfig:
        return self._config

    async def upload(
        self,
        record_id: Any,
        files_by_item: Mapping[str, Sequence[SourceImage]],
        item_to_context_id: Mapping[str, int],
        concurrency: Optional[int] = None,
        compression: Optional[Dict[str, Any]] = None,
    ) -> int:
        """
        Upload every file and register the resulting URLs in one call.

        Args:
            record_id: Owning record (work order) id used in storage paths.
            files_by_item: Checklist item title -> files attached to it.
            item_to_context_id: Checklist item title -> backing record id.
            concurrency: In-flight task bound, clamped to [1, 8]. Defaults
                to the configured value.
            compression: Partial CompressionOptions overrides.

        Returns:
            Number of images registered.

        Raises:
            DecodeError, EncodeError, StorageError, RegistrationError: The
                first failure aborts the whole batch.
        """
        tasks = UploadTaskFactory.create_tasks(files_by_item, item_to_context_id)
        if not tasks:
            self._logger.info("No images to upload")
            return 0

        limit = clamp_concurrency(
            concurrency if concurrency is not None else self._config.concurrency
        )
        options = self._config.compression.merged(compression)
        log_context = LogContext(
            operation="upload_checklist_images",
            component="checklist_image_uploader",
        ).with_metadata(record_id=record_id, tasks=len(tasks), concurrency=limit)

        async def worker(task: UploadTask, index: int) -> UploadResult:
            return await self._process_task(record_id, task, index, options, log_context)

        with BatchOperationContextManager("checklist image upload", len(tasks)):
            results = await run_with_concurrency(tasks, limit, worker)

            register_context = log_context.with_operation("register_images")
            self._logger.debug("Registering uploaded images", register_context)
            with self._track("register_images", count=len(results)):
                await self._registry.register(results)

        self._logger.info("Registered checklist images", log_context, count=len(results))
        if self._metrics_collector is not None:
            for operation in ("compress_image", "upload_image"):
                summary = self._metrics_collector.get_summary(operation)
                self._logger.debug(
                    "Operation timings", log_context.with_operation(operation), **summary
                )
        return len(results)

    async def _process_task(
        self,
        record_id: Any,
        task: UploadTask,
        index: int,
        options: CompressionOptions,
        log_context: LogContext,
    ) -> UploadResult:
        task_context = log_context.with_metadata(
            index=index, context_id=task.context_id, filename=task.file.filename
        )
        start_time = time.time()

        self._logger.debug("Compressing image", task_context.with_operation("compress"))
        with self._track("compress_image", filename=task.file.filename):
            artifact = await self._compressor.compress(task.file, options)

        filename = f"{self._id_factory()}.{artifact.extension}"
        path = build_storage_path(record_id, task.context_id, filename)
        bucket = self._config.bucket

        upload_context = task_context.with_operation("upload_image").with_metadata(
            path=path, size=artifact.size
        )
        self._logger.debug("Uploading image", upload_context)
        with self._track("upload_image", path=path):
            await self._storage.upload(
                bucket,
                path,
                artifact.data,
                cache_control=self._config.cache_control,
                upsert=False,
                content_type=artifact.mime_type,
            )

        url = self._storage.get_public_url(bucket, path)
        self._logger.info(
            "Uploaded image",
            upload_context,
            processing_time_ms=(time.time() - start_time) * 1000,
        )
        return UploadResult(context_id=task.context_id, url=url)

    def _track(self, operation: str, **metadata: Any):
        if self._metrics_collector is None:
            return nullcontext()
        return self._metrics_collector.track(operation, **metadata)
