"""Tests for structured logging and metrics helpers."""

import asyncio
import logging
from unittest.mock import patch

import pytest

from checklist_images.core.observability import (
    LogContext,
    MetricsCollector,
    PerformanceMetrics,
    StructuredLogger,
    format_message,
    timed_operation,
)
from checklist_images.testing.fakes import FakeLogger


class TestLogContext:
    def test_with_operation_keeps_correlation_id(self):
        context = LogContext(component="uploader").with_metadata(record_id=7)
        derived = context.with_operation("upload_image")

        assert derived.correlation_id == context.correlation_id
        assert derived.operation == "upload_image"
        assert derived.component == "uploader"
        assert derived.metadata == {"record_id": 7}

    def test_with_metadata_does_not_mutate_parent(self):
        parent = LogContext().with_metadata(a=1)
        child = parent.with_metadata(b=2)

        assert parent.metadata == {"a": 1}
        assert child.metadata == {"a": 1, "b": 2}


class TestFormatMessage:
    def test_message_only(self):
        assert format_message("hello") == "hello"

    def test_fields_without_context(self):
        assert format_message("hello", size=3) == "hello (size=3)"

    def test_context_without_operation(self):
        context = LogContext(correlation_id="c1")
        assert format_message("hello", context) == "[c1] hello"

    def test_fields_override_context_metadata(self):
        context = LogContext(correlation_id="c1", operation="op").with_metadata(size=1)
        assert format_message("hello", context, size=2) == "[op] [c1] hello (size=2)"


class TestStructuredLogger:
    def test_formats_context_and_metadata(self):
        logger = StructuredLogger("checklist-images.test-structured")
        context = LogContext(correlation_id="abc", operation="compress").with_metadata(
            filename="a.jpg"
        )

        with patch.object(logger._logger, "log") as mock_log:
            logger.info("Compressing image", context, size=10)

        mock_log.assert_called_once_with(
            logging.INFO, "[compress] [abc] Compressing image (filename=a.jpg, size=10)"
        )

    def test_plain_message(self):
        logger = StructuredLogger("checklist-images.test-plain")

        with patch.object(logger._logger, "log") as mock_log:
            logger.warning("careful")
            logger.error("failed", retries=2)

        assert mock_log.call_args_list[0].args == (logging.WARNING, "careful")
        assert mock_log.call_args_list[1].args == (logging.ERROR, "failed (retries=2)")


class TestMetricsCollector:
    def test_track_records_success(self):
        metrics = MetricsCollector()

        with metrics.track("upload_image", path="a/b"):
            pass

        [metric] = metrics.get_metrics()
        assert metric.operation == "upload_image"
        assert metric.success is True
        assert metric.metadata == {"path": "a/b"}
        assert metric.duration >= 0

    def test_track_records_failure_and_reraises(self):
        metrics = MetricsCollector()

        with pytest.raises(RuntimeError):
            with metrics.track("compress_image"):
                raise RuntimeError("encoder crashed")

        [metric] = metrics.get_metrics("compress_image")
        assert metric.success is False
        assert metric.error_message == "encoder crashed"

    def test_summary(self):
        metrics = MetricsCollector()
        metrics.record_metric(PerformanceMetrics("op", 0.0, 1.0, True))
        metrics.record_metric(PerformanceMetrics("op", 0.0, 3.0, False, "boom"))

        summary = metrics.get_summary("op")

        assert summary["total_operations"] == 2
        assert summary["successful_operations"] == 1
        assert summary["failed_operations"] == 1
        assert summary["success_rate"] == 0.5
        assert summary["avg_duration"] == 2.0
        assert summary["max_duration"] == 3.0
        assert metrics.get_summary("other") == {}


class TestTimedOperation:
    def test_sync_success(self):
        logger = FakeLogger()
        metrics = MetricsCollector()

        @timed_operation("resize", logger=logger, metrics_collector=metrics)
        def resize(width):
            return width // 2

        assert resize(100) == 50
        assert [log["message"] for log in logger.logs] == ["Starting resize", "Completed resize"]
        assert logger.logs[1]["operation"] == "resize"
        assert "duration_ms" in logger.logs[1]
        [metric] = metrics.get_metrics("resize")
        assert metric.success is True

    def test_sync_failure(self):
        logger = FakeLogger()
        metrics = MetricsCollector()

        @timed_operation("resize", logger=logger, metrics_collector=metrics)
        def resize():
            raise ValueError("bad size")

        with pytest.raises(ValueError):
            resize()

        assert logger.get_logs("ERROR")[0]["message"] == "Failed resize: bad size"
        [metric] = metrics.get_metrics()
        assert metric.success is False
        assert metric.error_message == "bad size"

    def test_async_success_keeps_context(self):
        logger = FakeLogger()
        context = LogContext(correlation_id="batch-1")

        @timed_operation("register", logger=logger, context=context)
        async def register():
            await asyncio.sleep(0)
            return "ok"

        assert asyncio.run(register()) == "ok"
        assert all(log["correlation_id"] == "batch-1" for log in logger.logs)
        assert logger.logs[-1]["message"] == "Completed register"

    def test_async_failure(self):
        metrics = MetricsCollector()

        @timed_operation("register", metrics_collector=metrics)
        async def register():
            await asyncio.sleep(0)
            raise ConnectionError("refused")

        with pytest.raises(ConnectionError):
            asyncio.run(register())

        assert metrics.get_summary("register")["failed_operations"] == 1

    def test_without_logger_or_metrics(self):
        @timed_operation("noop")
        def noop():
            return None

        assert noop() is None
