"""Context-carrying log formatting and per-operation metrics."""

import dataclasses
import inspect
import logging
import time
import uuid
from contextlib import contextmanager
from functools import wraps
from typing import Any, Callable, Dict, Iterator, Optional
from dataclasses import dataclass, field

from .logging_config import setup_logger


@dataclass(frozen=True)
class LogContext:
    """
    Correlation data attached to every log line of one upload batch.

    Contexts are immutable; ``with_operation`` and ``with_metadata`` derive a
    child that shares the parent's correlation id.
    """

    correlation_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    operation: str = ""
    component: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    def with_operation(self, operation: str) -> "LogContext":
        return dataclasses.replace(self, operation=operation, metadata=dict(self.metadata))

    def with_metadata(self, **kwargs: Any) -> "LogContext":
        return dataclasses.replace(self, metadata={**self.metadata, **kwargs})


def format_message(
    message: str, context: Optional[LogContext] = None, **fields: Any
) -> str:
    """Render ``[operation] [correlation_id] message (key=value, ...)``."""
    values = dict(fields)
    if context is not None:
        message = f"[{context.correlation_id}] {message}"
        if context.operation:
            message = f"[{context.operation}] {message}"
        values = {**context.metadata, **fields}
    if values:
        message += " (" + ", ".join(f"{k}={v}" for k, v in values.items()) + ")"
    return message


class StructuredLogger:
    """LoggerProtocol implementation over a configured stdlib logger."""

    def __init__(self, name: str, level: Optional[str] = None):
        self._logger = setup_logger(name, level=level)

    @property
    def name(self) -> str:
        return self._logger.name

    def _emit(self, level: int, message: str, context: Optional[LogContext], fields):
        self._logger.log(level, format_message(message, context, **fields))

    def debug(self, message: str, context: Optional[LogContext] = None, **kwargs):
        self._emit(logging.DEBUG, message, context, kwargs)

    def info(self, message: str, context: Optional[LogContext] = None, **kwargs):
        self._emit(logging.INFO, message, context, kwargs)

    def warning(self, message: str, context: Optional[LogContext] = None, **kwargs):
        self._emit(logging.WARNING, message, context, kwargs)

    def error(self, message: str, context: Optional[LogContext] = None, **kwargs):
        self._emit(logging.ERROR, message, context, kwargs)


@dataclass
class PerformanceMetrics:
    """Performance metrics for operations."""

    operation: str
    start_time: float
    end_time: float
    success: bool
    error_message: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def duration(self) -> float:
        """Operation duration in seconds."""
        return self.end_time - self.start_time

    @property
    def duration_ms(self) -> float:
        return self.duration * 1000


class MetricsCollector:
    """Collector for performance metrics."""

    def __init__(self):
        self._metrics: list[PerformanceMetrics] = []

    def record_metric(self, metric: PerformanceMetrics):
        self._metrics.append(metric)

    @contextmanager
    def track(self, operation: str, **metadata: Any) -> Iterator[None]:
        """Record duration and outcome of the wrapped block."""
        start_time = time.time()
        try:
            yield
        except Exception as e:
            self.record_metric(
                PerformanceMetrics(
                    operation=operation,
                    start_time=start_time,
                    end_time=time.time(),
                    success=False,
                    error_message=str(e),
                    metadata=metadata,
                )
            )
            raise
        self.record_metric(
            PerformanceMetrics(
                operation=operation,
                start_time=start_time,
                end_time=time.time(),
                success=True,
                metadata=metadata,
            )
        )

    def get_metrics(self, operation: Optional[str] = None) -> list[PerformanceMetrics]:
        """Get recorded metrics, optionally filtered by operation."""
        if operation:
            return [m for m in self._metrics if m.operation == operation]
        return self._metrics.copy()

    def get_summary(self, operation: Optional[str] = None) -> Dict[str, Any]:
        """Get summary statistics for metrics."""
        metrics = self.get_metrics(operation)

        if not metrics:
            return {}

        durations = [m.duration for m in metrics]
        successful = [m for m in metrics if m.success]

        return {
            "total_operations": len(metrics),
            "successful_operations": len(successful),
            "failed_operations": len(metrics) - len(successful),
            "success_rate": len(successful) / len(metrics),
            "avg_duration": sum(durations) / len(durations),
            "min_duration": min(durations),
            "max_duration": max(durations),
            "total_duration": sum(durations),
        }


def timed_operation(
    operation_name: str,
    logger: Optional[StructuredLogger] = None,
    metrics_collector: Optional[MetricsCollector] = None,
    context: Optional[LogContext] = None,
):
    """Decorator for timing and logging sync or async operations."""

    def decorator(func: Callable) -> Callable:
        def start() -> LogContext:
            operation_context = (context or LogContext()).with_operation(operation_name)
            if logger:
                logger.info(f"Starting {operation_name}", operation_context)
            return operation_context

        def finish(
            operation_context: LogContext,
            start_time: float,
            error: Optional[BaseException],
        ) -> None:
            end_time = time.time()
            duration_ms = (end_time - start_time) * 1000

            if logger:
                if error is None:
                    logger.info(
                        f"Completed {operation_name}",
                        operation_context,
                        duration_ms=duration_ms,
                    )
                else:
                    logger.error(
                        f"Failed {operation_name}: {error}",
                        operation_context,
                        duration_ms=duration_ms,
                    )

            if metrics_collector:
                metrics_collector.record_metric(
                    PerformanceMetrics(
                        operation=operation_name,
                        start_time=start_time,
                        end_time=end_time,
                        success=error is None,
                        error_message=None if error is None else str(error),
                    )
                )

        if inspect.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                start_time = time.time()
                operation_context = start()
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    finish(operation_context, start_time, e)
                    raise
                finish(operation_context, start_time, None)
                return result

            return async_wrapper

        @wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.time()
            operation_context = start()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                finish(operation_context, start_time, e)
                raise
            finish(operation_context, start_time, None)
            return result

        return wrapper

    return decorator
