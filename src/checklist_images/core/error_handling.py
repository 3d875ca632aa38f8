# src/checklist_images/core/error_handling.py

import functools
import inspect
import logging
from typing import Any, Callable, Optional, Type

import aiohttp
from botocore.exceptions import BotoCoreError, ClientError
from PIL import UnidentifiedImageError

from .exceptions import (
    ChecklistImagesError,
    DecodeError,
    RegistrationError,
    StorageError,
)


def translate_exception(
    exc: Exception,
    func_name: str,
    fallback: Type[ChecklistImagesError] = ChecklistImagesError,
) -> ChecklistImagesError:
    """
    Map a library exception onto the checklist-images hierarchy.

    botocore errors become StorageError, aiohttp errors RegistrationError,
    undecodable images DecodeError; anything else becomes ``fallback``.
    """
    if isinstance(exc, ChecklistImagesError):
        return exc
    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {})
        return StorageError(error.get("Message") or error.get("Code") or str(exc))
    if isinstance(exc, BotoCoreError):
        return StorageError(str(exc))
    if isinstance(exc, aiohttp.ClientError):
        return RegistrationError(str(exc) or f"HTTP request failed in {func_name}")
    if isinstance(exc, UnidentifiedImageError):
        return DecodeError(f"Failed to identify image in {func_name}: {exc}")
    return fallback(str(exc) or f"{type(exc).__name__} in {func_name}")


def with_error_handling(
    func: Optional[Callable[..., Any]] = None,
    *,
    fallback: Type[ChecklistImagesError] = ChecklistImagesError,
) -> Any:
    """
    A decorator to wrap sync or async functions with standardized error handling.

    Errors are logged and re-raised as ChecklistImagesError subclasses.
    Usable bare (``@with_error_handling``) or with a fallback type
    (``@with_error_handling(fallback=DecodeError)``).
    """

    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        def _handle(exc: Exception) -> ChecklistImagesError:
            logger = logging.getLogger(fn.__module__ + "." + fn.__name__)
            translated = translate_exception(exc, fn.__name__, fallback)
            logger.error(f"Error in '{fn.__name__}': {exc}", exc_info=True)
            return translated

        if inspect.iscoroutinefunction(fn):

            @functools.wraps(fn)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                try:
                    return await fn(*args, **kwargs)
                except Exception as e:
                    translated = _handle(e)
                    if translated is e:
                        raise
                    raise translated from e

            return async_wrapper

        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return fn(*args, **kwargs)
            except Exception as e:
                translated = _handle(e)
                if translated is e:
                    raise
                raise translated from e

        return wrapper

    if func is not None:
        return decorator(func)
    return decorator


class BatchOperationContextManager:
    """
    Context manager that logs the start and outcome of a batch operation.
    """

    def __init__(self, operation_name="Batch Operation", item_count=0):
        self.operation_name = operation_name
        self.item_count = item_count
        self.logger = logging.getLogger(
            self.__class__.__module__ + "." + self.__class__.__name__
        )

    def __enter__(self):
        self.logger.info(f"Starting {self.operation_name} ({self.item_count} item(s)).")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            self.logger.error(
                f"{self.operation_name} failed: {exc_val}",
                exc_info=(exc_type, exc_val, exc_tb),
            )
        else:
            self.logger.info(f"{self.operation_name} completed successfully.")
        # Never swallow the exception
        return False
