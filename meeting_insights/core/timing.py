"""
Performance timing utilities for debugging.

This module provides a decorator that measures execution time of pipeline
stages when the MI_DEBUG environment variable is set. Coroutine functions
are timed across their awaited duration.
"""

import asyncio
import functools
import logging
import os
import time
from typing import Any, Callable, TypeVar

F = TypeVar("F", bound=Callable[..., Any])

logger = logging.getLogger(__name__)


def _debug_enabled() -> bool:
    return os.getenv("MI_DEBUG") == "1"


def _report(name: str, start_time: float) -> None:
    elapsed_ms = (time.perf_counter() - start_time) * 1000
    logger.info(f"[MI_DEBUG] {name}: {elapsed_ms:.2f}ms")


def timer(func: F) -> F:
    """
    Decorator that logs execution time when MI_DEBUG=1.

    The flag is checked per call so tests and the CLI can toggle it at runtime.
    """
    if asyncio.iscoroutinefunction(func):

        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            if not _debug_enabled():
                return await func(*args, **kwargs)
            start_time = time.perf_counter()
            try:
                return await func(*args, **kwargs)
            finally:
                _report(func.__qualname__, start_time)

        return async_wrapper  # type: ignore[return-value]

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        if not _debug_enabled():
            return func(*args, **kwargs)
        start_time = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            _report(func.__qualname__, start_time)

    return wrapper  # type: ignore[return-value]
