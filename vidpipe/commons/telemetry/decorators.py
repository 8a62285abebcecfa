"""Telemetry helpers: execution timing and scoped log context."""

import functools
import inspect
import logging
import time
from collections.abc import Callable
from contextvars import Token
from typing import Any, ParamSpec, TypeVar, overload

from vidpipe.commons.telemetry.logger import (
    get_log_context,
    get_logger,
    log_context_var,
)

P = ParamSpec("P")
R = TypeVar("R")


@overload
def timed(
    func: Callable[P, R],
) -> Callable[P, R]: ...


@overload
def timed(
    *,
    logger: logging.Logger | None = None,
    level: int = logging.DEBUG,
    threshold_ms: float | None = None,
) -> Callable[[Callable[P, R]], Callable[P, R]]: ...


def timed(
    func: Callable[P, R] | None = None,
    *,
    logger: logging.Logger | None = None,
    level: int = logging.DEBUG,
    threshold_ms: float | None = None,
) -> Callable[P, R] | Callable[[Callable[P, R]], Callable[P, R]]:
    """Decorator to measure and log function execution time.

    Works for plain and coroutine functions, with or without arguments:
        @timed
        async def probe(...): ...

        @timed(level=logging.INFO, threshold_ms=500)
        async def transform(...): ...

    Args:
        func: The function to decorate (when used without parentheses).
        logger: Optional logger instance. Defaults to the function's module logger.
        level: Log level for timing messages.
        threshold_ms: Only log if execution exceeds this threshold in milliseconds.

    Returns:
        Decorated function.
    """

    def decorator(fn: Callable[P, R]) -> Callable[P, R]:
        log = logger or get_logger(fn.__module__)

        def _report(started: float) -> None:
            elapsed_ms = (time.perf_counter() - started) * 1000
            if threshold_ms is None or elapsed_ms >= threshold_ms:
                log.log(
                    level,
                    f"{fn.__qualname__} completed",
                    extra={"duration_ms": round(elapsed_ms, 2)},
                )

        @functools.wraps(fn)
        def sync_wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            started = time.perf_counter()
            try:
                return fn(*args, **kwargs)
            finally:
                _report(started)

        @functools.wraps(fn)
        async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            started = time.perf_counter()
            try:
                return await fn(*args, **kwargs)  # type: ignore[misc, no-any-return]
            finally:
                _report(started)

        if inspect.iscoroutinefunction(fn):
            return async_wrapper  # type: ignore[return-value]
        return sync_wrapper

    if func is not None:
        return decorator(func)
    return decorator


class LogContext:
    """Context manager binding fields (job_id, session_id...) to log records."""

    def __init__(self, **kwargs: Any) -> None:
        self.context = kwargs
        self._token: Token[dict[str, Any]] | None = None

    def __enter__(self) -> "LogContext":
        self._token = log_context_var.set({**get_log_context(), **self.context})
        return self

    def __exit__(self, *args: Any) -> None:
        if self._token is not None:
            log_context_var.reset(self._token)
            self._token = None
