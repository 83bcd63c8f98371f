"""Fire-and-forget execution of audit and notification side effects."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)


class Dispatcher(Protocol):
    def submit(self, fn: Callable[..., Any], *args: Any) -> None: ...


def _describe(fn: Callable[..., Any]) -> str:
    return getattr(fn, "__qualname__", repr(fn))


class InlineDispatcher:
    """Run side effects in the calling thread, logging instead of raising on failure."""

    def submit(self, fn: Callable[..., Any], *args: Any) -> None:
        try:
            fn(*args)
        except Exception:
            logger.exception("side effect %s failed", _describe(fn))


class BackgroundDispatcher:
    """Run side effects on a small thread pool; failures are logged and dropped."""

    def __init__(self, max_workers: int = 4) -> None:
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="auth-side-effects",
        )

    def submit(self, fn: Callable[..., Any], *args: Any) -> None:
        future = self._executor.submit(fn, *args)
        future.add_done_callback(lambda done: self._log_failure(fn, done))

    @staticmethod
    def _log_failure(fn: Callable[..., Any], future: Future) -> None:
        exc = future.exception()
        if exc is not None:
            logger.error("side effect %s failed: %s", _describe(fn), exc, exc_info=exc)

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting work; pending side effects finish first when ``wait`` is set."""
        self._executor.shutdown(wait=wait)
