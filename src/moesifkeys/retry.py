"""Bounded retry with a fixed delay between attempts.

:func:`retry_call` runs a zero-argument operation once and, when it raises
one of the *retry_on* exception types, waits a fixed delay and tries again
up to ``attempts`` more times. Exceptions outside *retry_on* propagate from
the attempt that raised them.

Waiting is done on a :class:`threading.Event` so that another thread can
cancel the wait. A cancelled wait raises
:class:`~moesifkeys.exceptions.RetryInterrupted` instead of silently giving
up.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional, TypeVar

from moesifkeys.exceptions import RetryInterrupted, TransportError
from moesifkeys.models import RetryConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


def retry_call(
    operation: Callable[[], T],
    attempts: int,
    delay: float,
    retry_on: tuple[type[BaseException], ...] = (TransportError,),
    cancel_event: Optional[threading.Event] = None,
    description: str = "operation",
) -> T:
    """Run *operation*, retrying recoverable failures.

    Args:
        operation: Zero-argument callable to run.
        attempts: Number of retries after the first call. ``0`` means a
            single call.
        delay: Seconds to wait before each retry.
        retry_on: Exception types treated as recoverable.
        cancel_event: When set during a wait, the wait ends and
            :class:`RetryInterrupted` is raised.
        description: Short label used in log messages.

    Returns:
        The first successful result of *operation*.

    Raises:
        RetryInterrupted: If *cancel_event* is set before or during a wait.
        Exception: The last recoverable failure once the budget is spent,
            or any non-recoverable failure immediately.
    """
    if attempts < 0:
        raise ValueError("attempts must be >= 0")
    event = cancel_event if cancel_event is not None else threading.Event()

    for attempt in range(attempts + 1):
        try:
            result = operation()
        except retry_on as exc:
            if attempt == attempts:
                logger.error(
                    "%s failed after %d attempt(s): %s", description, attempt + 1, exc
                )
                raise
            logger.warning(
                "%s failed (attempt %d/%d), retrying in %.1fs: %s",
                description, attempt + 1, attempts + 1, delay, exc,
            )
            if event.wait(delay):
                raise RetryInterrupted(
                    f"{description} interrupted while waiting to retry"
                ) from exc
            continue
        if attempt > 0:
            logger.info("%s succeeded on attempt %d", description, attempt + 1)
        return result

    raise AssertionError("unreachable")  # pragma: no cover


class RetryPolicy:
    """A :class:`~moesifkeys.models.RetryConfig` bound to a cancel event.

    The retriever owns one policy and runs both of its fetches through it,
    so closing the retriever cancels whichever retry wait is in progress.

    Args:
        config: Attempt budget and delay.
        cancel_event: Shared cancellation flag. A fresh event is created
            when omitted.
    """

    def __init__(
        self,
        config: RetryConfig,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        self.config = config
        self.cancel_event = cancel_event if cancel_event is not None else threading.Event()

    def run(self, operation: Callable[[], T], description: str = "operation") -> T:
        """Run *operation* under this policy. See :func:`retry_call`."""
        return retry_call(
            operation,
            attempts=self.config.attempts,
            delay=self.config.delay_seconds,
            cancel_event=self.cancel_event,
            description=description,
        )

    def cancel(self) -> None:
        """Abort every current and future wait of this policy."""
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()
