"""Cooperative cancellation for long-running optimizations and simulations."""

import threading

from pitstrategy.errors import OperationCancelledError


class CancellationToken:
    """Thread-safe flag checked at lap and iteration boundaries.

    A caller embedding the optimizer or simulator in a service keeps a
    reference to the token and calls ``cancel()`` from any thread; the
    running operation raises ``OperationCancelledError`` at its next check.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, operation: str, progress=None) -> None:
        if self._event.is_set():
            raise OperationCancelledError(operation, progress)
