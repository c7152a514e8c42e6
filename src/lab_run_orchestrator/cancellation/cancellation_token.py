"""Cooperative cancellation shared by every step of an orchestrated run."""

from __future__ import annotations

import threading


class OperationCancelledError(Exception):
    """Raised when an operation observes that its cancellation token fired."""


class CancellationToken:
    """Read-only view of a cancellation source handed to collaborators."""

    def __init__(self, source: CancellationSource) -> None:
        self._source = source

    @property
    def is_cancelled(self) -> bool:
        return self._source.is_cancelled

    def raise_if_cancelled(self) -> None:
        """Raise OperationCancelledError when cancellation was requested."""
        if self._source.is_cancelled:
            raise OperationCancelledError("Operation was cancelled.")

    def wait(self, timeout: float | None = None) -> bool:
        """Block until cancelled or until the timeout elapses; return is_cancelled."""
        return self._source.wait(timeout)

    @staticmethod
    def none() -> CancellationToken:
        """Return a token that is never cancelled."""
        return CancellationSource().token


class CancellationSource:
    """Owner side of a cancellation token.

    A source may be linked to a parent token: cancelling the parent cancels
    the linked source as well, while cancelling the linked source leaves the
    parent untouched. `cancel_after` arms a timer that cancels the source
    when a deadline expires, which is how timeouts become cancellation.
    """

    def __init__(self, linked_to: CancellationToken | None = None) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._children: list[CancellationSource] = []
        self._timer: threading.Timer | None = None
        self._parent: CancellationSource | None = None
        self.token = CancellationToken(self)
        if linked_to is not None:
            self._parent = linked_to._source  # pylint: disable=protected-access
            self._parent._register_child(self)  # pylint: disable=protected-access

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        """Cancel this source and every source linked to it."""
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            children = list(self._children)
        for child in children:
            child.cancel()

    def cancel_after(self, seconds: float) -> None:
        """Cancel this source once `seconds` have elapsed."""
        if seconds <= 0:
            self.cancel()
            return
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(seconds, self.cancel)
            self._timer.daemon = True
            self._timer.start()

    def wait(self, timeout: float | None = None) -> bool:
        return self._event.wait(timeout)

    def close(self) -> None:
        """Disarm the timer and detach from the parent source."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        if self._parent is not None:
            self._parent._unregister_child(self)  # pylint: disable=protected-access
            self._parent = None

    def __enter__(self) -> CancellationSource:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _register_child(self, child: CancellationSource) -> None:
        with self._lock:
            already_cancelled = self._event.is_set()
            if not already_cancelled:
                self._children.append(child)
        if already_cancelled:
            child.cancel()

    def _unregister_child(self, child: CancellationSource) -> None:
        with self._lock:
            if child in self._children:
                self._children.remove(child)
