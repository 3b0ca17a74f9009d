"""Observer registry used by the store and the scene dock."""

from __future__ import annotations

from typing import Callable, Generic, List, TypeVar

T = TypeVar("T")

Unsubscribe = Callable[[], None]


class ListenerRegistry(Generic[T]):
    """Hold callbacks for a single kind of event.

    Callbacks run synchronously in subscription order. ``subscribe`` returns a
    handle that removes exactly that registration; calling it more than once is
    harmless.
    """

    def __init__(self) -> None:
        self._callbacks: List[Callable[[T], None]] = []

    def subscribe(self, callback: Callable[[T], None]) -> Unsubscribe:
        if not callable(callback):
            raise TypeError("callback must be callable")

        entry = _Registration(callback)
        self._callbacks.append(entry)

        def unsubscribe() -> None:
            try:
                self._callbacks.remove(entry)
            except ValueError:
                pass

        return unsubscribe

    def emit(self, payload: T) -> None:
        # Snapshot so callbacks may unsubscribe while being notified.
        for callback in tuple(self._callbacks):
            callback(payload)

    def clear(self) -> None:
        self._callbacks.clear()

    def __len__(self) -> int:
        return len(self._callbacks)


class _Registration:
    """Wrap a callback so the same function can be subscribed twice."""

    __slots__ = ("callback",)

    def __init__(self, callback: Callable[[T], None]) -> None:
        self.callback = callback

    def __call__(self, payload: T) -> None:
        self.callback(payload)


__all__ = ["ListenerRegistry", "Unsubscribe"]
