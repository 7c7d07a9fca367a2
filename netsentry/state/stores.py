"""Minimal observable stores: writable values and derived read-only views."""

from __future__ import annotations

from typing import Callable, Generic, Protocol, TypeVar

T = TypeVar("T")
S = TypeVar("S")

Subscriber = Callable[[T], None]
Unsubscribe = Callable[[], None]


class Readable(Protocol[T]):
    def get(self) -> T:
        """Return the current value."""

    def subscribe(self, callback: Callable[[T], None]) -> Unsubscribe:
        """Call ``callback`` now and after every change; return an unsubscriber."""


class _Subscribers(Generic[T]):
    def __init__(self) -> None:
        self._callbacks: list[Callable[[T], None]] = []

    def add(self, callback: Callable[[T], None]) -> Unsubscribe:
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def notify(self, value: T) -> None:
        for callback in list(self._callbacks):
            callback(value)


class Writable(Generic[T]):
    """Holds a value and pushes every replacement to subscribers synchronously."""

    def __init__(self, value: T) -> None:
        self._value = value
        self._subscribers: _Subscribers[T] = _Subscribers()

    def get(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        self._value = value
        self._subscribers.notify(value)

    def update(self, fn: Callable[[T], T]) -> None:
        self.set(fn(self._value))

    def subscribe(self, callback: Callable[[T], None]) -> Unsubscribe:
        unsubscribe = self._subscribers.add(callback)
        callback(self._value)
        return unsubscribe

    def readonly(self) -> "ReadOnly[T]":
        return ReadOnly(self)


class ReadOnly(Generic[T]):
    """Read-only facade over a store; it has no ``set``."""

    def __init__(self, source: Readable[T]) -> None:
        self._source = source

    def get(self) -> T:
        return self._source.get()

    def subscribe(self, callback: Callable[[T], None]) -> Unsubscribe:
        return self._source.subscribe(callback)


class Derived(Generic[S, T]):
    """Value computed from another store.

    ``get`` always recomputes from the source, and subscribers are notified in
    the same call that changed the source, so a derived value is never stale.
    """

    def __init__(self, source: Readable[S], compute: Callable[[S], T]) -> None:
        self._source = source
        self._compute = compute

    def get(self) -> T:
        return self._compute(self._source.get())

    def subscribe(self, callback: Callable[[T], None]) -> Unsubscribe:
        return self._source.subscribe(lambda value: callback(self._compute(value)))
