"""Subscriber lists for orchestrator notifications."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Generic, List, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
Listener = Callable[[T], None]
Unsubscribe = Callable[[], None]


@dataclass(frozen=True)
class ConfigInvalidEvent:
    """The running sidecar reported an invalid configuration."""

    errors: Tuple[str, ...] = ()


@dataclass(frozen=True)
class UserNotice:
    """Message for the presentation layer; ``level`` is ``info``, ``warning`` or ``error``."""

    level: str
    message: str


class EventEmitter(Generic[T]):
    """Plain subscriber list. Listener failures are logged and do not reach the emitter."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Unsubscribe:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self, payload: T) -> None:
        for listener in list(self._listeners):
            try:
                listener(payload)
            except Exception as exc:  # policy_guard: allow-broad-except
                logger.error("%s listener failed: %s", self.name, exc, exc_info=True)

    def clear(self) -> None:
        self._listeners.clear()

    def __len__(self) -> int:
        return len(self._listeners)


__all__ = ["ConfigInvalidEvent", "EventEmitter", "UserNotice"]
