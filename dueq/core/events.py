"""
EventHub — how a running worker loop reports failures to its host.

Two event kinds exist:

  QueueEvent.ERROR      "error"      store or lock failures inside a tick
  QueueEvent.JOB_ERROR  "job error"  a handler reported failure (ProcessingError)

Listeners receive the DueQError; str(error) is a human-readable message.
Both plain functions and coroutine functions are accepted. A listener that
raises is logged and skipped; it never stops the loop or other listeners.
"""
from __future__ import annotations

import dataclasses
import inspect
from collections.abc import Awaitable, Callable
from enum import Enum

from dueq.domain.errors import DueQError
from dueq.observability.logging import get_logger

logger = get_logger(__name__)

Listener = Callable[[DueQError], Awaitable[None] | None]


class QueueEvent(str, Enum):
    """Event names a host can subscribe to."""

    ERROR = "error"
    JOB_ERROR = "job error"


@dataclasses.dataclass
class EventHub:
    """Listener registry keyed by QueueEvent."""

    _listeners: dict[QueueEvent, list[Listener]] = dataclasses.field(
        default_factory=dict, init=False, repr=False
    )

    def on(self, event: QueueEvent | str, listener: Listener) -> None:
        self._listeners.setdefault(QueueEvent(event), []).append(listener)

    def off(self, event: QueueEvent | str, listener: Listener) -> None:
        listeners = self._listeners.get(QueueEvent(event), [])
        if listener in listeners:
            listeners.remove(listener)

    def listeners(self, event: QueueEvent | str) -> list[Listener]:
        return list(self._listeners.get(QueueEvent(event), []))

    async def emit(self, event: QueueEvent, error: DueQError) -> None:
        for listener in self.listeners(event):
            try:
                result = listener(error)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("listener.failed", queue_event=event.value)
