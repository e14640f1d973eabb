"""In-process event sinks and the per-call event bus."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from contextvars import ContextVar
from dataclasses import asdict
from typing import AsyncIterator, Iterable

from ..interfaces.events import EventSink
from ..models import StrategyEvent

logger = logging.getLogger(__name__)


class EventBus:
    """Fan events out to sinks, holding them back until the call commits.

    Inside ``collect()`` published events are buffered for the current task
    context; they reach the sinks only if the block exits without error.
    """

    def __init__(self, sinks: Iterable[EventSink] = ()) -> None:
        self._sinks: list[EventSink] = list(sinks)
        self._pending: ContextVar[list[StrategyEvent] | None] = ContextVar(
            f"pending_events_{id(self)}", default=None
        )

    def subscribe(self, sink: EventSink) -> None:
        self._sinks.append(sink)

    async def publish(self, event: StrategyEvent) -> None:
        pending = self._pending.get()
        if pending is not None:
            pending.append(event)
            return
        await self._dispatch(event)

    @asynccontextmanager
    async def collect(self) -> AsyncIterator[list[StrategyEvent]]:
        outer = self._pending.get()
        pending: list[StrategyEvent] = []
        token = self._pending.set(pending)
        try:
            yield pending
        finally:
            self._pending.reset(token)

        if outer is not None:
            outer.extend(pending)
            return
        for event in pending:
            await self._dispatch(event)

    async def _dispatch(self, event: StrategyEvent) -> None:
        for sink in self._sinks:
            try:
                await sink.publish(event)
            except Exception as e:
                logger.error("Event sink %s failed on %s: %s", type(sink).__name__, event.name, e)


class LoggingEventSink:
    """Write each event to the log."""

    def __init__(self, level: int = logging.INFO) -> None:
        self._level = level

    async def publish(self, event: StrategyEvent) -> None:
        fields = " ".join(f"{k}={v}" for k, v in asdict(event).items())
        logger.log(self._level, "%s %s", event.name, fields)


class RecordingEventSink:
    """Keep every event in memory, in publication order."""

    def __init__(self) -> None:
        self.events: list[StrategyEvent] = []

    async def publish(self, event: StrategyEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: type[StrategyEvent]) -> list[StrategyEvent]:
        return [e for e in self.events if isinstance(e, event_type)]

    @property
    def names(self) -> list[str]:
        return [e.name for e in self.events]
