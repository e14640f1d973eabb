"""Event sink protocol — observability channel."""
from typing import Protocol

from ..models import StrategyEvent


class EventSink(Protocol):
    """Abstract interface for receiving committed strategy events."""

    async def publish(self, event: StrategyEvent) -> None: ...
