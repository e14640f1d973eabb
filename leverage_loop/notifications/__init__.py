"""Event sinks."""
from .sinks import EventBus, LoggingEventSink, RecordingEventSink
from .telegram import TelegramEventSink

__all__ = ["EventBus", "LoggingEventSink", "RecordingEventSink", "TelegramEventSink"]
