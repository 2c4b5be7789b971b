from consolebus.bus import BufferedCall, EventBus, Subscription, get_bus, reset_bus
from consolebus.events import EventName, LoadingState, publish, subscribe
from consolebus.loading import LoadingIndicator
from consolebus.main import bootstrap

__all__ = [
    "BufferedCall",
    "EventBus",
    "EventName",
    "LoadingIndicator",
    "LoadingState",
    "Subscription",
    "bootstrap",
    "get_bus",
    "publish",
    "reset_bus",
    "subscribe",
]
