"""Typed event names and payload models for the console bus."""
from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Dict, Mapping, Type, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from consolebus.bus import EventBus
from consolebus.errors import PayloadError, UnknownEventError


class EventName(str, Enum):
    LOADING = "nacosLoadingEvent"


class LoadingState(BaseModel):
    """State broadcast by the loading indicator."""

    model_config = ConfigDict(extra="allow")

    visible: bool = Field(default=False, description="Whether the overlay is shown")
    spinning: bool = Field(default=False, description="Whether the spinner is animating")
    text: str = Field(default="Loading...", description="Overlay caption")
    background: str = Field(default="rgba(0, 0, 0, 0.7)", description="Overlay background colour")


EVENT_PAYLOADS: Dict[EventName, Type[BaseModel]] = {
    EventName.LOADING: LoadingState,
}


def payload_model(name: Union[EventName, str]) -> Type[BaseModel]:
    try:
        return EVENT_PAYLOADS[EventName(name)]
    except (KeyError, ValueError) as exc:
        raise UnknownEventError(f"No payload model registered for event '{name}'") from exc


def publish(bus: EventBus, name: Union[EventName, str], payload: Union[BaseModel, Mapping[str, Any]]) -> BaseModel:
    """Validate ``payload`` against the model for ``name`` and trigger it.

    Raises:
        UnknownEventError: If ``name`` has no registered payload model
        PayloadError: If the payload does not validate
    """
    model = payload_model(name)
    try:
        if isinstance(payload, model):
            event = payload
        elif isinstance(payload, BaseModel):
            event = model.model_validate(payload.model_dump())
        else:
            event = model.model_validate(dict(payload))
    except (ValidationError, TypeError, ValueError) as exc:
        raise PayloadError(f"Invalid payload for event '{EventName(name).value}': {exc}") from exc
    bus.trigger(EventName(name), event)
    return event


def subscribe(
    bus: EventBus,
    name: Union[EventName, str],
    handler: Callable[[Any], Any],
    once: bool = False,
) -> None:
    payload_model(name)
    bus.listen(EventName(name), handler, once=once)
