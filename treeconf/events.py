from __future__ import annotations

"""
Change notification for configuration objects.

A mutating operation on a configuration typically fires two events: one
before the change is applied (``before_update=True``) and one afterwards.
Listeners pick the phase they are interested in.
"""

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable, List, Tuple

logger = logging.getLogger(__name__)


class EventType(IntEnum):
    """Event codes fired by the hierarchical configuration."""

    ADD_PROPERTY = 1
    CLEAR_PROPERTY = 2
    SET_PROPERTY = 3
    CLEAR = 4
    CLEAR_TREE = 10
    ADD_NODES = 11


@dataclass(frozen=True)
class ConfigurationEvent:
    """
    Immutable record of one phase of a configuration update.

    - source: the object that was modified, usually a configuration.
    - type: numeric event code, see EventType for the standard ones.
    - property_name: name of the affected property, None if the update is
      not bound to a single property (e.g. clearing the whole configuration).
    - property_value: the value involved in the update; may be a list or a
      tuple when several values are added at once, None for removals.
    - before_update: True if the event was fired before the update.
    """

    source: Any
    type: int
    property_name: str | None = None
    property_value: Any | None = None
    before_update: bool = False


ConfigurationListener = Callable[[ConfigurationEvent], None]


class EventSource:
    """
    Mixin managing configuration listeners.

    Listeners are plain callables receiving a ConfigurationEvent. They are
    invoked synchronously, in registration order; exceptions raised by a
    listener propagate to the code that triggered the event.
    """

    def __init__(self) -> None:
        self._listeners: List[ConfigurationListener] = []

    def add_configuration_listener(self, listener: ConfigurationListener) -> None:
        if listener is None:
            raise ValueError("Listener must not be None.")
        self._listeners.append(listener)

    def remove_configuration_listener(self, listener: ConfigurationListener) -> bool:
        """Remove a listener. Returns False if it was not registered."""
        try:
            self._listeners.remove(listener)
        except ValueError:
            return False
        return True

    @property
    def configuration_listeners(self) -> Tuple[ConfigurationListener, ...]:
        return tuple(self._listeners)

    def clear_configuration_listeners(self) -> None:
        self._listeners.clear()

    def fire_event(
        self,
        type: int,
        property_name: str | None,
        property_value: Any | None,
        before_update: bool,
    ) -> None:
        if not self._listeners:
            return

        event = self.create_event(type, property_name, property_value, before_update)
        logger.debug(
            "Firing %s for %r (before_update=%s) to %d listener(s)",
            _type_name(event.type),
            event.property_name,
            event.before_update,
            len(self._listeners),
        )
        for listener in list(self._listeners):
            listener(event)

    def create_event(
        self,
        type: int,
        property_name: str | None,
        property_value: Any | None,
        before_update: bool,
    ) -> ConfigurationEvent:
        """Hook for subclasses that want to fire a specialised event type."""
        return ConfigurationEvent(self, type, property_name, property_value, before_update)


def _type_name(type: int) -> str:
    try:
        return EventType(type).name
    except ValueError:
        return str(type)
