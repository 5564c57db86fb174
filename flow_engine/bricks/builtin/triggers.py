"""Built-in triggers."""

from typing import Any, Dict, Optional

from ...services.events import EventBus, get_event_bus
from ..base import TriggerBrick


class ManualTrigger(TriggerBrick):
    """Fires only when a run is started explicitly."""

    label = "Manual Trigger"


class EventTrigger(TriggerBrick):
    """Starts the flow whenever `event` is published on the in-process event bus."""

    label = "Event Trigger"
    required_fields = ("event",)

    def __init__(self, config: Optional[Dict[str, Any]] = None, bus: Optional[EventBus] = None):
        super().__init__(config)
        self.bus = bus or get_event_bus()

    @property
    def event_name(self) -> str:
        return self.config_value("event", "")

    def register(self) -> None:
        if not self.event_name:
            raise ValueError("EventTrigger requires an 'event' name")
        self.bus.subscribe(self.event_name, self._on_event)
        self.logger.info(f"Listening for '{self.event_name}' (flow {self.flow_id})")

    def unregister(self) -> None:
        self.bus.unsubscribe(self.event_name, self._on_event)

    def _on_event(self, payload: Dict[str, Any]) -> Any:
        return self.dispatch(payload)
