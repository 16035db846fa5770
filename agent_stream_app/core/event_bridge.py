"""
Forwards engine events to an outward notification sink.
"""

import logging
from collections.abc import Callable
from typing import Any

from agent_stream_app.core.engine import FlowEngine
from agent_stream_app.models.events import (
    AgentDisplayEvent,
    AgentErrorEvent,
    AgentEvent,
    AgentInEvent,
)

log = logging.getLogger(__name__)

EMIT_DISPLAY = "askit:display"
EMIT_ERROR = "askit:error"
EMIT_INPUT = "askit:input"

EventSink = Callable[[str, dict[str, Any]], None]


def to_notification(event: AgentEvent) -> tuple[str, dict[str, Any]]:
    """Converts an engine event to an (event name, payload) pair."""
    if isinstance(event, AgentInEvent):
        return EMIT_INPUT, {"agent_id": event.agent_id, "ch": event.channel}
    if isinstance(event, AgentDisplayEvent):
        return EMIT_DISPLAY, {
            "agent_id": event.agent_id,
            "key": event.key,
            "data": event.data,
        }
    if isinstance(event, AgentErrorEvent):
        return EMIT_ERROR, {"agent_id": event.agent_id, "message": event.message}
    raise TypeError(f"Unsupported engine event: {type(event).__name__}")


class EventBridge:
    """
    Stateless forwarder from the engine's event channel to a sink.

    Delivery is synchronous and at most once. A failing sink is logged and
    never retried, and the failure never reaches the engine.
    """

    def __init__(self, engine: FlowEngine, sink: EventSink):
        self.engine = engine
        self.sink = sink
        self._handle: int | None = None

    @property
    def attached(self) -> bool:
        return self._handle is not None

    def attach(self) -> None:
        if self._handle is None:
            self._handle = self.engine.subscribe(self.notify)

    def detach(self) -> None:
        if self._handle is not None:
            self.engine.unsubscribe(self._handle)
            self._handle = None

    def notify(self, event: AgentEvent) -> None:
        try:
            name, payload = to_notification(event)
            self.sink(name, payload)
        except Exception as e:
            log.error(f"Failed to emit {type(event).__name__}: {e}")


def log_sink(name: str, payload: dict[str, Any]) -> None:
    """Sink that writes notifications to the application log."""
    if name == EMIT_ERROR:
        log.error(f"Agent error: {payload['agent_id']} - {payload['message']}")
    else:
        log.info(f"{name}: {payload}")
