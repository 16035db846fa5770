"""
The execution engine as seen from the persistence layer.

`FlowEngine` lists the primitives this package consumes. `LocalEngine` is an
in-process implementation of that surface: a definitions registry, a table of
live flows and an event channel. It does not run agents.
"""

import json
import logging
import threading
import uuid
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError as PydanticValidationError

from agent_stream_app.exceptions import (
    ConflictError,
    NotFoundError,
    ParseError,
    StorageError,
)
from agent_stream_app.models.definition import (
    AgentDefinition,
    AgentDefinitions,
    definitions_from_dict,
)
from agent_stream_app.models.events import AgentEvent
from agent_stream_app.models.flow import AgentFlow, AgentFlowEdge, AgentFlowNode

log = logging.getLogger(__name__)

EventCallback = Callable[[AgentEvent], None]


class FlowEngine(Protocol):
    """Primitives the persistence layer needs from the engine."""

    def get_agent_definitions(self) -> AgentDefinitions: ...

    def get_agent_definition(self, def_name: str) -> AgentDefinition: ...

    def get_agent_flows(self) -> dict[str, AgentFlow]: ...

    def get_agent_flow(self, name: str) -> AgentFlow: ...

    def new_agent_flow(self, name: str) -> AgentFlow: ...

    def add_agent_flow(self, flow: AgentFlow) -> None: ...

    def insert_agent_flow(self, flow: AgentFlow) -> None: ...

    def remove_agent_flow(self, name: str) -> None: ...

    def rename_agent_flow(self, old_name: str, new_name: str) -> str: ...

    def unique_flow_name(self, name: str) -> str: ...

    def copy_sub_flow(
        self, nodes: list[AgentFlowNode], edges: list[AgentFlowEdge]
    ) -> tuple[list[AgentFlowNode], list[AgentFlowEdge]]: ...

    def subscribe(self, callback: EventCallback) -> int: ...

    def unsubscribe(self, handle: int) -> None: ...


def new_id() -> str:
    return uuid.uuid4().hex


class LocalEngine:
    """
    A thread-safe, in-memory engine holding definitions and flows.

    Returned flows are copies; callers change engine state only through the
    mutating methods.
    """

    def __init__(self, definitions: AgentDefinitions | None = None):
        self._lock = threading.RLock()
        self._definitions: AgentDefinitions = dict(definitions or {})
        self._flows: dict[str, AgentFlow] = {}
        self._subscribers: dict[int, EventCallback] = {}
        self._next_handle = 1

    # Definitions

    def register_agent_definition(self, definition: AgentDefinition) -> None:
        with self._lock:
            self._definitions[definition.name] = definition

    def get_agent_definitions(self) -> AgentDefinitions:
        with self._lock:
            return dict(self._definitions)

    def get_agent_definition(self, def_name: str) -> AgentDefinition:
        with self._lock:
            definition = self._definitions.get(def_name)
        if definition is None:
            raise NotFoundError(f"Agent definition '{def_name}' not found")
        return definition

    # Flows

    def get_agent_flows(self) -> dict[str, AgentFlow]:
        with self._lock:
            return {name: flow.model_copy(deep=True) for name, flow in self._flows.items()}

    def get_agent_flow(self, name: str) -> AgentFlow:
        with self._lock:
            flow = self._flows.get(name)
            if flow is None:
                raise NotFoundError(f"Agent flow '{name}' not found")
            return flow.model_copy(deep=True)

    def new_agent_flow(self, name: str) -> AgentFlow:
        with self._lock:
            flow = AgentFlow(name=self.unique_flow_name(name))
            self._flows[flow.name] = flow
            return flow.model_copy(deep=True)

    def add_agent_flow(self, flow: AgentFlow) -> None:
        with self._lock:
            if flow.name in self._flows:
                raise ConflictError(f"Agent flow '{flow.name}' already exists")
            self._flows[flow.name] = flow.model_copy(deep=True)

    def insert_agent_flow(self, flow: AgentFlow) -> None:
        with self._lock:
            self._flows[flow.name] = flow.model_copy(deep=True)

    def remove_agent_flow(self, name: str) -> None:
        with self._lock:
            if self._flows.pop(name, None) is None:
                raise NotFoundError(f"Agent flow '{name}' not found")

    def rename_agent_flow(self, old_name: str, new_name: str) -> str:
        with self._lock:
            if old_name not in self._flows:
                raise NotFoundError(f"Agent flow '{old_name}' not found")
            if new_name in self._flows:
                raise ConflictError(f"Agent flow '{new_name}' already exists")
            flow = self._flows.pop(old_name)
            flow.name = new_name
            self._flows[new_name] = flow
            return new_name

    def unique_flow_name(self, name: str) -> str:
        """Returns `name`, or `name_N` with the smallest free N >= 2."""
        with self._lock:
            if name not in self._flows:
                return name
            n = 2
            while f"{name}_{n}" in self._flows:
                n += 1
            return f"{name}_{n}"

    def copy_sub_flow(
        self, nodes: list[AgentFlowNode], edges: list[AgentFlowEdge]
    ) -> tuple[list[AgentFlowNode], list[AgentFlowEdge]]:
        """
        Copies nodes and edges under fresh identifiers.

        Edges are rewired to the copied nodes; an edge whose source or target is
        not among `nodes` is dropped.
        """
        id_map: dict[str, str] = {}
        new_nodes = []
        for node in nodes:
            new_node = node.model_copy(deep=True)
            new_node.id = new_id()
            id_map[node.id] = new_node.id
            new_nodes.append(new_node)

        new_edges = []
        for edge in edges:
            if edge.source not in id_map or edge.target not in id_map:
                continue
            new_edge = edge.model_copy(deep=True)
            new_edge.id = new_id()
            new_edge.source = id_map[edge.source]
            new_edge.target = id_map[edge.target]
            new_edges.append(new_edge)
        return new_nodes, new_edges

    # Events

    def subscribe(self, callback: EventCallback) -> int:
        with self._lock:
            handle = self._next_handle
            self._next_handle += 1
            self._subscribers[handle] = callback
            return handle

    def unsubscribe(self, handle: int) -> None:
        with self._lock:
            self._subscribers.pop(handle, None)

    def emit(self, event: AgentEvent) -> None:
        """Delivers an event to every subscriber; a failing subscriber is skipped."""
        with self._lock:
            subscribers = list(self._subscribers.values())
        for callback in subscribers:
            try:
                callback(event)
            except Exception as e:
                log.error(f"Event subscriber failed on {type(event).__name__}: {e}")


def load_definitions_file(path: Path) -> AgentDefinitions:
    """
    Reads agent definitions from a JSON object keyed by agent name.

    A missing file yields an empty registry.

    Raises:
        StorageError: If the file exists but cannot be read.
        ParseError: If the content is not valid JSON or not valid definitions.
    """
    if not path.is_file():
        log.debug(f"No agent definitions file at '{path}'.")
        return {}
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise StorageError(f"Failed to read agent definitions '{path}': {e}") from e
    try:
        data = json.loads(content)
        if not isinstance(data, dict):
            raise ParseError(f"Agent definitions in '{path}' must be a JSON object")
        return definitions_from_dict(data)
    except (json.JSONDecodeError, PydanticValidationError, TypeError) as e:
        raise ParseError(f"Failed to parse agent definitions '{path}': {e}") from e
