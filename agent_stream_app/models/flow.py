"""
Pydantic models for agent flow documents.

The engine owns the meaning of nodes and edges; this layer only reads, renames
and rewrites them. Unknown fields are kept so documents round-trip unchanged.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

FLOW_EXTENSION = ".json"


class Viewport(BaseModel):
    """Canvas position and zoom saved with a flow."""

    model_config = ConfigDict(extra="allow")

    x: float = 0.0
    y: float = 0.0
    zoom: float = 1.0


class AgentFlowNode(BaseModel):
    """A single agent placed on a flow canvas."""

    model_config = ConfigDict(extra="allow")

    id: str
    def_name: str
    enabled: bool = False
    config: dict[str, Any] | None = None
    title: str | None = None
    x: float = 0.0
    y: float = 0.0
    width: float | None = None
    height: float | None = None


class AgentFlowEdge(BaseModel):
    """A connection from one node's output handle to another node's input handle."""

    model_config = ConfigDict(extra="allow")

    id: str
    source: str
    source_handle: str | None = None
    target: str
    target_handle: str | None = None


class AgentFlow(BaseModel):
    """A named node/edge graph, identified by a `/`-delimited hierarchical name."""

    model_config = ConfigDict(extra="allow", validate_assignment=True)

    name: str
    nodes: list[AgentFlowNode] = Field(default_factory=list)
    edges: list[AgentFlowEdge] = Field(default_factory=list)
    viewport: Viewport | None = None

    def disable_all_nodes(self) -> None:
        for node in self.nodes:
            node.enabled = False

    def to_json(self) -> str:
        return self.model_dump_json(indent=2)

    @classmethod
    def from_json(cls, content: str | bytes) -> "AgentFlow":
        return cls.model_validate_json(content)
