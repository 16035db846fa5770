"""
Pydantic models for agent definitions published by the engine.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict


class AgentConfigEntry(BaseModel):
    """One declared configuration key: its default value and editor hints."""

    model_config = ConfigDict(extra="allow")

    value: Any = None
    type: str | None = None
    title: str | None = None
    description: str | None = None
    hidden: bool | None = None


class AgentDefinition(BaseModel):
    """
    Describes an agent kind the engine can instantiate.

    The `*_config` fields are ordered `(key, entry)` pairs. `global_config` is the
    set of keys, with default values, that the agent reads from the global
    configuration table shared by every instance of it.
    """

    model_config = ConfigDict(extra="allow")

    kind: str = ""
    name: str
    title: str | None = None
    description: str | None = None
    category: str | None = None
    path: str = ""
    inputs: list[str] | None = None
    outputs: list[str] | None = None
    default_config: list[tuple[str, AgentConfigEntry]] | None = None
    global_config: list[tuple[str, AgentConfigEntry]] | None = None
    display_config: list[tuple[str, dict[str, Any]]] | None = None

    def global_defaults(self) -> dict[str, Any]:
        """Returns the declared global configuration keys mapped to their defaults."""
        return {key: entry.value for key, entry in self.global_config or []}


AgentDefinitions = dict[str, AgentDefinition]


def definitions_from_dict(data: dict[str, Any]) -> AgentDefinitions:
    """Builds a definitions registry from a JSON object keyed by agent name."""
    definitions: AgentDefinitions = {}
    for name, raw in data.items():
        raw = {"name": name, **raw}
        definitions[name] = AgentDefinition.model_validate(raw)
    return definitions

