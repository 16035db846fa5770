"""
Data Models Layer.

This package contains Pydantic models that define the core data structures
used throughout the application: flow documents, agent definitions, engine
events and configuration.
"""

from .config import AppConfig, CoreSettings
from .definition import AgentConfigEntry, AgentDefinition
from .events import AgentDisplayEvent, AgentErrorEvent, AgentInEvent
from .flow import AgentFlow, AgentFlowEdge, AgentFlowNode, Viewport

__all__ = [
    "AgentConfigEntry",
    "AgentDefinition",
    "AgentDisplayEvent",
    "AgentErrorEvent",
    "AgentFlow",
    "AgentFlowEdge",
    "AgentFlowNode",
    "AgentInEvent",
    "AppConfig",
    "CoreSettings",
    "Viewport",
]
