"""
Notifications emitted by the engine while agents run.
"""

from typing import Any

from pydantic import BaseModel


class AgentInEvent(BaseModel):
    """An agent is ready to consume its next input on `channel`."""

    agent_id: str
    channel: str


class AgentDisplayEvent(BaseModel):
    """An agent produced a payload for the display slot `key`."""

    agent_id: str
    key: str
    data: Any = None


class AgentErrorEvent(BaseModel):
    """An agent raised an error."""

    agent_id: str
    message: str


AgentEvent = AgentInEvent | AgentDisplayEvent | AgentErrorEvent
