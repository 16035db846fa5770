"""
Outward request/response operations.

Each command takes the application context explicitly and returns a
`CommandResult` carrying either a JSON-ready value or a plain error message.
No exception crosses this boundary.
"""

import functools
import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from agent_stream_app.core.app import AgentStreamApp
from agent_stream_app.exceptions import AgentStreamError, ParseError
from agent_stream_app.models.flow import AgentFlow

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """
    Either `value` (on success) or `error` (a message) is meaningful.

    `error_type` names the exception class behind a failure.
    """

    value: Any = None
    error: str | None = None
    error_type: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def command(func: Callable[..., Any]) -> Callable[..., CommandResult]:
    """Wraps an operation so that errors are flattened to their message."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> CommandResult:
        try:
            return CommandResult(value=func(*args, **kwargs))
        except AgentStreamError as e:
            log.debug(f"Command {func.__name__} failed: {e}")
            return CommandResult(error=str(e), error_type=type(e).__name__)
        except PydanticValidationError as e:
            log.debug(f"Command {func.__name__} failed: {e}")
            return CommandResult(error=str(e), error_type=ParseError.__name__)
        except Exception as e:
            log.debug(f"Command {func.__name__} failed unexpectedly", exc_info=True)
            return CommandResult(
                error=str(e) or type(e).__name__, error_type=type(e).__name__
            )

    return wrapper


# Definitions


@command
def get_agent_defs(app: AgentStreamApp) -> dict[str, Any]:
    return {
        name: definition.model_dump()
        for name, definition in app.engine.get_agent_definitions().items()
    }


# Flows


@command
def get_agent_flows(app: AgentStreamApp) -> dict[str, Any]:
    return {name: flow.model_dump() for name, flow in app.flows().items()}


@command
def new_agent_flow(app: AgentStreamApp, name: str) -> dict[str, Any]:
    return app.flow_store.new_flow(name).model_dump()


@command
def rename_agent_flow(app: AgentStreamApp, old_name: str, new_name: str) -> str:
    return app.flow_store.rename(old_name, new_name)


@command
def remove_agent_flow(app: AgentStreamApp, name: str) -> None:
    app.flow_store.remove(name)


@command
def insert_agent_flow(app: AgentStreamApp, agent_flow: dict[str, Any]) -> None:
    app.engine.insert_agent_flow(AgentFlow.model_validate(agent_flow))


@command
def save_agent_flow(app: AgentStreamApp, agent_flow: dict[str, Any]) -> None:
    app.flow_store.save(AgentFlow.model_validate(agent_flow))


@command
def import_agent_flow(app: AgentStreamApp, path: str) -> dict[str, Any]:
    return app.importer.import_flow(Path(path)).model_dump()


# Settings


@command
def get_core_settings(app: AgentStreamApp) -> dict[str, Any]:
    return app.settings.get_core_settings()


@command
def set_core_settings(app: AgentStreamApp, new_settings: Any) -> None:
    app.settings.set_core_settings(new_settings)


@command
def get_global_config(app: AgentStreamApp, def_name: str) -> dict[str, Any]:
    return app.settings.get_global_config(def_name)


@command
def set_global_config(app: AgentStreamApp, def_name: str, config: Any) -> None:
    app.settings.set_global_config(def_name, config)


@command
def get_global_configs(app: AgentStreamApp) -> dict[str, Any]:
    return app.settings.get_global_configs()


@command
def set_global_configs(app: AgentStreamApp, configs: Any) -> None:
    app.settings.set_global_configs(configs)
