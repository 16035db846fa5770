"""
Pydantic models for application configuration and persisted core settings.
Provides robust validation for all settings.
"""

import os
import sys
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

HOME_ENV_VAR = "AGENT_STREAM_HOME"
JSON_LOGS_ENV_VAR = "AGENT_STREAM_JSON_LOGS"
DEFAULT_HOME_DIR = "~/.askit"

SETTINGS_FILENAME = "settings.json"
DEFINITIONS_FILENAME = "definitions.json"
FLOWS_DIRNAME = "flows"
LOGS_DIRNAME = "logs"

# Top-level keys of the settings document
CORE_KEY = "core"
AGENTS_KEY = "agents"


def default_shortcut_keys() -> dict[str, str]:
    """Built-in shortcut bindings, used for every key missing from the settings file."""
    return {
        "global_shortcut": "",
        # macOS has its own fullscreen shortcut (Cmd+Ctrl+F)
        "fullscreen": "" if sys.platform == "darwin" else "F11",
        "screenshot_only": " ",
        "search": "Ctrl+K, Command+K",
    }


class CoreSettings(BaseModel):
    """The fixed-shape part of the settings document."""

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    autostart: bool = False
    shortcut_keys: dict[str, str] = Field(default_factory=default_shortcut_keys)

    @field_validator("shortcut_keys")
    @classmethod
    def validate_shortcut_names(cls, v: dict[str, str]) -> dict[str, str]:
        """Rejects blank binding names; the bindings themselves may be empty."""
        for name in v:
            if not name.strip():
                raise ValueError("Shortcut names cannot be empty.")
        return v


GlobalConfigTable = dict[str, dict[str, Any]]


class AppConfig(BaseModel):
    """Where the application keeps its files and how it logs."""

    model_config = ConfigDict(frozen=True)

    home_dir: Path
    json_logs: bool = False

    @field_validator("home_dir")
    @classmethod
    def validate_home_dir(cls, v: Path) -> Path:
        v = v.expanduser()
        if v.exists() and not v.is_dir():
            raise ValueError(f"Home path '{v}' exists and is not a directory.")
        return v

    @property
    def flows_dir(self) -> Path:
        return self.home_dir / FLOWS_DIRNAME

    @property
    def settings_file(self) -> Path:
        return self.home_dir / SETTINGS_FILENAME

    @property
    def definitions_file(self) -> Path:
        return self.home_dir / DEFINITIONS_FILENAME

    @property
    def log_dir(self) -> Path:
        return self.home_dir / LOGS_DIRNAME

    @classmethod
    def from_env(cls, home_dir: Path | None = None) -> "AppConfig":
        """Builds the configuration from environment variables, with an optional override."""
        if home_dir is None:
            home_dir = Path(os.getenv(HOME_ENV_VAR, DEFAULT_HOME_DIR))
        json_logs = os.getenv(JSON_LOGS_ENV_VAR, "").lower() in ("1", "true", "yes")
        return cls(home_dir=home_dir, json_logs=json_logs)
