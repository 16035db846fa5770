"""
Shared fixtures for agent-stream-app tests.

Everything runs against a temporary workspace directory and an in-memory engine.
"""

import json
from pathlib import Path
from typing import Any

import pytest

from agent_stream_app.core.engine import LocalEngine
from agent_stream_app.models.definition import AgentConfigEntry, AgentDefinition
from agent_stream_app.storage.flow_importer import FlowTreeImporter
from agent_stream_app.storage.flow_store import FlowStore
from agent_stream_app.storage.settings_manager import SettingsManager


def flow_document(name: str = "sample") -> dict[str, Any]:
    """A two-node flow with one edge between them."""
    return {
        "name": name,
        "nodes": [
            {"id": "n1", "def_name": "source", "enabled": True, "x": 0, "y": 0},
            {"id": "n2", "def_name": "sink", "enabled": True, "x": 200, "y": 0},
        ],
        "edges": [
            {
                "id": "e1",
                "source": "n1",
                "source_handle": "out",
                "target": "n2",
                "target_handle": "in",
            }
        ],
        "viewport": {"x": 0, "y": 0, "zoom": 1},
    }


def write_json(path: Path, data: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


@pytest.fixture
def home(tmp_path: Path) -> Path:
    """Temporary workspace directory."""
    return tmp_path / "home"


@pytest.fixture
def flows_dir(home: Path) -> Path:
    return home / "flows"


@pytest.fixture
def engine() -> LocalEngine:
    return LocalEngine()


@pytest.fixture
def flow_store(engine: LocalEngine, flows_dir: Path) -> FlowStore:
    return FlowStore(engine, flows_dir)


@pytest.fixture
def importer(engine: LocalEngine, flows_dir: Path) -> FlowTreeImporter:
    return FlowTreeImporter(engine, flows_dir)


@pytest.fixture
def settings_file(home: Path) -> Path:
    return home / "settings.json"


@pytest.fixture
def settings(settings_file: Path) -> SettingsManager:
    manager = SettingsManager(settings_file)
    manager.load()
    return manager


@pytest.fixture
def llm_definition() -> AgentDefinition:
    """A definition declaring two global config keys."""
    return AgentDefinition(
        kind="Builtin",
        name="llm",
        inputs=["message"],
        outputs=["message"],
        global_config=[
            ("api_key", AgentConfigEntry(value="", type="password")),
            ("model", AgentConfigEntry(value="small", type="string")),
        ],
    )
