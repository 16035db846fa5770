"""Tests for agent_stream_app.core.app and agent_stream_app.core.commands."""

import json
from pathlib import Path

import pytest

from agent_stream_app.core import commands
from agent_stream_app.core.app import MAIN_FLOW_NAME, AgentStreamApp
from agent_stream_app.models.config import AppConfig
from agent_stream_app.models.events import AgentErrorEvent

from conftest import flow_document, write_json


@pytest.fixture
def sink_calls() -> list:
    return []


@pytest.fixture
def asapp(home: Path, sink_calls: list) -> AgentStreamApp:
    app = AgentStreamApp(
        AppConfig(home_dir=home), sink=lambda name, payload: sink_calls.append(name)
    )
    yield app
    app.logger.close()


class TestStartup:
    def test_empty_home_gets_main_flow(self, asapp: AgentStreamApp, home: Path):
        assert asapp.startup() == []
        assert list(asapp.flows()) == [MAIN_FLOW_NAME]
        assert (home / "flows").is_dir()

    def test_imports_tree_and_seeds_global_configs(self, asapp: AgentStreamApp, home: Path):
        write_json(home / "flows" / "a" / "b.json", {"name": "b", "nodes": [], "edges": []})
        write_json(
            home / "definitions.json",
            {"llm": {"global_config": [["model", {"value": "small"}]]}},
        )
        write_json(home / "settings.json", {"core": {"autostart": True}, "agents": {}})

        outcomes = asapp.startup()

        assert [o.name for o in outcomes] == ["a/b"]
        assert list(asapp.flows()) == ["a/b"]
        assert asapp.settings.get_core_settings()["autostart"] is True
        stored = json.loads((home / "settings.json").read_text())
        assert stored["agents"] == {"llm": {"model": "small"}}

    def test_bridge_forwards_after_startup(self, asapp: AgentStreamApp, sink_calls: list):
        asapp.startup()
        asapp.engine.emit(AgentErrorEvent(agent_id="a", message="m"))
        assert sink_calls == ["askit:error"]

    def test_context_manager_detaches_bridge(self, home: Path):
        with AgentStreamApp(AppConfig(home_dir=home)) as app:
            assert app.bridge.attached
        assert not app.bridge.attached


class TestCommands:
    def test_errors_are_flattened_to_messages(self, asapp: AgentStreamApp):
        asapp.startup()
        result = commands.rename_agent_flow(asapp, "missing", "other")
        assert not result.ok
        assert result.error == "Agent flow 'missing' not found"
        assert result.value is None
        assert result.error_type == "NotFoundError"

    def test_flow_lifecycle(self, asapp: AgentStreamApp, home: Path, tmp_path: Path):
        asapp.startup()
        source = write_json(tmp_path / "shared.json", flow_document("shared"))

        imported = commands.import_agent_flow(asapp, str(source))
        assert imported.ok
        assert imported.value["name"] == "shared"

        assert commands.save_agent_flow(asapp, imported.value).ok
        assert (home / "flows" / "shared.json").is_file()

        renamed = commands.rename_agent_flow(asapp, "shared", "team/shared")
        assert renamed.value == "team/shared"
        assert (home / "flows" / "team" / "shared.json").is_file()

        assert commands.remove_agent_flow(asapp, "team/shared").ok
        assert not (home / "flows" / "team" / "shared.json").exists()
        assert "team/shared" not in commands.get_agent_flows(asapp).value

    def test_new_flow_and_insert(self, asapp: AgentStreamApp):
        asapp.startup()
        created = commands.new_agent_flow(asapp, "drafts/idea")
        assert created.value["name"] == "drafts/idea"

        document = flow_document("drafts/idea")
        assert commands.insert_agent_flow(asapp, document).ok
        flows = commands.get_agent_flows(asapp).value
        assert len(flows["drafts/idea"]["nodes"]) == 2

    def test_invalid_document_is_error(self, asapp: AgentStreamApp):
        asapp.startup()
        result = commands.save_agent_flow(asapp, {"nodes": []})
        assert not result.ok
        assert "name" in result.error
        assert result.error_type == "ParseError"

    def test_settings_commands(self, asapp: AgentStreamApp):
        asapp.startup()
        assert commands.set_core_settings(asapp, {"autostart": True}).ok
        assert commands.get_core_settings(asapp).value["autostart"] is True

        bad = commands.set_core_settings(asapp, "yes")
        assert bad.error == "Invalid settings format"

        assert commands.set_global_config(asapp, "llm", {"model": "m"}).ok
        assert commands.get_global_config(asapp, "llm").value == {"model": "m"}
        assert commands.set_global_configs(asapp, {"llm": None}).ok
        assert commands.get_global_configs(asapp).value == {}
        assert not commands.get_global_config(asapp, "llm").ok

    def test_get_agent_defs(self, asapp: AgentStreamApp, home: Path):
        write_json(home / "definitions.json", {"llm": {"category": "AI"}})
        asapp.startup()
        defs = commands.get_agent_defs(asapp).value
        assert defs["llm"]["category"] == "AI"
