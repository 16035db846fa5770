"""
Application context tying the engine to the flow tree and settings document.
"""

import logging
from pathlib import Path

from agent_stream_app.core.engine import LocalEngine, load_definitions_file
from agent_stream_app.core.event_bridge import EventBridge, EventSink, log_sink
from agent_stream_app.core.reconciler import GlobalConfigReconciler
from agent_stream_app.models.config import AppConfig
from agent_stream_app.models.flow import AgentFlow
from agent_stream_app.storage.flow_importer import (
    FlowTreeImporter,
    ImportOutcome,
    summarize,
)
from agent_stream_app.storage.flow_store import FlowStore
from agent_stream_app.storage.settings_manager import SettingsManager
from agent_stream_app.utils.structured_logger import create_structured_logger

log = logging.getLogger(__name__)

MAIN_FLOW_NAME = "main"


class AgentStreamApp:
    """
    Owns every long-lived record of the application.

    Pass an instance to each operation instead of looking state up globally.
    """

    def __init__(
        self,
        config: AppConfig,
        engine: LocalEngine | None = None,
        sink: EventSink | None = None,
    ):
        self.config = config
        self.logger, flow_logger, settings_logger = create_structured_logger(
            config.log_dir, enable_json=config.json_logs
        )
        self.engine = engine if engine is not None else LocalEngine()
        self.reconciler = GlobalConfigReconciler(settings_logger)
        self.settings = SettingsManager(
            config.settings_file, settings_logger, self.reconciler
        )
        self.flow_store = FlowStore(self.engine, config.flows_dir, flow_logger)
        self.importer = FlowTreeImporter(self.engine, config.flows_dir, flow_logger)
        self.bridge = EventBridge(self.engine, sink or log_sink)

    @classmethod
    def from_home(cls, home_dir: Path | None = None, **kwargs) -> "AgentStreamApp":
        return cls(AppConfig.from_env(home_dir), **kwargs)

    def startup(self) -> list[ImportOutcome]:
        """
        Loads settings and definitions, imports the flow tree, seeds global
        config defaults and starts forwarding engine events.
        """
        self.logger.set_session_context(home_dir=str(self.config.home_dir))
        self.settings.load()

        for definition in load_definitions_file(self.config.definitions_file).values():
            self.engine.register_agent_definition(definition)

        outcomes = self.importer.import_tree()
        imported, failed = summarize(outcomes)
        if failed:
            log.warning(f"Imported {imported} agent flows, {failed} failed.")
        else:
            log.debug(f"Imported {imported} agent flows.")

        if not self.engine.get_agent_flows():
            self.engine.new_agent_flow(MAIN_FLOW_NAME)

        self.sync_global_configs()
        self.bridge.attach()
        return outcomes

    def sync_global_configs(self) -> list[str]:
        """Seeds global config defaults; call again whenever definitions change."""
        definitions = self.engine.get_agent_definitions().values()
        return self.settings.reconcile_global_configs(definitions)

    def shutdown(self) -> None:
        """Stops forwarding events. Settings are already on disk after each change."""
        self.bridge.detach()
        self.logger.close()

    # Convenience accessors used by commands and the CLI

    def flows(self) -> dict[str, AgentFlow]:
        return self.engine.get_agent_flows()

    def __enter__(self):
        self.startup()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()
        return False
