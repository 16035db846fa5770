"""
Discovers agent flows on disk and registers them with the engine.

`import_tree` runs at startup and tolerates bad files; `import_flow` is the
user-triggered single-file import and fails on the first problem.
"""

import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from agent_stream_app.core.engine import FlowEngine
from agent_stream_app.exceptions import (
    AgentStreamError,
    ParseError,
    StorageError,
    ValidationError,
)
from agent_stream_app.models.flow import AgentFlow
from agent_stream_app.utils.path import (
    FlowPathCodec,
    create_dir,
    is_flow_file,
    join_prefix,
    validate_flow_name,
)
from agent_stream_app.utils.structured_logger import FlowLogger

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportOutcome:
    """Result of importing one file during a tree walk."""

    path: Path
    name: str
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def summarize(outcomes: list[ImportOutcome]) -> tuple[int, int]:
    """Returns (imported, failed) counts."""
    failed = sum(1 for outcome in outcomes if not outcome.ok)
    return len(outcomes) - failed, failed


class FlowTreeImporter:
    """Reads flow documents from the flow root into the engine."""

    def __init__(
        self,
        engine: FlowEngine,
        flows_dir: Path,
        flow_logger: FlowLogger | None = None,
    ):
        self.engine = engine
        self.codec = FlowPathCodec(flows_dir)
        self._flow_logger = flow_logger

    def import_tree(self) -> list[ImportOutcome]:
        """
        Imports every flow file below the flow root, depth first.

        A missing root is created and yields no outcomes. Files that cannot be
        read, parsed or named are logged and reported as failed outcomes; the
        walk continues with the remaining entries. Symlinked directories are
        skipped.
        """
        root = self.codec.root
        if not root.is_dir():
            try:
                create_dir(root)
            except OSError as e:
                raise StorageError(f"Failed to create flow directory '{root}': {e}") from e
            return []

        start_time = time.monotonic()
        outcomes: list[ImportOutcome] = []
        self._walk(root, "", outcomes)

        if self._flow_logger:
            imported, failed = summarize(outcomes)
            self._flow_logger.tree_imported(
                root, imported, failed, time.monotonic() - start_time
            )
        return outcomes

    def _walk(self, directory: Path, prefix: str, outcomes: list[ImportOutcome]) -> None:
        try:
            entries = sorted(directory.iterdir())
        except OSError as e:
            log.error(f"Failed to read flow directory '{directory}': {e}")
            outcomes.append(ImportOutcome(directory, prefix, str(e)))
            return

        for entry in entries:
            if entry.is_symlink() and entry.is_dir():
                log.warning(f"Skipping symlinked flow directory '{entry}'.")
            elif entry.is_dir():
                self._walk(entry, join_prefix(prefix, entry.name), outcomes)
            elif is_flow_file(entry):
                outcomes.append(self._import_entry(entry, prefix))

    def _import_entry(self, path: Path, prefix: str) -> ImportOutcome:
        name = self.codec.name_for(path, prefix)
        try:
            validate_flow_name(name)
            flow = self.import_document(path)
            flow.name = name
            self.engine.insert_agent_flow(flow)
        except AgentStreamError as e:
            log.error(f"Failed to import agent flow '{path}': {e}")
            if self._flow_logger:
                self._flow_logger.flow_import_failed(path, str(e))
            return ImportOutcome(path, name, str(e))

        log.debug(f"Imported agent flow '{name}' from '{path}'.")
        return ImportOutcome(path, name)

    def import_document(self, path: Path) -> AgentFlow:
        """
        Reads one flow file and gives its nodes and edges fresh identifiers.

        The flow is named after the file's trimmed stem.

        Raises:
            ValidationError: If the path is not a flow file or its stem is blank.
            StorageError: If the file cannot be read.
            ParseError: If the content is not a valid flow document.
        """
        if not is_flow_file(path):
            raise ValidationError(f"Invalid file extension: '{path}'")

        try:
            content = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise ParseError(f"Agent flow file '{path}' is not valid UTF-8: {e}") from e
        except OSError as e:
            raise StorageError(f"Failed to read agent flow file '{path}': {e}") from e

        try:
            flow = AgentFlow.from_json(content)
        except (PydanticValidationError, json.JSONDecodeError) as e:
            raise ParseError(f"Failed to parse agent flow file '{path}': {e}") from e

        base_name = path.stem.strip()
        if not base_name:
            raise ValidationError(f"Agent flow name is empty: '{path}'")
        flow.name = base_name

        nodes, edges = self.engine.copy_sub_flow(flow.nodes, flow.edges)
        flow.nodes = nodes
        flow.edges = edges
        return flow

    def import_flow(self, path: Path) -> AgentFlow:
        """
        Imports a single file chosen by the user as a new, disabled flow.

        The name is made unique among existing flows. The flow is registered
        with the engine but not written to the flow tree.
        """
        flow = self.import_document(path)
        flow.name = self.engine.unique_flow_name(flow.name)
        flow.disable_all_nodes()
        self.engine.add_agent_flow(flow)

        if self._flow_logger:
            self._flow_logger.flow_imported(
                flow.name, path, len(flow.nodes), len(flow.edges)
            )
        return flow
