"""
Keeps the engine's flow table and the on-disk flow tree in step for
create, save, rename and remove.
"""

import logging
import os
from pathlib import Path

from agent_stream_app.core.engine import FlowEngine
from agent_stream_app.exceptions import ConflictError, StorageError
from agent_stream_app.models.flow import AgentFlow
from agent_stream_app.utils.path import (
    FlowPathCodec,
    create_dir,
    validate_flow_name,
    write_atomic,
)
from agent_stream_app.utils.structured_logger import FlowLogger

log = logging.getLogger(__name__)

REMOVING_SUFFIX = ".removing"


class FlowStore:
    """
    Persists agent flows as JSON files under a flow root.

    Every mutation touches the engine and the file tree as two separate steps.
    Checks that can fail run before either step.
    """

    def __init__(
        self,
        engine: FlowEngine,
        flows_dir: Path,
        flow_logger: FlowLogger | None = None,
    ):
        self.engine = engine
        self.codec = FlowPathCodec(flows_dir)
        self._flow_logger = flow_logger

    @property
    def flows_dir(self) -> Path:
        return self.codec.root

    def new_flow(self, name: str) -> AgentFlow:
        """Creates an empty flow in the engine; the engine may adjust the name."""
        validate_flow_name(name)
        return self.engine.new_agent_flow(name)

    def save(self, flow: AgentFlow) -> Path:
        """
        Writes the whole flow document to its file, replacing any previous version.

        Raises:
            ValidationError: If the flow name is malformed.
            StorageError: If the directory cannot be created or the file written.
        """
        flow_file = self.codec.path_for(flow.name)
        try:
            create_dir(flow_file.parent)
        except OSError as e:
            raise StorageError(
                f"Failed to create directory for agent flow '{flow.name}': {e}"
            ) from e

        content = flow.to_json()
        try:
            write_atomic(flow_file, content)
        except OSError as e:
            raise StorageError(
                f"Failed to write agent flow file '{flow_file}': {e}"
            ) from e

        if self._flow_logger:
            self._flow_logger.flow_saved(flow.name, flow_file, len(content.encode()))
        return flow_file

    def save_by_name(self, name: str) -> Path:
        """Saves the engine's current version of a flow."""
        return self.save(self.engine.get_agent_flow(name))

    def remove(self, name: str) -> None:
        """
        Removes a flow from the engine and deletes its file.

        The file is first moved aside, so a failure in the engine leaves both
        stores as they were. A staged file that cannot be deleted afterwards no
        longer carries the flow extension and is never imported again.

        Raises:
            NotFoundError: If the engine has no flow with this name.
            StorageError: If the file cannot be moved aside.
        """
        flow_file = self.codec.path_for(name)
        # Fails with NotFoundError before anything is touched.
        self.engine.get_agent_flow(name)

        staged_file: Path | None = None
        if flow_file.is_file():
            staged_file = flow_file.with_name(flow_file.name + REMOVING_SUFFIX)
            try:
                os.replace(flow_file, staged_file)
            except OSError as e:
                raise StorageError(
                    f"Failed to stage agent flow file '{flow_file}' for removal: {e}"
                ) from e

        try:
            self.engine.remove_agent_flow(name)
        except Exception:
            if staged_file is not None:
                self._restore_staged(staged_file, flow_file)
            raise

        if staged_file is not None:
            try:
                staged_file.unlink()
            except OSError as e:
                log.warning(f"Could not delete removed flow file '{staged_file}': {e}")

        if self._flow_logger:
            self._flow_logger.flow_removed(name, had_file=staged_file is not None)

    def _restore_staged(self, staged_file: Path, flow_file: Path) -> None:
        try:
            os.replace(staged_file, flow_file)
        except OSError as e:
            log.error(
                f"Could not restore '{flow_file}' from '{staged_file}' after a failed"
                f" removal: {e}"
            )

    def rename(self, old_name: str, new_name: str) -> str:
        """
        Renames a flow in the engine and moves its file, if it has one.

        Raises:
            ValidationError: If either name is malformed.
            ConflictError: If a file already exists for the new name.
            NotFoundError: If the engine has no flow named `old_name`.
            StorageError: If the file cannot be moved; the engine rename is undone.
        """
        old_file = self.codec.path_for(old_name)
        new_file = self.codec.path_for(new_name)
        if new_file.exists():
            raise ConflictError(f"Agent flow file for '{new_name}' already exists")

        self.engine.rename_agent_flow(old_name, new_name)

        moved_file = old_file.is_file()
        if moved_file:
            try:
                create_dir(new_file.parent)
                os.rename(old_file, new_file)
            except OSError as e:
                self.engine.rename_agent_flow(new_name, old_name)
                raise StorageError(
                    f"Failed to rename agent flow file '{old_file}' to '{new_file}': {e}"
                ) from e

        if self._flow_logger:
            self._flow_logger.flow_renamed(old_name, new_name, moved_file)
        return new_name
