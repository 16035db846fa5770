"""
Manages loading, merging and saving of the JSON settings document.

The document has two top-level fields: ``core`` (CoreSettings) and ``agents``
(the global configuration table). Both live in memory behind one lock and the
whole document is rewritten after every change.
"""

import copy
import json
import logging
import threading
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from agent_stream_app.core.reconciler import GlobalConfigReconciler
from agent_stream_app.exceptions import (
    NotFoundError,
    ParseError,
    StorageError,
    ValidationError,
)
from agent_stream_app.models.config import (
    AGENTS_KEY,
    CORE_KEY,
    CoreSettings,
    GlobalConfigTable,
)
from agent_stream_app.models.definition import AgentDefinition
from agent_stream_app.utils.merge import merge, merged
from agent_stream_app.utils.path import create_dir, write_atomic
from agent_stream_app.utils.structured_logger import SettingsLogger

log = logging.getLogger(__name__)


class SettingsManager:
    """
    Owns the core settings record and the global configuration table.

    The lock covers only the in-memory read-merge-write. Saving takes a
    snapshot under the lock and writes it after releasing it, so with two
    concurrent setters the last write to reach the disk wins.
    """

    def __init__(
        self,
        settings_file: Path,
        settings_logger: SettingsLogger | None = None,
        reconciler: GlobalConfigReconciler | None = None,
    ):
        self.settings_file = settings_file
        self._settings_logger = settings_logger
        self._reconciler = reconciler or GlobalConfigReconciler(settings_logger)
        self._lock = threading.Lock()
        self._core = CoreSettings()
        self._global_configs: GlobalConfigTable = {}

    def load(self) -> None:
        """
        Loads the settings file, merging stored values over built-in defaults.

        Unknown keys in the stored core record are dropped with a warning. A
        record that still does not validate is logged and replaced by the
        defaults.

        Raises:
            StorageError: If the file exists but cannot be read.
            ParseError: If the file is not a UTF-8 encoded JSON object.
        """
        stored = self._read_file()

        core = CoreSettings()
        stored_core = stored.get(CORE_KEY)
        if stored_core is not None:
            value = merge(core.model_dump(), stored_core)
            if isinstance(value, dict):
                unknown = sorted(set(value) - set(CoreSettings.model_fields))
                if unknown:
                    log.warning(f"Ignoring unknown core settings: {unknown}")
                    for key in unknown:
                        del value[key]
            try:
                core = CoreSettings.model_validate(value)
            except PydanticValidationError as e:
                log.error(f"Failed to load core settings: {e}")
                core = CoreSettings()

        global_configs: GlobalConfigTable = {}
        stored_agents = stored.get(AGENTS_KEY)
        if isinstance(stored_agents, dict):
            for name, entry in stored_agents.items():
                if isinstance(entry, dict):
                    global_configs[name] = entry
                else:
                    log.warning(f"Ignoring malformed global config for '{name}'.")
        elif stored_agents is not None:
            log.warning("Ignoring malformed global config table in settings file.")

        with self._lock:
            self._core = core
            self._global_configs = global_configs

        if self._settings_logger:
            self._settings_logger.settings_loaded(
                self.settings_file, bool(stored), len(global_configs)
            )

    def _read_file(self) -> dict[str, Any]:
        if not self.settings_file.is_file():
            return {}
        try:
            content = self.settings_file.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise ParseError(
                f"Settings file '{self.settings_file}' is not valid UTF-8: {e}"
            ) from e
        except OSError as e:
            raise StorageError(
                f"Failed to read settings file '{self.settings_file}': {e}"
            ) from e
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise ParseError(
                f"Error parsing settings file '{self.settings_file}': {e}"
            ) from e
        if not isinstance(data, dict):
            raise ParseError(f"Settings file '{self.settings_file}' is not an object")
        return data

    def save(self) -> None:
        """Writes the whole settings document to disk."""
        with self._lock:
            document = {
                CORE_KEY: self._core.model_dump(),
                AGENTS_KEY: copy.deepcopy(self._global_configs),
            }

        try:
            create_dir(self.settings_file.parent)
            write_atomic(self.settings_file, json.dumps(document, indent=2))
        except OSError as e:
            raise StorageError(
                f"Failed to save settings file '{self.settings_file}': {e}"
            ) from e

        if self._settings_logger:
            self._settings_logger.settings_saved(self.settings_file)

    # Core settings

    def get_core_settings(self) -> dict[str, Any]:
        with self._lock:
            return self._core.model_dump()

    @property
    def core(self) -> CoreSettings:
        with self._lock:
            return self._core.model_copy(deep=True)

    def set_core_settings(self, new_settings: Any) -> None:
        """
        Merges a partial update into the core settings and saves.

        ``None`` is a no-op. A ``None`` value inside the update deletes that key;
        a deleted top-level field falls back to its built-in default.

        Raises:
            ValidationError: If the update is not an object.
            ParseError: If the merged record is not valid core settings.
        """
        if new_settings is None:
            return
        if not isinstance(new_settings, dict):
            raise ValidationError("Invalid settings format")

        with self._lock:
            value = merged(self._core.model_dump(), new_settings)
            try:
                self._core = CoreSettings.model_validate(value)
            except PydanticValidationError as e:
                raise ParseError(f"Failed to deserialize new settings: {e}") from e

        self.save()

    # Global configuration

    def get_global_config(self, name: str) -> dict[str, Any]:
        with self._lock:
            entry = self._global_configs.get(name)
            if entry is None:
                raise NotFoundError(f"No global config for agent '{name}'")
            return copy.deepcopy(entry)

    def get_global_configs(self) -> GlobalConfigTable:
        with self._lock:
            return copy.deepcopy(self._global_configs)

    def set_global_config(self, name: str, config: Any) -> None:
        """Merges a partial update into one agent's global config and saves."""
        if not isinstance(config, dict):
            raise ValidationError(f"Global config for '{name}' must be an object")

        with self._lock:
            current = self._global_configs.get(name, {})
            self._global_configs[name] = merged(current, config)

        self.save()

    def set_global_configs(self, configs: Any) -> None:
        """
        Merges a partial update into the whole table and saves.

        A ``None`` value for an agent drops its entry.
        """
        if not isinstance(configs, dict):
            raise ValidationError("Global config table must be an object")

        with self._lock:
            table = merged(self._global_configs, configs)
            for name, entry in table.items():
                if not isinstance(entry, dict):
                    raise ValidationError(f"Global config for '{name}' must be an object")
            self._global_configs = table

        self.save()

    def reconcile_global_configs(self, definitions: Iterable[AgentDefinition]) -> list[str]:
        """Seeds declared defaults for every definition, saving if anything changed."""
        with self._lock:
            changed = self._reconciler.reconcile(definitions, self._global_configs)

        if changed:
            self.save()
        return changed
