"""
Backfills declared global configuration defaults into the persisted table.
"""

import copy
import logging
from collections.abc import Iterable

from agent_stream_app.models.config import GlobalConfigTable
from agent_stream_app.models.definition import AgentDefinition
from agent_stream_app.utils.structured_logger import SettingsLogger

log = logging.getLogger(__name__)


class GlobalConfigReconciler:
    """
    Seeds missing global configuration keys for each agent definition.

    Stored values are never overwritten and stored keys that a definition no
    longer declares are kept, so a schema change loses no user data. Running
    it again without a registry change is a no-op.
    """

    def __init__(self, settings_logger: SettingsLogger | None = None):
        self._settings_logger = settings_logger

    def reconcile(
        self, definitions: Iterable[AgentDefinition], table: GlobalConfigTable
    ) -> list[str]:
        """
        Updates `table` in place.

        Returns:
            The names of the components whose entries were created or extended.
        """
        changed = []
        for definition in definitions:
            defaults = definition.global_defaults()
            if not defaults:
                continue

            entry = table.get(definition.name)
            if entry is None:
                table[definition.name] = copy.deepcopy(defaults)
                added = list(defaults)
            else:
                added = [key for key in defaults if key not in entry]
                for key in added:
                    entry[key] = copy.deepcopy(defaults[key])

            if added:
                changed.append(definition.name)
                log.debug(f"Seeded global config for '{definition.name}': {added}")
                if self._settings_logger:
                    self._settings_logger.global_config_seeded(definition.name, added)
        return changed
