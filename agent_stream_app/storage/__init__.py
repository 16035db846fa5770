"""
Storage Layer.

This package handles all data persistence: the agent flow tree and the
settings document holding core settings and global agent configuration.
"""

from .flow_importer import FlowTreeImporter, ImportOutcome
from .flow_store import FlowStore
from .settings_manager import SettingsManager

__all__ = ["FlowStore", "FlowTreeImporter", "ImportOutcome", "SettingsManager"]
