"""
Structured event logging for flow and settings persistence.
Every event goes to the standard logger; JSON lines are appended to a log file
when a log directory is configured.
"""

import json
import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Any, TextIO

log = logging.getLogger(__name__)


class StructuredLogger:
    """
    Logger that emits human-readable console lines and machine-parseable JSON.

    Usage:
        logger = StructuredLogger("agent_stream_app", log_dir=Path("logs"))
        logger.info("flow_saved", name="tools/fetch", path="/.../fetch.json")
    """

    def __init__(
        self,
        name: str,
        log_dir: Path | None = None,
        enable_json: bool = True,
    ):
        """
        Args:
            name: Name of the underlying standard logger
            log_dir: Directory for JSON log files (None = disabled)
            enable_json: Enable JSON file logging
        """
        self.name = name
        self.enable_json = enable_json and log_dir is not None
        self._logger = logging.getLogger(name)
        self._json_file: TextIO | None = None

        if self.enable_json:
            log_dir.mkdir(parents=True, exist_ok=True)
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            json_log_path = log_dir / f"agent_stream_{timestamp}.jsonl"
            self._json_file = open(json_log_path, "a", encoding="utf-8")  # noqa: SIM115

        self._session_context: dict[str, Any] = {
            "session_id": f"{int(time.time())}_{id(self)}",
        }

    def set_session_context(self, **kwargs) -> None:
        """Set session-level context that appears in all JSON entries."""
        self._session_context.update(kwargs)

    @staticmethod
    def _format_message(event: str, **context) -> str:
        parts = [f"[{event}]"]
        parts.extend(f"{key}={value}" for key, value in context.items())
        return " ".join(parts)

    def _write_json(self, level: str, event: str, **context) -> None:
        if not self._json_file or self._json_file.closed:
            return

        entry = {
            "timestamp": datetime.now().isoformat(),
            "level": level,
            "event": event,
            **self._session_context,
            **context,
        }
        try:
            self._json_file.write(json.dumps(entry, default=str) + "\n")
            self._json_file.flush()
        except OSError as e:
            log.warning(f"JSON event logging failed: {e}")

    def _log(self, level: int, event: str, **context) -> None:
        self._logger.log(level, self._format_message(event, **context))
        if self.enable_json:
            self._write_json(logging.getLevelName(level), event, **context)

    def debug(self, event: str, **context) -> None:
        self._log(logging.DEBUG, event, **context)

    def info(self, event: str, **context) -> None:
        self._log(logging.INFO, event, **context)

    def warning(self, event: str, **context) -> None:
        self._log(logging.WARNING, event, **context)

    def error(self, event: str, **context) -> None:
        self._log(logging.ERROR, event, **context)

    def close(self) -> None:
        """Close the JSON log file."""
        if self._json_file and not self._json_file.closed:
            self._json_file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class FlowLogger:
    """Specialized logger for flow persistence events."""

    def __init__(self, logger: StructuredLogger):
        self.logger = logger

    def flow_saved(self, name: str, path: Path, size_bytes: int):
        self.logger.info("flow_saved", name=name, path=str(path), size_bytes=size_bytes)

    def flow_removed(self, name: str, had_file: bool):
        self.logger.info("flow_removed", name=name, had_file=had_file)

    def flow_renamed(self, old_name: str, new_name: str, moved_file: bool):
        self.logger.info(
            "flow_renamed", old_name=old_name, new_name=new_name, moved_file=moved_file
        )

    def flow_imported(self, name: str, path: Path, nodes: int, edges: int):
        self.logger.info(
            "flow_imported", name=name, path=str(path), nodes=nodes, edges=edges
        )

    def flow_import_failed(self, path: Path, error: str):
        self.logger.error("flow_import_failed", path=str(path), error=error)

    def tree_imported(self, root: Path, imported: int, failed: int, duration_s: float):
        self.logger.info(
            "flow_tree_imported",
            root=str(root),
            imported=imported,
            failed=failed,
            duration_s=round(duration_s, 3),
        )


class SettingsLogger:
    """Specialized logger for settings and global configuration events."""

    def __init__(self, logger: StructuredLogger):
        self.logger = logger

    def settings_loaded(self, path: Path, from_file: bool, components: int):
        self.logger.info(
            "settings_loaded", path=str(path), from_file=from_file, components=components
        )

    def settings_saved(self, path: Path):
        self.logger.debug("settings_saved", path=str(path))

    def global_config_seeded(self, component: str, added_keys: list[str]):
        self.logger.info(
            "global_config_seeded", component=component, added_keys=added_keys
        )


def create_structured_logger(
    log_dir: Path | None = None, enable_json: bool = False
) -> tuple[StructuredLogger, FlowLogger, SettingsLogger]:
    """
    Create all structured loggers.

    Returns:
        Tuple of (base_logger, flow_logger, settings_logger)
    """
    base = StructuredLogger("agent_stream_app", log_dir=log_dir, enable_json=enable_json)
    return base, FlowLogger(base), SettingsLogger(base)
