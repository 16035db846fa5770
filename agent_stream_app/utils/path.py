"""
Utilities for mapping hierarchical flow names to files in the flow tree.

A flow named ``tools/web/fetch`` lives at ``<root>/tools/web/fetch.json``.
"""

import os
import tempfile
from pathlib import Path

from pathvalidate import ValidationError as PathValidationError
from pathvalidate import validate_filename

from agent_stream_app.exceptions import ValidationError
from agent_stream_app.models.flow import FLOW_EXTENSION

NAME_SEPARATOR = "/"


def split_flow_name(name: str) -> list[str]:
    """
    Splits a flow name into its segments, validating each one.

    Raises:
        ValidationError: If a segment is empty, padded with whitespace, a
        relative path component, or not a valid filename on this platform.
    """
    segments = name.split(NAME_SEPARATOR)
    for segment in segments:
        if not segment or not segment.strip():
            raise ValidationError(f"Flow name '{name}' contains an empty segment.")
        if segment != segment.strip():
            raise ValidationError(
                f"Flow name segment '{segment}' has leading or trailing whitespace."
            )
        if segment in (".", ".."):
            raise ValidationError(f"Flow name '{name}' contains a relative segment.")
        try:
            validate_filename(segment, platform="auto")
        except PathValidationError as e:
            raise ValidationError(
                f"Flow name segment '{segment}' is not a valid file name: {e}"
            ) from e
    return segments


def validate_flow_name(name: str) -> str:
    """Returns the name unchanged if it is a well-formed flow name."""
    split_flow_name(name)
    return name


def create_dir(directory_path: Path) -> None:
    """Creates a directory if it does not already exist."""
    directory_path.mkdir(parents=True, exist_ok=True)


def is_flow_file(path: Path) -> bool:
    return path.is_file() and path.suffix == FLOW_EXTENSION


def join_prefix(prefix: str, segment: str) -> str:
    return f"{prefix}{NAME_SEPARATOR}{segment}" if prefix else segment


class FlowPathCodec:
    """
    Converts between flow names and paths under a fixed flow root.

    ``path_for`` and ``name_for`` are exact inverses for any valid flow name.
    """

    def __init__(self, root: Path) -> None:
        self.root = root

    def path_for(self, name: str) -> Path:
        """Returns the file a flow is stored in, nesting directories per segment."""
        *dirs, stem = split_flow_name(name)
        return self.root.joinpath(*dirs, f"{stem}{FLOW_EXTENSION}")

    @staticmethod
    def name_for(path: Path, prefix: str) -> str:
        """
        Returns the flow name of a file found while walking the directory that
        corresponds to ``prefix`` (empty for the root itself).
        """
        return join_prefix(prefix, path.stem)

    def prefix_for(self, directory: Path) -> str:
        """Returns the name prefix for a directory inside the flow root."""
        relative = directory.relative_to(self.root)
        return NAME_SEPARATOR.join(relative.parts)


def write_atomic(path: Path, content: str) -> None:
    """Replaces `path` with `content` in one step, via a temporary sibling file."""
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_name, path)
    except OSError:
        Path(tmp_name).unlink(missing_ok=True)
        raise
