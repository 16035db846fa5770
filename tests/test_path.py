"""Tests for agent_stream_app.utils.path."""

from pathlib import Path

import pytest

from agent_stream_app.exceptions import ValidationError
from agent_stream_app.utils.path import FlowPathCodec, split_flow_name, write_atomic


@pytest.fixture
def codec(tmp_path: Path) -> FlowPathCodec:
    return FlowPathCodec(tmp_path / "flows")


class TestPathFor:
    def test_single_segment(self, codec: FlowPathCodec):
        assert codec.path_for("main") == codec.root / "main.json"

    def test_nested_segments_become_directories(self, codec: FlowPathCodec):
        assert codec.path_for("a/b/c") == codec.root / "a" / "b" / "c.json"

    @pytest.mark.parametrize("name", ["", "a//b", "/a", "a/", " a", "a/b ", "a/ /b", "..", "a/./b"])
    def test_rejects_malformed_names(self, codec: FlowPathCodec, name: str):
        with pytest.raises(ValidationError):
            codec.path_for(name)


class TestNameFor:
    def test_empty_prefix_yields_stem(self):
        assert FlowPathCodec.name_for(Path("/x/flows/main.json"), "") == "main"

    def test_prefix_is_joined_with_slash(self):
        assert FlowPathCodec.name_for(Path("/x/flows/a/b.json"), "a") == "a/b"

    @pytest.mark.parametrize("name", ["main", "a/b", "tools/web/fetch", "x.y/z.v1"])
    def test_round_trip(self, codec: FlowPathCodec, name: str):
        """path_for then name_for with the parent's prefix returns the original name."""
        path = codec.path_for(name)
        prefix = codec.prefix_for(path.parent)
        assert codec.name_for(path, prefix) == name


class TestSplitFlowName:
    def test_returns_segments(self):
        assert split_flow_name("a/b/c") == ["a", "b", "c"]


class TestWriteAtomic:
    def test_replaces_existing_content(self, tmp_path: Path):
        target = tmp_path / "file.json"
        target.write_text("old")
        write_atomic(target, "new")
        assert target.read_text() == "new"
        assert [p.name for p in tmp_path.iterdir()] == ["file.json"]
