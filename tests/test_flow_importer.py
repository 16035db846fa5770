"""Tests for agent_stream_app.storage.flow_importer."""

from pathlib import Path

import pytest

from agent_stream_app.core.engine import LocalEngine
from agent_stream_app.exceptions import ConflictError, ParseError, ValidationError
from agent_stream_app.storage.flow_importer import FlowTreeImporter, summarize

from conftest import flow_document, write_json


def all_ids(flow) -> set[str]:
    return {n.id for n in flow.nodes} | {e.id for e in flow.edges}


class TestImportTree:
    def test_missing_root_is_created(self, importer: FlowTreeImporter, flows_dir: Path):
        assert importer.import_tree() == []
        assert flows_dir.is_dir()

    def test_nested_file_gets_hierarchical_name(
        self, importer: FlowTreeImporter, engine: LocalEngine, flows_dir: Path
    ):
        write_json(flows_dir / "a" / "b.json", {"name": "b", "nodes": [], "edges": []})

        outcomes = importer.import_tree()

        assert [o.name for o in outcomes] == ["a/b"]
        assert all(o.ok for o in outcomes)
        assert list(engine.get_agent_flows()) == ["a/b"]

    def test_bad_file_does_not_abort_walk(
        self, importer: FlowTreeImporter, engine: LocalEngine, flows_dir: Path
    ):
        write_json(flows_dir / "good.json", flow_document("good"))
        (flows_dir / "broken.json").write_text("{not json", encoding="utf-8")
        write_json(flows_dir / "shape.json", {"nodes": "wrong"})
        write_json(flows_dir / "deep" / "ok.json", flow_document("ok"))

        outcomes = importer.import_tree()

        assert summarize(outcomes) == (2, 2)
        failed = sorted(o.path.name for o in outcomes if not o.ok)
        assert failed == ["broken.json", "shape.json"]
        assert sorted(engine.get_agent_flows()) == ["deep/ok", "good"]

    def test_non_utf8_file_is_recorded_as_failure(
        self, importer: FlowTreeImporter, engine: LocalEngine, flows_dir: Path
    ):
        write_json(flows_dir / "a_good.json", flow_document("a_good"))
        (flows_dir / "b_bad.json").write_bytes(b'{"name": "\xff\xfe"}')
        write_json(flows_dir / "c_good.json", flow_document("c_good"))

        outcomes = importer.import_tree()

        assert summarize(outcomes) == (2, 1)
        assert [o.path.name for o in outcomes if not o.ok] == ["b_bad.json"]
        assert sorted(engine.get_agent_flows()) == ["a_good", "c_good"]

    def test_padded_directory_name_is_rejected(
        self, importer: FlowTreeImporter, engine: LocalEngine, flows_dir: Path
    ):
        """Every registered name must be usable by save, rename and remove."""
        write_json(flows_dir / " pad" / "x.json", flow_document("x"))
        write_json(flows_dir / "ok.json", flow_document("ok"))

        outcomes = importer.import_tree()

        assert summarize(outcomes) == (1, 1)
        assert list(engine.get_agent_flows()) == ["ok"]

    def test_symlinked_directory_is_skipped(
        self, importer: FlowTreeImporter, engine: LocalEngine, flows_dir: Path
    ):
        write_json(flows_dir / "sub" / "main.json", flow_document("main"))
        try:
            (flows_dir / "sub" / "loop").symlink_to(flows_dir, target_is_directory=True)
        except OSError:
            pytest.skip("symlinks are not supported here")

        outcomes = importer.import_tree()

        assert [o.name for o in outcomes] == ["sub/main"]
        assert list(engine.get_agent_flows()) == ["sub/main"]

    def test_ignores_other_extensions(
        self, importer: FlowTreeImporter, engine: LocalEngine, flows_dir: Path
    ):
        write_json(flows_dir / "main.json", flow_document("main"))
        (flows_dir / "notes.txt").write_text("hello")
        write_json(flows_dir / "old.json.removing", flow_document("old"))

        outcomes = importer.import_tree()

        assert [o.name for o in outcomes] == ["main"]
        assert list(engine.get_agent_flows()) == ["main"]

    def test_file_name_wins_over_stored_name(
        self, importer: FlowTreeImporter, engine: LocalEngine, flows_dir: Path
    ):
        write_json(flows_dir / "x" / "renamed.json", flow_document("original"))
        importer.import_tree()
        assert list(engine.get_agent_flows()) == ["x/renamed"]

    def test_reimport_replaces_entry(
        self, importer: FlowTreeImporter, engine: LocalEngine, flows_dir: Path
    ):
        write_json(flows_dir / "main.json", flow_document("main"))
        importer.import_tree()
        importer.import_tree()
        assert list(engine.get_agent_flows()) == ["main"]


class TestImportDocument:
    def test_rejects_wrong_extension(self, importer: FlowTreeImporter, tmp_path: Path):
        path = tmp_path / "flow.yaml"
        path.write_text("{}")
        with pytest.raises(ValidationError):
            importer.import_document(path)

    def test_rejects_missing_file(self, importer: FlowTreeImporter, tmp_path: Path):
        with pytest.raises(ValidationError):
            importer.import_document(tmp_path / "missing.json")

    def test_rejects_blank_stem(self, importer: FlowTreeImporter, tmp_path: Path):
        path = write_json(tmp_path / "  .json", flow_document())
        with pytest.raises(ValidationError):
            importer.import_document(path)

    def test_malformed_content_is_parse_error(
        self, importer: FlowTreeImporter, tmp_path: Path
    ):
        path = tmp_path / "bad.json"
        path.write_text("[]")
        with pytest.raises(ParseError):
            importer.import_document(path)

    def test_name_is_trimmed_stem(self, importer: FlowTreeImporter, tmp_path: Path):
        path = write_json(tmp_path / " spaced .json", flow_document("inner"))
        assert importer.import_document(path).name == "spaced"

    def test_rekeys_nodes_and_edges(self, importer: FlowTreeImporter, tmp_path: Path):
        path = write_json(tmp_path / "sample.json", flow_document())

        flow = importer.import_document(path)

        assert all_ids(flow).isdisjoint({"n1", "n2", "e1"})
        edge = flow.edges[0]
        node_ids = [n.id for n in flow.nodes]
        assert (edge.source, edge.target) == (node_ids[0], node_ids[1])

    def test_repeated_imports_have_disjoint_ids(
        self, importer: FlowTreeImporter, tmp_path: Path
    ):
        path = write_json(tmp_path / "sample.json", flow_document())
        first = importer.import_document(path)
        second = importer.import_document(path)
        assert all_ids(first).isdisjoint(all_ids(second))


class TestImportFlow:
    def test_registers_disabled_flow(
        self, importer: FlowTreeImporter, engine: LocalEngine, tmp_path: Path
    ):
        path = write_json(tmp_path / "sample.json", flow_document())

        flow = importer.import_flow(path)

        assert flow.name == "sample"
        assert not any(n.enabled for n in flow.nodes)
        stored = engine.get_agent_flow("sample")
        assert not any(n.enabled for n in stored.nodes)

    def test_disambiguates_name(
        self, importer: FlowTreeImporter, engine: LocalEngine, tmp_path: Path
    ):
        path = write_json(tmp_path / "sample.json", flow_document())
        first = importer.import_flow(path)
        second = importer.import_flow(path)

        assert (first.name, second.name) == ("sample", "sample_2")
        assert all_ids(first).isdisjoint(all_ids(second))

    def test_does_not_write_flow_tree(
        self, importer: FlowTreeImporter, tmp_path: Path, flows_dir: Path
    ):
        path = write_json(tmp_path / "sample.json", flow_document())
        importer.import_flow(path)
        assert not flows_dir.exists()

    def test_engine_conflict_propagates(
        self, engine: LocalEngine, flows_dir: Path, tmp_path: Path, monkeypatch
    ):
        importer = FlowTreeImporter(engine, flows_dir)
        engine.new_agent_flow("sample")
        monkeypatch.setattr(engine, "unique_flow_name", lambda name: name)
        path = write_json(tmp_path / "sample.json", flow_document())

        with pytest.raises(ConflictError):
            importer.import_flow(path)
