"""
Topic Registry Tests
====================

Invariantes testeadas:
1. Carga inicial: documento inválido -> error (no hay registry previo)
2. swap() reemplaza todo e incrementa la versión
3. Un snapshot tomado antes del swap no cambia
"""
import pytest

from mqtt_simulator.payload import Bool, SchemaError, TopicEntry
from mqtt_simulator.topics import TopicRegistry, document_format, load_document


@pytest.mark.unit
class TestDocumentLoading:

    def test_document_format_by_suffix(self):
        assert document_format("data.json") == "json"
        assert document_format("data.YAML") == "yaml"
        assert document_format("data.yml") == "yaml"
        assert document_format("data") == "json"

    def test_load_document(self, write_document, simple_document):
        entries = load_document(write_document(simple_document))
        assert [e.topic for e in entries] == ["a", "b"]

    def test_load_yaml_document(self, tmp_path):
        path = tmp_path / "data.yaml"
        path.write_text("- topic: t\n  data: true\n", encoding="utf-8")
        assert load_document(path) == (TopicEntry("t", Bool(True)),)

    def test_missing_file_is_oserror(self, tmp_path):
        with pytest.raises(OSError):
            load_document(tmp_path / "nope.json")

    def test_invalid_utf8_is_schema_error(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_bytes(b'[{"topic": "\xff", "data": true}]')
        with pytest.raises(SchemaError):
            load_document(path)


@pytest.mark.unit
class TestTopicRegistry:

    def test_from_path(self, write_document, simple_document):
        registry = TopicRegistry.from_path(write_document(simple_document))
        assert registry.version == 1
        assert len(registry) == 2
        assert registry.snapshot().topics == ["a", "b"]

    def test_from_path_invalid_is_fatal(self, write_document):
        """
        Invariante: sin registry previo, un documento inválido es un error.
        """
        with pytest.raises(SchemaError):
            TopicRegistry.from_path(write_document("[{", raw=True))

    def test_swap_replaces_everything(self):
        registry = TopicRegistry([TopicEntry("a", Bool(True))], source="x.json")
        snapshot = registry.swap([TopicEntry("b", Bool(False)), TopicEntry("c", Bool(True))])

        assert snapshot.version == 2
        assert registry.snapshot() is snapshot
        assert registry.snapshot().topics == ["b", "c"]
        assert registry.snapshot().source == "x.json"

    def test_old_snapshot_is_unaffected_by_swap(self):
        """
        Invariante: un lector nunca ve un cambio a mitad de su operación.
        """
        registry = TopicRegistry([TopicEntry("a", Bool(True))])
        before = registry.snapshot()
        registry.swap([])

        assert before.topics == ["a"]
        assert before.version == 1
        assert len(registry) == 0

    def test_swap_to_empty(self):
        registry = TopicRegistry([TopicEntry("a", Bool(True))])
        registry.swap([])
        assert list(registry.snapshot()) == []

    def test_repr(self):
        assert "v1" in repr(TopicRegistry())
