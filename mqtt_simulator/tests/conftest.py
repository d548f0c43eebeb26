"""
Fixtures compartidos
====================

- write_document: escribe un documento JSON en tmp_path
- fake_publisher: Publisher en memoria
"""
import json
import os

import pytest

from mqtt_simulator.tests.fakes import FakePublisher


@pytest.fixture
def fake_publisher():
    return FakePublisher()


@pytest.fixture
def write_document(tmp_path):
    """
    Escribe el documento y fuerza un mtime distinto en cada escritura
    (algunos filesystems tienen resolución gruesa de mtime).
    """
    path = tmp_path / "data.json"
    state = {"mtime_ns": 1_000_000_000_000_000_000}

    def _write(content, raw: bool = False):
        text = content if raw else json.dumps(content)
        path.write_text(text, encoding="utf-8")
        state["mtime_ns"] += 1_000_000_000
        os.utime(path, ns=(state["mtime_ns"], state["mtime_ns"]))
        return path

    return _write


@pytest.fixture
def simple_document():
    return [
        {"topic": "a", "data": {"value": 1, "width": "8"}},
        {"topic": "b", "data": {"value": True}},
    ]
