"""
Payload Monitor Tests
=====================

Tests del hex dump usado por el monitor de desarrollo.
"""
import pytest

from mqtt_simulator.data.monitors import hexdump


@pytest.mark.unit
class TestHexdump:

    def test_empty_payload(self):
        assert hexdump(b"") == ""

    def test_single_line(self):
        line = hexdump(b"\x0a\x00AB")
        assert line.startswith("  0000  0A 00 41 42")
        assert line.endswith("..AB")

    def test_wraps_at_width(self):
        lines = hexdump(bytes(range(20)), width=16).splitlines()
        assert len(lines) == 2
        assert lines[1].startswith("  0010  10 11 12 13")
