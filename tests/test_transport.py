"""Tests for memory and file transport backends."""

import pytest

from st25_ndef.errors import TruncatedError
from st25_ndef.transport import DEFAULT_CAPACITY, FileTransport, MemoryTransport


class TestMemoryTransport:
    """Test in-memory EEPROM image."""

    @pytest.fixture
    def transport(self):
        return MemoryTransport(capacity=64)

    def test_capacity(self, transport):
        assert transport.capacity == 64
        assert MemoryTransport().capacity == DEFAULT_CAPACITY

    def test_fill(self):
        assert MemoryTransport(capacity=4, fill=0xFF).image == b"\xff" * 4

    def test_write_and_read(self, transport):
        transport.write_chunk(10, b"abc")
        assert transport.read_chunk(10, 3) == b"abc"
        assert transport.image[9:14] == b"\x00abc\x00"

    def test_read_at_end_is_short(self, transport):
        assert transport.read_chunk(62, 4) == b"\x00\x00"

    def test_write_outside(self, transport):
        with pytest.raises(TruncatedError):
            transport.write_chunk(62, b"abc")


class TestFileTransport:
    """Test file-backed EEPROM image."""

    def test_creates_file(self, tmp_path):
        path = tmp_path / "sub" / "tag.bin"
        transport = FileTransport(path, capacity=128, fill=0xFF)

        assert path.exists()
        assert path.read_bytes() == b"\xff" * 128
        assert transport.path == path
        assert transport.capacity == 128

    def test_write_and_read(self, tmp_path):
        transport = FileTransport(tmp_path / "tag.bin", capacity=128)
        transport.write_chunk(4, b"\x03\x00\xfe")
        assert transport.read_chunk(4, 3) == b"\x03\x00\xfe"

    def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "tag.bin"
        FileTransport(path, capacity=128).write_chunk(0, b"\xe1\x40\x3f\x00")

        reopened = FileTransport(path, capacity=128)
        assert reopened.read_chunk(0, 4) == b"\xe1\x40\x3f\x00"

    def test_pads_short_file(self, tmp_path):
        path = tmp_path / "tag.bin"
        path.write_bytes(b"\x01\x02")

        transport = FileTransport(path, capacity=16)
        assert path.stat().st_size == 16
        assert transport.read_chunk(0, 3) == b"\x01\x02\x00"

    def test_read_clamped_to_capacity(self, tmp_path):
        transport = FileTransport(tmp_path / "tag.bin", capacity=16)
        assert len(transport.read_chunk(14, 8)) == 2

    def test_write_outside(self, tmp_path):
        transport = FileTransport(tmp_path / "tag.bin", capacity=16)
        with pytest.raises(TruncatedError):
            transport.write_chunk(15, b"ab")
