"""Shared fixtures: an in-memory tag with fault injection."""

import pytest

from st25_ndef.config import StoreConfig
from st25_ndef.errors import TransportError
from st25_ndef.store import ByteStore
from st25_ndef.transport import MemoryTransport


class FlakyTransport(MemoryTransport):
    """MemoryTransport that can NACK, return short reads and log every call."""

    def __init__(self, capacity: int = 0x2000) -> None:
        super().__init__(capacity)
        self.busy_reads = 0  # fail the next N read attempts
        self.busy_writes = 0  # fail the next N write attempts
        self.short_reads = 0  # drop the last byte of the next N reads
        self.dead_write_addresses: set[int] = set()  # chunks starting here always fail
        self.read_calls: list[tuple[int, int]] = []
        self.write_calls: list[tuple[int, bytes]] = []

    def read_chunk(self, address: int, length: int) -> bytes:
        self.read_calls.append((address, length))
        if self.busy_reads > 0:
            self.busy_reads -= 1
            raise TransportError("NACK", status=0x02)
        data = super().read_chunk(address, length)
        if self.short_reads > 0:
            self.short_reads -= 1
            return data[:-1]
        return data

    def write_chunk(self, address: int, data: bytes) -> None:
        self.write_calls.append((address, bytes(data)))
        if address in self.dead_write_addresses:
            raise TransportError("NACK", status=0x03)
        if self.busy_writes > 0:
            self.busy_writes -= 1
            raise TransportError("NACK", status=0x03)
        super().write_chunk(address, data)

    def reset_calls(self) -> None:
        self.read_calls.clear()
        self.write_calls.clear()


@pytest.fixture
def transport():
    return FlakyTransport()


@pytest.fixture
def store(transport):
    return ByteStore(transport, StoreConfig(retry_delay_ms=0))


@pytest.fixture
def make_store():
    """Factory for a (transport, store) pair of a given capacity."""

    def _make(capacity: int = 0x2000):
        transport = FlakyTransport(capacity)
        return transport, ByteStore(transport, StoreConfig(retry_delay_ms=0))

    return _make
