"""Chunk transport backends for tag user memory.

A transport moves one chunk at a time and knows nothing about retries or
chunking; ``ByteStore`` layers those on top. Bus-attached devices implement
``Transport`` and raise ``TransportError`` when a transfer is NACK'd. The two
backends here keep the EEPROM image in memory or in a file, which is enough
for simulation and tests.

Example::

    from st25_ndef.transport import FileTransport

    transport = FileTransport("/var/lib/tags/front-door.bin", capacity=0x2000)
    transport.write_chunk(0, b"\\xe1\\x40\\x3f\\x00")
    cc = transport.read_chunk(0, 4)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path

from st25_ndef.errors import TruncatedError

log = logging.getLogger("st25_ndef.transport")

# ST25DV64KC user memory
DEFAULT_CAPACITY = 0x2000


class Transport(ABC):
    """Abstract base for single-chunk transfer backends."""

    @property
    @abstractmethod
    def capacity(self) -> int:
        """Size of the addressable user memory in bytes."""

    @abstractmethod
    def read_chunk(self, address: int, length: int) -> bytes:
        """Read up to ``length`` bytes at ``address``.

        Raises TransportError when the device refuses the transfer.
        """

    @abstractmethod
    def write_chunk(self, address: int, data: bytes) -> None:
        """Write ``data`` at ``address``.

        Raises TransportError when the device refuses the transfer.
        """


class MemoryTransport(Transport):
    """In-memory EEPROM image; contents are lost on process exit."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY, fill: int = 0x00) -> None:
        self._image = bytearray([fill]) * capacity

    @property
    def capacity(self) -> int:
        return len(self._image)

    @property
    def image(self) -> bytes:
        """Snapshot of the whole memory."""
        return bytes(self._image)

    def read_chunk(self, address: int, length: int) -> bytes:
        return bytes(self._image[address : address + length])

    def write_chunk(self, address: int, data: bytes) -> None:
        end = address + len(data)
        if address < 0 or end > len(self._image):
            raise TruncatedError(f"Write {address:#06x}+{len(data)} outside {len(self._image)} bytes")
        self._image[address:end] = data


class FileTransport(Transport):
    """File-backed EEPROM image.

    The file is created (parent directories included) and filled with
    ``fill`` on first use. Each write goes straight to disk.
    """

    def __init__(
        self,
        path: str | Path,
        capacity: int = DEFAULT_CAPACITY,
        fill: int = 0x00,
    ) -> None:
        self._path = Path(path)
        self._capacity = capacity
        if not self._path.exists():
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_bytes(bytes([fill]) * capacity)
            log.info("Created %d byte tag image at %s", capacity, self._path)
        else:
            size = self._path.stat().st_size
            if size < capacity:
                with self._path.open("ab") as f:
                    f.write(bytes([fill]) * (capacity - size))

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def path(self) -> Path:
        return self._path

    def read_chunk(self, address: int, length: int) -> bytes:
        length = max(0, min(length, self._capacity - address))
        with self._path.open("rb") as f:
            f.seek(address)
            return f.read(length)

    def write_chunk(self, address: int, data: bytes) -> None:
        if address < 0 or address + len(data) > self._capacity:
            raise TruncatedError(f"Write {address:#06x}+{len(data)} outside {self._capacity} bytes")
        with self._path.open("r+b") as f:
            f.seek(address)
            f.write(data)
