"""Chunked, retrying byte store over a narrow transport.

Turns a width-limited, NACK-prone chunk transport into variable-length
``read``/``write`` calls:

- requests are split into chunks of at most ``chunk_size`` bytes
- each chunk is attempted up to ``max_retries`` times, sleeping
  ``retry_delay_ms`` between attempts (the tag NACKs while it programs EEPROM)
- exhausting the attempts raises ``DeviceBusyError``; chunks already
  written stay written
- an optional settle delay is observed after every write

All operations block. One ByteStore must have a single owner; callers that
share a transport serialise access themselves.
"""

from __future__ import annotations

import logging
import time

from st25_ndef.config import StoreConfig
from st25_ndef.errors import DeviceBusyError, TransportError, TruncatedError
from st25_ndef.transport import Transport

log = logging.getLogger("st25_ndef.store")


class ByteStore:
    """Reliable variable-length access to tag user memory."""

    def __init__(self, transport: Transport, config: StoreConfig | None = None) -> None:
        self._transport = transport
        self._config = config or StoreConfig()
        self._capacity = (
            self._config.capacity if self._config.capacity is not None else transport.capacity
        )
        self._settle_until = 0.0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def config(self) -> StoreConfig:
        return self._config

    @property
    def transport(self) -> Transport:
        return self._transport

    # ----- I/O -----

    def read(self, address: int, length: int) -> bytes:
        """Read ``length`` bytes starting at ``address``.

        Raises:
            TruncatedError: range outside the store, or the device kept
                returning short chunks.
            DeviceBusyError: a chunk failed on every attempt.
        """
        if length == 0:
            return b""
        self._check_range(address, length)
        self._settle()

        chunk_size = self._config.chunk_size
        parts: list[bytes] = []
        done = 0
        while done < length:
            n = min(chunk_size, length - done)
            parts.append(self._read_chunk(address + done, n))
            done += n

        return b"".join(parts)

    def write(self, address: int, data: bytes) -> None:
        """Write ``data`` starting at ``address``.

        Not atomic across chunks: when a chunk fails, the chunks before it
        remain committed and no later chunk is attempted.

        Raises:
            TruncatedError: range outside the store.
            DeviceBusyError: a chunk failed on every attempt.
        """
        if not data:
            return
        data = bytes(data)
        self._check_range(address, len(data))
        self._settle()

        chunk_size = self._config.chunk_size
        done = 0
        while done < len(data):
            chunk = data[done : done + chunk_size]
            self._write_chunk(address + done, chunk)
            done += len(chunk)

        if self._config.write_settle_ms > 0:
            self._settle_until = time.monotonic() + self._config.write_settle_s

    def read_byte(self, address: int) -> int:
        return self.read(address, 1)[0]

    # ----- internal -----

    def _check_range(self, address: int, length: int) -> None:
        if address < 0 or length < 0 or address + length > self._capacity:
            raise TruncatedError(
                f"Range {address:#06x}+{length} outside store of {self._capacity} bytes"
            )

    def _settle(self) -> None:
        """Wait for the previous write's commit window to pass."""
        remaining = self._settle_until - time.monotonic()
        if remaining > 0:
            time.sleep(remaining)
        self._settle_until = 0.0

    def _read_chunk(self, address: int, length: int) -> bytes:
        short = False
        for attempt in range(1, self._config.max_retries + 1):
            try:
                data = self._transport.read_chunk(address, length)
            except TransportError as e:
                short = False
                log.debug("Read of %d bytes at %#06x failed (attempt %d): %s", length, address, attempt, e)
            else:
                if len(data) == length:
                    return data
                short = True
                log.debug(
                    "Short read at %#06x: %d/%d bytes (attempt %d)", address, len(data), length, attempt
                )

            if attempt < self._config.max_retries:
                time.sleep(self._config.retry_delay_s)

        log.warning("Read at %#06x abandoned after %d attempts", address, self._config.max_retries)
        if short:
            raise TruncatedError(f"Device returned fewer than {length} bytes at {address:#06x}")
        raise DeviceBusyError(address, self._config.max_retries)

    def _write_chunk(self, address: int, chunk: bytes) -> None:
        for attempt in range(1, self._config.max_retries + 1):
            try:
                self._transport.write_chunk(address, chunk)
                return
            except TransportError as e:
                log.debug(
                    "Write of %d bytes at %#06x failed (attempt %d): %s", len(chunk), address, attempt, e
                )

            if attempt < self._config.max_retries:
                time.sleep(self._config.retry_delay_s)

        log.warning("Write at %#06x abandoned after %d attempts", address, self._config.max_retries)
        raise DeviceBusyError(address, self._config.max_retries)
