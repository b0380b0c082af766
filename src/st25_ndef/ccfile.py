"""Capability Container (CC) file at the start of tag user memory.

4-byte form (MLEN fits in one byte):
    Offset  Size  Field
    0       1     Magic (0xE1 = one-byte addressing)
    1       1     Version (b7-b6 major, b5-b4 minor) and access (b3-b2 read, b1-b0 write)
    2       1     MLEN (data area size / 8)
    3       1     Additional features (b0 = Read Multiple Block supported)

8-byte form (byte 2 is zero, MLEN moves to bytes 6-7):
    0       1     Magic (0xE1, or 0xE2 = two-byte addressing)
    1       1     Version and access
    2       1     0x00
    3       1     Additional features
    4       2     RFU
    6       2     MLEN (big-endian)

The TLV area starts right after the CC file, so its size is ``tlv_base``.
For an ST25DV64KC using all 8192 bytes: MLEN = (8192 - 8) / 8 = 0x03FF.
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass

from st25_ndef.errors import BadLengthError, BadMagicError
from st25_ndef.store import ByteStore

log = logging.getLogger("st25_ndef.ccfile")

CC_MAGIC_1BYTE_ADDR = 0xE1
CC_MAGIC_2BYTE_ADDR = 0xE2
CC_VERSION_1_0 = 0x40

FEATURE_MBREAD = 0x01
FEATURE_LOCK_BLOCK = 0x08
FEATURE_SPECIAL_FRAME = 0x10

_U16 = struct.Struct(">H")


@dataclass(slots=True)
class CCFile:
    """Parsed Capability Container."""

    magic: int = CC_MAGIC_1BYTE_ADDR
    version_access: int = CC_VERSION_1_0
    mlen: int = 0x3F
    features: int = 0x00
    eight_byte: bool = False

    # ----- properties -----

    @property
    def size(self) -> int:
        return 8 if self.eight_byte else 4

    @property
    def tlv_base(self) -> int:
        """Address of the first TLV block."""
        return self.size

    @property
    def data_area_size(self) -> int:
        return self.mlen * 8

    @property
    def read_access(self) -> int:
        return (self.version_access >> 2) & 0x03

    @property
    def write_access(self) -> int:
        return self.version_access & 0x03

    @property
    def is_writable(self) -> bool:
        return self.write_access == 0

    @property
    def supports_multiple_block_read(self) -> bool:
        return bool(self.features & FEATURE_MBREAD)

    @property
    def supports_lock_block(self) -> bool:
        return bool(self.features & FEATURE_LOCK_BLOCK)

    @property
    def supports_special_frame(self) -> bool:
        return bool(self.features & FEATURE_SPECIAL_FRAME)

    # ----- construction -----

    @classmethod
    def four_byte(cls) -> CCFile:
        return cls.from_words(0xE1403F00)

    @classmethod
    def eight_byte_default(cls) -> CCFile:
        return cls.from_words(0xE2400001, 0x000003FF)

    @classmethod
    def from_words(cls, val1: int, val2: int | None = None) -> CCFile:
        """Build from one (4-byte form) or two (8-byte form) 32-bit words."""
        raw = val1.to_bytes(4, "big")
        if val2 is not None:
            raw += val2.to_bytes(4, "big")
        return cls.decode(raw)

    # ----- serialization -----

    def encode(self) -> bytes:
        if self.eight_byte:
            return bytes([self.magic, self.version_access, 0x00, self.features, 0x00, 0x00]) + _U16.pack(
                self.mlen
            )
        if not 0 < self.mlen <= 0xFF:
            raise BadLengthError(f"MLEN {self.mlen:#x} needs the 8-byte CC file")
        return bytes([self.magic, self.version_access, self.mlen, self.features])

    @classmethod
    def decode(cls, buf: bytes | bytearray | memoryview) -> CCFile:
        """Parse a 4- or 8-byte CC file.

        Raises:
            BadMagicError: unknown magic number or major version.
            BadLengthError: buffer too short for the form it declares.
        """
        if len(buf) < 4:
            raise BadLengthError(f"CC file too small: {len(buf)} < 4")

        magic, version_access, mlen8, features = buf[0], buf[1], buf[2], buf[3]
        if magic not in (CC_MAGIC_1BYTE_ADDR, CC_MAGIC_2BYTE_ADDR):
            raise BadMagicError(f"Invalid CC magic: {magic:#04x}")
        if version_access & 0xC0 != CC_VERSION_1_0:
            raise BadMagicError(f"Unsupported CC version: {version_access >> 4:#x}")

        if mlen8 != 0:
            return cls(magic, version_access, mlen8, features, eight_byte=False)

        if len(buf) < 8:
            raise BadLengthError(f"8-byte CC file truncated: {len(buf)} < 8")
        (mlen,) = _U16.unpack_from(bytes(buf[6:8]))
        return cls(magic, version_access, mlen, features, eight_byte=True)


def write_cc_file(store: ByteStore, cc: CCFile | None = None) -> CCFile:
    """Write ``cc`` (default: 4-byte form) at address 0."""
    cc = cc or CCFile.four_byte()
    store.write(0, cc.encode())
    log.info("Wrote %d-byte CC file (MLEN=%#x)", cc.size, cc.mlen)
    return cc


def read_cc_file(store: ByteStore) -> CCFile:
    """Read and validate the CC file at address 0."""
    head = store.read(0, 4)
    if len(head) == 4 and head[2] == 0:
        head = store.read(0, 8)
    return CCFile.decode(head)
