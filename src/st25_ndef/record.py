"""NDEF record header encoding and decoding.

Wire format (big-endian):
    Offset  Size  Field
    0       1     Flags: MB(7) ME(6) CF(5) SR(4) IL(3) TNF(2..0)
    1       1     Type Length
    2       1|4   Payload Length (1 byte when SR is set, else u32)
    -       0|1   ID Length (present iff IL is set)
    -       T     Type
    -       I     ID
    -       P     Payload
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import Enum, IntEnum, IntFlag

from st25_ndef.errors import BadLengthError
from st25_ndef.store import ByteStore

MAX_SHORT_PAYLOAD = 0xFF
MAX_PAYLOAD = 0xFFFFFFFF

_U32 = struct.Struct(">I")


class Flag(IntFlag):
    """NDEF record header flag bits."""

    MB = 0x80
    ME = 0x40
    CF = 0x20
    SR = 0x10
    IL = 0x08


TNF_MASK = 0x07


class Tnf(IntEnum):
    """Type Name Format."""

    EMPTY = 0x00
    WELL_KNOWN = 0x01
    MEDIA = 0x02
    ABSOLUTE_URI = 0x03
    EXTERNAL = 0x04
    UNKNOWN = 0x05
    UNCHANGED = 0x06
    RESERVED = 0x07


WIFI_MIME_TYPE = b"application/vnd.wfa.wsc"


class RecordKind(Enum):
    """Payload kinds this codec produces and consumes, keyed by (TNF, type)."""

    URI = (Tnf.WELL_KNOWN, b"U")
    TEXT = (Tnf.WELL_KNOWN, b"T")
    WIFI = (Tnf.MEDIA, WIFI_MIME_TYPE)

    @property
    def tnf(self) -> Tnf:
        return self.value[0]

    @property
    def record_type(self) -> bytes:
        return self.value[1]

    def matches(self, tnf: int, record_type: bytes) -> bool:
        return tnf == self.tnf and record_type == self.record_type

    @classmethod
    def lookup(cls, tnf: int, record_type: bytes) -> RecordKind | None:
        """Return the kind for a (TNF, type) pair, or None if unsupported."""
        for kind in cls:
            if kind.matches(tnf, record_type):
                return kind
        return None


@dataclass(slots=True)
class RecordHeader:
    """Parsed NDEF record header."""

    tnf: int
    type_length: int
    payload_length: int
    id_length: int | None = None
    mb: bool = False
    me: bool = False
    cf: bool = False
    sr: bool = True

    # ----- properties -----

    @property
    def il(self) -> bool:
        return self.id_length is not None

    @property
    def flags(self) -> int:
        value = self.tnf & TNF_MASK
        if self.mb:
            value |= Flag.MB
        if self.me:
            value |= Flag.ME
        if self.cf:
            value |= Flag.CF
        if self.sr:
            value |= Flag.SR
        if self.il:
            value |= Flag.IL
        return int(value)

    @property
    def size(self) -> int:
        """Encoded header size, excluding type, ID and payload."""
        return 2 + (1 if self.sr else 4) + (1 if self.il else 0)

    @property
    def record_size(self) -> int:
        """Size of the whole record: header, type, ID and payload."""
        return self.size + self.type_length + (self.id_length or 0) + self.payload_length

    # ----- serialization -----

    @classmethod
    def for_payload(
        cls,
        tnf: int,
        type_length: int,
        payload_length: int,
        id_length: int | None = None,
        *,
        mb: bool = False,
        me: bool = False,
    ) -> RecordHeader:
        """Build a header using the short form whenever the payload allows."""
        if payload_length < 0 or payload_length > MAX_PAYLOAD:
            raise BadLengthError(f"Payload length out of range: {payload_length}")
        if not 0 <= type_length <= 0xFF:
            raise BadLengthError(f"Type length out of range: {type_length}")
        if id_length is not None and not 0 <= id_length <= 0xFF:
            raise BadLengthError(f"ID length out of range: {id_length}")
        return cls(
            tnf=tnf,
            type_length=type_length,
            payload_length=payload_length,
            id_length=id_length,
            mb=mb,
            me=me,
            sr=payload_length <= MAX_SHORT_PAYLOAD,
        )

    def encode(self) -> bytes:
        out = bytearray([self.flags, self.type_length])
        if self.sr:
            out.append(self.payload_length)
        else:
            out += _U32.pack(self.payload_length)
        if self.il:
            out.append(self.id_length)
        return bytes(out)

    @classmethod
    def decode(cls, store: ByteStore, at: int) -> tuple[RecordHeader, int]:
        """Read a header from ``store`` at ``at``.

        SR and IL are taken from the flags byte as stored, never recomputed.

        Returns:
            (header, bytes_consumed)
        """
        header, consumed = cls.decode_after_flags(store, store.read_byte(at), at + 1)
        return header, consumed + 1

    @classmethod
    def decode_after_flags(cls, store: ByteStore, flags: int, at: int) -> tuple[RecordHeader, int]:
        """Read the rest of a header whose flags byte was already read.

        ``at`` is the address of the Type Length byte.

        Returns:
            (header, bytes_consumed) where the count excludes the flags byte.
        """
        type_length = store.read_byte(at)
        pos = at + 1

        sr = bool(flags & Flag.SR)
        if sr:
            payload_length = store.read_byte(pos)
            pos += 1
        else:
            (payload_length,) = _U32.unpack(store.read(pos, 4))
            pos += 4

        id_length = None
        if flags & Flag.IL:
            id_length = store.read_byte(pos)
            pos += 1

        header = cls(
            tnf=flags & TNF_MASK,
            type_length=type_length,
            payload_length=payload_length,
            id_length=id_length,
            mb=bool(flags & Flag.MB),
            me=bool(flags & Flag.ME),
            cf=bool(flags & Flag.CF),
            sr=sr,
        )
        return header, pos - at


def encode_header(
    flags: int,
    type_length: int,
    payload_length: int,
    id_length: int | None = None,
) -> bytes:
    """Encode a record header from raw flag bits.

    MB, ME, CF and TNF come from ``flags``. SR is derived from
    ``payload_length`` and IL from whether ``id_length`` is given.
    """
    header = RecordHeader.for_payload(
        flags & TNF_MASK,
        type_length,
        payload_length,
        id_length,
        mb=bool(flags & Flag.MB),
        me=bool(flags & Flag.ME),
    )
    header.cf = bool(flags & Flag.CF)
    return header.encode()
