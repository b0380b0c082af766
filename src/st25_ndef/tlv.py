"""Type 5 Tag TLV framing and its self-describing length field.

Each TLV block in tag memory is encoded as:
    Offset  Size  Field
    0       1     Tag (0x03 = NDEF message, 0xFE = terminator)
    1       1|3   Length (one byte up to 0xFE, else 0xFF + u16 big-endian)
    2|4     N     Value (N = Length)

The terminator TLV is a bare tag byte with no length or value. The length
field is the only part of a message that changes size as records are
appended: crossing 0xFE widens it from one byte to three, which moves the
whole value two bytes further into memory.
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass

from st25_ndef.errors import BadLengthError, OutOfSpaceError, RecordNotFoundError
from st25_ndef.store import ByteStore

log = logging.getLogger("st25_ndef.tlv")

NDEF_MESSAGE_TLV = 0x03
TERMINATOR_TLV = 0xFE

EXTENDED_LENGTH_MARKER = 0xFF
MAX_SHORT_LENGTH = 0xFE
MAX_EXTENDED_LENGTH = 0xFFFF

_U16 = struct.Struct(">H")


@dataclass(frozen=True, slots=True)
class LengthField:
    """A decoded TLV length: ``Short`` (1 byte) or ``Extended`` (3 bytes)."""

    value: int
    extended: bool = False

    @property
    def size(self) -> int:
        return 3 if self.extended else 1

    @classmethod
    def for_length(cls, length: int) -> LengthField:
        """Pick the smallest form able to hold ``length``."""
        if length < 0 or length > MAX_EXTENDED_LENGTH:
            raise BadLengthError(f"TLV length out of range: {length}")
        return cls(length, extended=length > MAX_SHORT_LENGTH)

    def encode(self) -> bytes:
        if self.extended:
            return bytes([EXTENDED_LENGTH_MARKER]) + _U16.pack(self.value)
        return bytes([self.value])


@dataclass(frozen=True, slots=True)
class MessageTlv:
    """Location of an NDEF message TLV in tag memory."""

    tag: int
    length: LengthField
    field_address: int
    value_address: int

    @property
    def end_address(self) -> int:
        """Address just past the value, where the terminator belongs."""
        return self.value_address + self.length.value


@dataclass(frozen=True, slots=True)
class GrowResult:
    """Outcome of ``grow_length``. ``shift`` is how far the value moved."""

    old_length: int
    new_length: int
    shift: int

    @property
    def widened(self) -> bool:
        return self.shift > 0


def encode_length(length: int) -> bytes:
    """Encode a TLV length in its smallest on-wire form."""
    return LengthField.for_length(length).encode()


def decode_length(store: ByteStore, at: int) -> tuple[LengthField, int, int]:
    """Decode the length field at ``at``.

    Returns:
        (field, bytes_consumed, value_address)
    """
    first = store.read_byte(at)
    if first != EXTENDED_LENGTH_MARKER:
        return LengthField(first), 1, at + 1

    (value,) = _U16.unpack(store.read(at + 1, 2))
    return LengthField(value, extended=True), 3, at + 3


def grow_length(store: ByteStore, field_address: int, delta: int) -> GrowResult:
    """Add ``delta`` to the length field at ``field_address``.

    An extended field, or a short field whose new length still fits in one
    byte, is rewritten in place. A short field that must hold more than
    0xFE widens to three bytes: the current value is read in full and
    rewritten two bytes later, behind the new ``FF hi lo`` field. The caller
    must move any cursor it holds by ``GrowResult.shift``.

    Not atomic. If the rewrite fails part way, memory between
    ``field_address`` and the end of the value is in an unspecified state.

    Raises:
        BadLengthError: negative ``delta``.
        OutOfSpaceError: new length above 0xFFFF, or the widened value
            would run past the end of the store.
    """
    if delta < 0:
        raise BadLengthError(f"Cannot shrink a TLV length (delta={delta})")

    field, _, value_address = decode_length(store, field_address)
    new_length = field.value + delta
    if new_length > MAX_EXTENDED_LENGTH:
        raise OutOfSpaceError(new_length, MAX_EXTENDED_LENGTH)

    if field.extended:
        store.write(field_address + 1, _U16.pack(new_length))
        return GrowResult(field.value, new_length, 0)

    if new_length <= MAX_SHORT_LENGTH:
        store.write(field_address, bytes([new_length]))
        return GrowResult(field.value, new_length, 0)

    required = field_address + 3 + field.value
    if required > store.capacity:
        raise OutOfSpaceError(required, store.capacity)

    log.info(
        "Widening TLV length at %#06x: %d -> %d, moving %d value bytes",
        field_address,
        field.value,
        new_length,
        field.value,
    )
    value = store.read(value_address, field.value)
    store.write(field_address, LengthField(new_length, extended=True).encode() + value)
    return GrowResult(field.value, new_length, 2)


def read_message_tlv(store: ByteStore, tlv_base: int) -> MessageTlv:
    """Locate the NDEF message TLV that starts at ``tlv_base``.

    Raises:
        RecordNotFoundError: no NDEF message TLV at ``tlv_base``.
    """
    tag = store.read_byte(tlv_base)
    if tag != NDEF_MESSAGE_TLV:
        log.debug("No NDEF message TLV at %#06x (found %#04x)", tlv_base, tag)
        raise RecordNotFoundError()

    field, _, value_address = decode_length(store, tlv_base + 1)
    return MessageTlv(
        tag=tag,
        length=field,
        field_address=tlv_base + 1,
        value_address=value_address,
    )
