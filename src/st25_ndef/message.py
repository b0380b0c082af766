"""NDEF message building: chain records into a TLV in tag memory.

A message can be written in one call (``write_message``) or built up one
record at a time (``append_record``) across calls:

    first:         mb=True,  me=False
    intermediate:  mb=False, me=False
    last:          mb=False, me=True

Between calls the only chaining state is the write cursor returned by each
call, the address just past the last record. The terminator TLV is never
counted in the TLV length; it always sits at ``value_address + length``, so
an append overwrites it and writes a fresh one after the new record.

Example::

    cursor = append_record(store, 8, UriRecord("sparkfun.com", 0x02), mb=True, me=False)
    cursor = append_record(store, 8, TextRecord("hello"), mb=False, me=True, address=cursor)
"""

from __future__ import annotations

import logging

from st25_ndef.errors import OutOfSpaceError
from st25_ndef.parser import iter_records
from st25_ndef.payloads import NdefRecord, encode_record
from st25_ndef.record import Flag
from st25_ndef.store import ByteStore
from st25_ndef.tlv import (
    MAX_EXTENDED_LENGTH,
    MAX_SHORT_LENGTH,
    NDEF_MESSAGE_TLV,
    TERMINATOR_TLV,
    encode_length,
    grow_length,
    read_message_tlv,
)

log = logging.getLogger("st25_ndef.message")

EMPTY_MESSAGE = bytes([NDEF_MESSAGE_TLV, 0x00, TERMINATOR_TLV])


def append_record(
    store: ByteStore,
    tlv_base: int,
    record: NdefRecord,
    *,
    mb: bool = True,
    me: bool = True,
    address: int | None = None,
) -> int:
    """Write ``record`` as part of the NDEF message at ``tlv_base``.

    With ``mb`` set a new message TLV is started at ``address`` (default
    ``tlv_base``). Without it the record is appended to the open message:
    its length field at ``tlv_base + 1`` is grown first, then the record is
    written at ``address`` (default: end of the current value), moved two
    bytes further if the length field had to widen. If the record currently
    last in the message carries ME, that bit is cleared first. With ``me``
    set a terminator TLV follows the record.

    Returns:
        The new write cursor: the address just past the record.

    Raises:
        OutOfSpaceError: the message would not fit in the store.
        StoreError: a transfer failed. Writes already committed stay in
            place; with ``mb`` clear the grown length field may describe a
            record that was never written.
    """
    data = encode_record(record, mb=mb, me=me)

    if mb:
        start = tlv_base if address is None else address
        frame = bytes([NDEF_MESSAGE_TLV]) + _length_or_raise(len(data)) + data
        _check_space(store, start + len(frame) + (1 if me else 0))
        if me:
            frame += bytes([TERMINATOR_TLV])
        store.write(start, frame)
        cursor = start + len(frame) - (1 if me else 0)
        log.debug("Started message at %#06x with %d byte %s record", start, len(data), record.kind.name)
        return cursor

    msg = read_message_tlv(store, tlv_base)
    if address is None:
        address = msg.end_address
    elif address != msg.end_address:
        log.warning(
            "Append cursor %#06x does not match message end %#06x", address, msg.end_address
        )

    new_length = msg.length.value + len(data)
    if new_length > MAX_EXTENDED_LENGTH:
        raise OutOfSpaceError(new_length, MAX_EXTENDED_LENGTH)
    widen = 2 if (not msg.length.extended and new_length > MAX_SHORT_LENGTH) else 0
    _check_space(store, address + widen + len(data) + (1 if me else 0))

    _clear_message_end(store, tlv_base)
    grown = grow_length(store, msg.field_address, len(data))
    address += grown.shift

    tail = data + (bytes([TERMINATOR_TLV]) if me else b"")
    store.write(address, tail)
    log.debug(
        "Appended %d byte %s record at %#06x (message length %d)",
        len(data),
        record.kind.name,
        address,
        grown.new_length,
    )
    return address + len(data)


def write_message(store: ByteStore, tlv_base: int, records: list[NdefRecord]) -> int:
    """Write a complete message in a single transfer.

    Returns:
        The write cursor (address of the terminator).
    """
    if not records:
        store.write(tlv_base, EMPTY_MESSAGE)
        return tlv_base + 2

    last = len(records) - 1
    value = b"".join(
        encode_record(rec, mb=(n == 0), me=(n == last)) for n, rec in enumerate(records)
    )
    frame = bytes([NDEF_MESSAGE_TLV]) + _length_or_raise(len(value)) + value
    _check_space(store, tlv_base + len(frame) + 1)
    store.write(tlv_base, frame + bytes([TERMINATOR_TLV]))
    return tlv_base + len(frame)


def clear_message(store: ByteStore, tlv_base: int) -> int:
    """Replace whatever is at ``tlv_base`` with an empty message."""
    store.write(tlv_base, EMPTY_MESSAGE)
    return tlv_base + 2


# ----- internal -----


def _length_or_raise(length: int) -> bytes:
    if length > MAX_EXTENDED_LENGTH:
        raise OutOfSpaceError(length, MAX_EXTENDED_LENGTH)
    return encode_length(length)


def _check_space(store: ByteStore, end: int) -> None:
    if end > store.capacity:
        raise OutOfSpaceError(end, store.capacity)


def _clear_message_end(store: ByteStore, tlv_base: int) -> None:
    """Clear ME on the current last record so only the new one carries it."""
    last = None
    for entry in iter_records(store, tlv_base):
        last = entry
    if last is None or not last.header.me:
        return
    store.write(last.address, bytes([last.header.flags & ~int(Flag.ME)]))
    log.debug("Cleared ME on record at %#06x", last.address)
