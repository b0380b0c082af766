"""NDEF record lookup that walks tag memory in place.

The parser never loads the whole message. For each record it reads the
flags byte, the length fields and the type, decides whether the record is
the one being looked for, and otherwise jumps straight over the ID and
payload. Only the payload of the matched record is read in full.

Termination (``RecordNotFoundError`` from ``find_record``):
- a terminator TLV byte where a record header is expected
- the running address passing ``tlv_base + 4 + declared_length``
- a record whose header or body would end past the declared value
- the end of the store, whatever length the message declares
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator

from st25_ndef.errors import RecordNotFoundError
from st25_ndef.payloads import NdefRecord, decode_payload
from st25_ndef.record import Flag, RecordHeader, RecordKind
from st25_ndef.store import ByteStore
from st25_ndef.tlv import TERMINATOR_TLV, read_message_tlv

log = logging.getLogger("st25_ndef.parser")


@dataclass(slots=True)
class RecordEntry:
    """A record located in tag memory, payload not yet read."""

    header: RecordHeader
    address: int
    record_type: bytes
    payload_address: int

    @property
    def kind(self) -> RecordKind | None:
        return RecordKind.lookup(self.header.tnf, self.record_type)

    @property
    def end_address(self) -> int:
        return self.payload_address + self.header.payload_length

    def read_payload(self, store: ByteStore) -> bytes:
        return store.read(self.payload_address, self.header.payload_length)


def iter_records(store: ByteStore, tlv_base: int) -> Iterator[RecordEntry]:
    """Yield each record of the message at ``tlv_base`` in order.

    Reads only headers and types; the caller decides which payloads to read.

    Raises:
        RecordNotFoundError: no NDEF message TLV at ``tlv_base``.
    """
    msg = read_message_tlv(store, tlv_base)
    # a declared length past the end of memory is clamped to the store
    limit = min(tlv_base + 4 + msg.length.value, store.capacity)
    value_end = min(msg.end_address, store.capacity)
    address = msg.value_address

    while address < store.capacity:
        flags = store.read_byte(address)
        if flags == TERMINATOR_TLV or address + 1 > limit:
            return

        header_size = 2 + (1 if flags & Flag.SR else 4) + (1 if flags & Flag.IL else 0)
        if address + header_size > value_end:
            log.debug("Record header at %#06x runs past message end %#06x", address, value_end)
            return

        header, consumed = RecordHeader.decode_after_flags(store, flags, address + 1)
        type_address = address + 1 + consumed
        if address + header.record_size > value_end:
            log.debug("Record at %#06x runs past message end %#06x", address, value_end)
            return

        record_type = store.read(type_address, header.type_length)
        payload_address = type_address + header.type_length + (header.id_length or 0)
        yield RecordEntry(
            header=header,
            address=address,
            record_type=record_type,
            payload_address=payload_address,
        )
        address = payload_address + header.payload_length


def find_record(
    store: ByteStore,
    tlv_base: int,
    kind: RecordKind,
    index: int = 1,
) -> NdefRecord:
    """Return the ``index``-th record of ``kind`` (1-based).

    Records of other kinds are skipped without being counted. Chunked
    records are never matched.

    Raises:
        RecordNotFoundError: fewer than ``index`` matching records, or no
            message at ``tlv_base``.
        FormatError: the matched payload is malformed.
        StoreError: a transfer failed.
    """
    if index < 1:
        raise ValueError(f"Record index is 1-based, got {index}")

    try:
        entries = iter_records(store, tlv_base)
        count = 0
        for entry in entries:
            if entry.header.cf or not kind.matches(entry.header.tnf, entry.record_type):
                continue
            count += 1
            if count == index:
                return decode_payload(kind, entry.read_payload(store))
    except RecordNotFoundError:
        pass

    raise RecordNotFoundError(kind.name, index)


def read_records(store: ByteStore, tlv_base: int) -> list[NdefRecord]:
    """Decode every supported record in the message at ``tlv_base``.

    Unsupported and chunked records are skipped. Returns an empty list when
    there is no message.
    """
    records: list[NdefRecord] = []
    try:
        for entry in iter_records(store, tlv_base):
            kind = entry.kind
            if kind is None or entry.header.cf:
                log.debug("Skipping record at %#06x (tnf=%d)", entry.address, entry.header.tnf)
                continue
            records.append(decode_payload(kind, entry.read_payload(store)))
    except RecordNotFoundError:
        return []
    return records
