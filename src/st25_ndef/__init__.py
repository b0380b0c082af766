"""st25-ndef: NDEF messages on Type 5 NFC tag memory.

Reads and writes URI, Text and Wi-Fi credential records in the user EEPROM
of an ST25DV-class tag. Access goes through a chunked, retrying byte store,
and messages are framed as Type 5 Tag TLVs whose length field is grown in
place as records are appended.

Example usage::

    from st25_ndef import CCFile, MemoryTransport, NdefTag, StoreConfig

    tag = NdefTag(MemoryTransport(), StoreConfig(chunk_size=32))
    tag.format(CCFile.eight_byte_default())

    # One record
    tag.write_uri("sparkfun.com", 0x02)

    # A chained message, built across calls
    tag.write_text("first", me=False)
    tag.write_text("zweite", "de", mb=False, me=False)
    tag.write_wifi("guestNetwork", "guestPassword123", mb=False)

    print(tag.read_text(2).text)
    print(tag.read_wifi().passphrase)
"""

from st25_ndef.ccfile import CCFile, read_cc_file, write_cc_file
from st25_ndef.config import StoreConfig
from st25_ndef.errors import (
    BadLengthError,
    BadMagicError,
    DeviceBusyError,
    FormatError,
    NdefError,
    OutOfSpaceError,
    RecordNotFoundError,
    StoreError,
    TransportError,
    TruncatedError,
    UnsupportedRecordError,
)
from st25_ndef.message import append_record, clear_message, write_message
from st25_ndef.parser import RecordEntry, find_record, iter_records, read_records
from st25_ndef.payloads import (
    AuthType,
    EncryptType,
    NdefRecord,
    TextRecord,
    UriRecord,
    WifiCredential,
    encode_record,
)
from st25_ndef.record import Flag, RecordHeader, RecordKind, Tnf, encode_header
from st25_ndef.store import ByteStore
from st25_ndef.tag import NdefTag
from st25_ndef.tlv import (
    NDEF_MESSAGE_TLV,
    TERMINATOR_TLV,
    GrowResult,
    LengthField,
    decode_length,
    encode_length,
    grow_length,
)
from st25_ndef.transport import FileTransport, MemoryTransport, Transport

__version__ = "0.1.0"

__all__ = [
    # Transport / store
    "Transport",
    "MemoryTransport",
    "FileTransport",
    "ByteStore",
    "StoreConfig",
    # TLV
    "NDEF_MESSAGE_TLV",
    "TERMINATOR_TLV",
    "LengthField",
    "GrowResult",
    "encode_length",
    "decode_length",
    "grow_length",
    # Records
    "Flag",
    "Tnf",
    "RecordKind",
    "RecordHeader",
    "encode_header",
    "UriRecord",
    "TextRecord",
    "WifiCredential",
    "AuthType",
    "EncryptType",
    "NdefRecord",
    "encode_record",
    # Messages
    "append_record",
    "write_message",
    "clear_message",
    "RecordEntry",
    "iter_records",
    "find_record",
    "read_records",
    # CC file
    "CCFile",
    "read_cc_file",
    "write_cc_file",
    # Errors
    "NdefError",
    "StoreError",
    "TransportError",
    "DeviceBusyError",
    "TruncatedError",
    "FormatError",
    "BadMagicError",
    "BadLengthError",
    "UnsupportedRecordError",
    "RecordNotFoundError",
    "OutOfSpaceError",
    # Tag
    "NdefTag",
]
