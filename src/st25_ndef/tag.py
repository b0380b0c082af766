"""NdefTag: one object for provisioning, writing and reading a tag.

Owns a ByteStore, the CC file size (which fixes ``tlv_base``) and the write
cursor that chains records across calls.

Example::

    tag = NdefTag(transport)
    tag.format(CCFile.eight_byte_default())

    tag.write_uri("sparkfun.com", 0x02, me=False)
    tag.write_text("Hello", mb=False, me=False)
    tag.write_wifi("guestNetwork", "guestPassword123", mb=False)

    print(tag.read_uri().uri)
    print(tag.read_wifi().ssid)
"""

from __future__ import annotations

import logging

from st25_ndef.ccfile import CCFile, read_cc_file, write_cc_file
from st25_ndef.config import StoreConfig
from st25_ndef.errors import RecordNotFoundError
from st25_ndef.message import append_record, clear_message
from st25_ndef.parser import find_record, read_records
from st25_ndef.payloads import (
    DEFAULT_LANGUAGE,
    AuthType,
    EncryptType,
    NdefRecord,
    TextRecord,
    UriRecord,
    WifiCredential,
)
from st25_ndef.record import RecordKind
from st25_ndef.store import ByteStore
from st25_ndef.tlv import read_message_tlv
from st25_ndef.transport import Transport

log = logging.getLogger("st25_ndef.tag")


class NdefTag:
    """NDEF reader/writer for the user memory of a Type 5 tag."""

    def __init__(
        self,
        transport: Transport,
        config: StoreConfig | None = None,
        *,
        tlv_base: int = 4,
    ) -> None:
        self._store = ByteStore(transport, config)
        self._tlv_base = tlv_base
        self._cursor = tlv_base

    @property
    def store(self) -> ByteStore:
        return self._store

    @property
    def tlv_base(self) -> int:
        return self._tlv_base

    @property
    def cursor(self) -> int:
        """Address just past the last record written through this tag."""
        return self._cursor

    # ----- provisioning -----

    def format(self, cc: CCFile | None = None) -> CCFile:
        """Write the CC file followed by an empty NDEF message."""
        cc = write_cc_file(self._store, cc)
        self._tlv_base = cc.tlv_base
        self._cursor = clear_message(self._store, self._tlv_base)
        log.info("Formatted tag: TLV area at %#06x", self._tlv_base)
        return cc

    def load(self) -> CCFile:
        """Read the CC file and position the cursor at the end of the message."""
        cc = read_cc_file(self._store)
        self._tlv_base = cc.tlv_base
        try:
            self._cursor = read_message_tlv(self._store, self._tlv_base).end_address
        except RecordNotFoundError:
            self._cursor = self._tlv_base
        return cc

    # ----- writing -----

    def write_record(
        self,
        record: NdefRecord,
        *,
        mb: bool = True,
        me: bool = True,
        address: int | None = None,
    ) -> int:
        """Write one record and advance the cursor. Returns the new cursor."""
        if address is None and not mb:
            address = self._cursor
        self._cursor = append_record(
            self._store, self._tlv_base, record, mb=mb, me=me, address=address
        )
        return self._cursor

    def write_uri(
        self,
        uri: str,
        prefix_code: int | None = None,
        *,
        mb: bool = True,
        me: bool = True,
        address: int | None = None,
    ) -> int:
        """Write a URI record.

        Without ``prefix_code`` the longest known prefix is abbreviated
        automatically; with it, ``uri`` is stored as given after the code.
        """
        if prefix_code is None:
            record = UriRecord.from_uri(uri)
        else:
            record = UriRecord(uri, prefix_code)
        return self.write_record(record, mb=mb, me=me, address=address)

    def write_text(
        self,
        text: str,
        language: str = DEFAULT_LANGUAGE,
        *,
        mb: bool = True,
        me: bool = True,
        address: int | None = None,
    ) -> int:
        return self.write_record(TextRecord(text, language), mb=mb, me=me, address=address)

    def write_wifi(
        self,
        ssid: str,
        passphrase: str,
        *,
        auth_type: int = AuthType.WPA2_PERSONAL,
        encrypt_type: int = EncryptType.AES,
        mb: bool = True,
        me: bool = True,
        address: int | None = None,
    ) -> int:
        record = WifiCredential(ssid, passphrase, auth_type=auth_type, encrypt_type=encrypt_type)
        return self.write_record(record, mb=mb, me=me, address=address)

    # ----- reading -----

    def read_uri(self, index: int = 1) -> UriRecord:
        return find_record(self._store, self._tlv_base, RecordKind.URI, index)

    def read_text(self, index: int = 1) -> TextRecord:
        return find_record(self._store, self._tlv_base, RecordKind.TEXT, index)

    def read_wifi(self, index: int = 1) -> WifiCredential:
        return find_record(self._store, self._tlv_base, RecordKind.WIFI, index)

    def records(self) -> list[NdefRecord]:
        """All supported records in the message, in order."""
        return read_records(self._store, self._tlv_base)
