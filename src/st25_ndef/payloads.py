"""Payload codecs for the supported record kinds.

Records are plain dataclasses, one per kind, dispatched by ``RecordKind``
rather than through a class hierarchy:

    UriRecord       TNF=Well-Known  type "U"
    TextRecord      TNF=Well-Known  type "T"
    WifiCredential  TNF=Media       type "application/vnd.wfa.wsc"

The Wi-Fi payload follows the Wi-Fi Simple Configuration attribute layout:
a Credential attribute (0x100E) wrapping ``{id: u16, length: u16, value}``
sub-attributes, all big-endian.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import ClassVar, Iterator, Union

from st25_ndef.errors import BadLengthError, FormatError, UnsupportedRecordError
from st25_ndef.record import RecordHeader, RecordKind

# ---------------------------------------------------------------------------
# URI
# ---------------------------------------------------------------------------

# NFC Forum URI Record Type Definition abbreviation table
URI_PREFIXES: tuple[str, ...] = (
    "",
    "http://www.",
    "https://www.",
    "http://",
    "https://",
    "tel:",
    "mailto:",
    "ftp://anonymous:anonymous@",
    "ftp://ftp.",
    "ftps://",
    "sftp://",
    "smb://",
    "nfs://",
    "ftp://",
    "dav://",
    "news:",
    "telnet://",
    "imap:",
    "rtsp://",
    "urn:",
    "pop:",
    "sip:",
    "sips:",
    "tftp:",
    "btspp://",
    "btl2cap://",
    "btgoep://",
    "tcpobex://",
    "irdaobex://",
    "file://",
    "urn:epc:id:",
    "urn:epc:tag:",
    "urn:epc:pat:",
    "urn:epc:raw:",
    "urn:epc:",
    "urn:nfc:",
)


@dataclass(slots=True)
class UriRecord:
    """URI record: one abbreviation byte followed by the rest of the URI."""

    kind: ClassVar[RecordKind] = RecordKind.URI
    record_id: ClassVar[bytes | None] = None

    text: str
    prefix_code: int = 0x00

    @property
    def uri(self) -> str:
        """The full URI with the abbreviation expanded."""
        prefix = URI_PREFIXES[self.prefix_code] if self.prefix_code < len(URI_PREFIXES) else ""
        return prefix + self.text

    @classmethod
    def from_uri(cls, uri: str) -> UriRecord:
        """Abbreviate ``uri`` with the longest matching prefix."""
        best = 0
        for code, prefix in enumerate(URI_PREFIXES):
            if prefix and uri.startswith(prefix) and len(prefix) > len(URI_PREFIXES[best]):
                best = code
        return cls(text=uri[len(URI_PREFIXES[best]) :], prefix_code=best)

    def encode_payload(self) -> bytes:
        if not 0 <= self.prefix_code <= 0xFF:
            raise BadLengthError(f"URI prefix code out of range: {self.prefix_code}")
        return bytes([self.prefix_code]) + self.text.encode("utf-8")

    @classmethod
    def decode_payload(cls, payload: bytes) -> UriRecord:
        if not payload:
            raise BadLengthError("URI payload is empty")
        return cls(text=payload[1:].decode("utf-8", errors="replace"), prefix_code=payload[0])


# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------

DEFAULT_LANGUAGE = "en"

_TEXT_UTF16 = 0x80
_TEXT_LANG_MASK = 0x3F


@dataclass(slots=True)
class TextRecord:
    """UTF-8 Text record: status byte, IANA language code, text."""

    kind: ClassVar[RecordKind] = RecordKind.TEXT
    record_id: ClassVar[bytes | None] = None

    text: str
    language: str = DEFAULT_LANGUAGE

    def encode_payload(self) -> bytes:
        try:
            lang = self.language.encode("ascii")
        except UnicodeEncodeError as e:
            raise FormatError(f"Language code must be ASCII: {self.language!r}") from e
        if len(lang) > _TEXT_LANG_MASK:
            raise BadLengthError(f"Language code too long: {len(lang)} > {_TEXT_LANG_MASK}")
        # UTF-16 bit always clear
        return bytes([len(lang)]) + lang + self.text.encode("utf-8")

    @classmethod
    def decode_payload(cls, payload: bytes) -> TextRecord:
        if not payload:
            raise BadLengthError("Text payload is empty")
        status = payload[0]
        if status & _TEXT_UTF16:
            raise UnsupportedRecordError("UTF-16 Text records are not supported")
        lang_len = status & _TEXT_LANG_MASK
        if 1 + lang_len > len(payload):
            raise BadLengthError(f"Language code length {lang_len} overruns {len(payload)} byte payload")
        return cls(
            text=payload[1 + lang_len :].decode("utf-8", errors="replace"),
            language=payload[1 : 1 + lang_len].decode("ascii", errors="replace"),
        )


# ---------------------------------------------------------------------------
# Wi-Fi Simple Configuration credential
# ---------------------------------------------------------------------------


class WscAttribute(IntEnum):
    """Wi-Fi Simple Configuration attribute IDs used in a credential."""

    AUTH_TYPE = 0x1003
    CREDENTIAL = 0x100E
    ENCRYPT_TYPE = 0x100F
    MAC_ADDRESS = 0x1020
    NETWORK_INDEX = 0x1026
    NETWORK_KEY = 0x1027
    SSID = 0x1045
    VENDOR_EXTENSION = 0x1049


class AuthType(IntEnum):
    OPEN = 0x0001
    WPA_PERSONAL = 0x0002
    SHARED = 0x0004
    WPA_ENTERPRISE = 0x0008
    WPA2_ENTERPRISE = 0x0010
    WPA2_PERSONAL = 0x0020


class EncryptType(IntEnum):
    NONE = 0x0001
    WEP = 0x0002
    TKIP = 0x0004
    AES = 0x0008


WFA_VENDOR_ID = b"\x00\x37\x2a"
WFA_NETWORK_KEY_SHAREABLE = 0x02
WFA_VERSION2 = 0x00
WFA_VERSION2_V2_0 = 0x20

_ATTR_HDR = struct.Struct(">HH")
_U16 = struct.Struct(">H")


def _attr(attr_id: int, value: bytes) -> bytes:
    if len(value) > 0xFFFF:
        raise BadLengthError(f"Attribute {attr_id:#06x} too long: {len(value)}")
    return _ATTR_HDR.pack(attr_id, len(value)) + value


def _wfa_subelement(sub_id: int, value: bytes) -> bytes:
    return WFA_VENDOR_ID + bytes([sub_id, len(value)]) + value


def iter_attributes(buf: bytes) -> Iterator[tuple[int, bytes]]:
    """Yield ``(attribute_id, value)`` for each attribute in ``buf``.

    Raises:
        BadLengthError: an attribute header or value runs past ``buf``.
    """
    pos = 0
    while pos < len(buf):
        if pos + _ATTR_HDR.size > len(buf):
            raise BadLengthError(f"Truncated attribute header at offset {pos}")
        attr_id, length = _ATTR_HDR.unpack_from(buf, pos)
        pos += _ATTR_HDR.size
        if pos + length > len(buf):
            raise BadLengthError(
                f"Attribute {attr_id:#06x} length {length} overruns payload at offset {pos}"
            )
        yield attr_id, buf[pos : pos + length]
        pos += length


@dataclass(slots=True)
class WifiCredential:
    """Wi-Fi network credential (WSC "Credential" attribute)."""

    kind: ClassVar[RecordKind] = RecordKind.WIFI
    record_id: ClassVar[bytes | None] = b""

    ssid: str
    passphrase: str
    auth_type: int = AuthType.WPA2_PERSONAL
    encrypt_type: int = EncryptType.AES
    mac_address: bytes = bytes(6)

    def encode_payload(self) -> bytes:
        if len(self.mac_address) != 6:
            raise BadLengthError(f"MAC address must be 6 bytes, got {len(self.mac_address)}")
        credential = b"".join(
            [
                _attr(WscAttribute.NETWORK_INDEX, b"\x01"),  # 1 for backwards compatibility
                _attr(WscAttribute.SSID, self.ssid.encode("utf-8")),
                _attr(WscAttribute.AUTH_TYPE, _U16.pack(self.auth_type)),
                _attr(WscAttribute.ENCRYPT_TYPE, _U16.pack(self.encrypt_type)),
                _attr(WscAttribute.NETWORK_KEY, self.passphrase.encode("utf-8")),
                _attr(WscAttribute.MAC_ADDRESS, bytes(self.mac_address)),
                _attr(WscAttribute.VENDOR_EXTENSION, _wfa_subelement(WFA_NETWORK_KEY_SHAREABLE, b"\x01")),
                _attr(WscAttribute.VENDOR_EXTENSION, _wfa_subelement(WFA_VERSION2, bytes([WFA_VERSION2_V2_0]))),
            ]
        )
        return _attr(WscAttribute.CREDENTIAL, credential)

    @classmethod
    def decode_payload(cls, payload: bytes) -> WifiCredential:
        """Decode by attribute ID; attributes are accepted in any order.

        Raises:
            FormatError: no Credential, or a Credential without SSID or
                Network Key.
            BadLengthError: an attribute overruns its container.
        """
        found: dict[int, bytes] = {}
        credential_seen = False
        for attr_id, value in iter_attributes(payload):
            if attr_id != WscAttribute.CREDENTIAL:
                continue
            credential_seen = True
            for sub_id, sub_value in iter_attributes(value):
                found.setdefault(sub_id, sub_value)
            break

        if not credential_seen:
            raise FormatError("Wi-Fi payload has no Credential attribute")
        if WscAttribute.SSID not in found or WscAttribute.NETWORK_KEY not in found:
            raise FormatError("Wi-Fi Credential is missing SSID or Network Key")

        rec = cls(
            ssid=found[WscAttribute.SSID].decode("utf-8", errors="replace"),
            passphrase=found[WscAttribute.NETWORK_KEY].decode("utf-8", errors="replace"),
        )
        auth = found.get(WscAttribute.AUTH_TYPE)
        if auth is not None and len(auth) == 2:
            rec.auth_type = _U16.unpack(auth)[0]
        encrypt = found.get(WscAttribute.ENCRYPT_TYPE)
        if encrypt is not None and len(encrypt) == 2:
            rec.encrypt_type = _U16.unpack(encrypt)[0]
        mac = found.get(WscAttribute.MAC_ADDRESS)
        if mac is not None and len(mac) == 6:
            rec.mac_address = mac
        return rec


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

NdefRecord = Union[UriRecord, TextRecord, WifiCredential]

_DECODERS = {
    RecordKind.URI: UriRecord.decode_payload,
    RecordKind.TEXT: TextRecord.decode_payload,
    RecordKind.WIFI: WifiCredential.decode_payload,
}


def encode_record(record: NdefRecord, *, mb: bool = True, me: bool = True) -> bytes:
    """Serialize one record: header, type, ID (if any) and payload."""
    kind = record.kind
    payload = record.encode_payload()
    record_id = record.record_id
    header = RecordHeader.for_payload(
        kind.tnf,
        len(kind.record_type),
        len(payload),
        None if record_id is None else len(record_id),
        mb=mb,
        me=me,
    )
    return header.encode() + kind.record_type + (record_id or b"") + payload


def decode_payload(kind: RecordKind, payload: bytes) -> NdefRecord:
    """Decode ``payload`` as a record of ``kind``."""
    return _DECODERS[kind](payload)
