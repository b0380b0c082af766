"""NDEF tag error types."""

from __future__ import annotations


class NdefError(Exception):
    """Base exception for all st25_ndef errors."""

    def is_retryable(self) -> bool:
        """Whether this error is transient and the operation can be retried.

        Retryable errors: TransportError, DeviceBusyError.
        """
        return False


class StoreError(NdefError):
    """Byte-store level errors (transport failures, short transfers)."""


class TransportError(StoreError):
    """A single chunk transfer was refused (NACK, busy, bus error)."""

    def __init__(self, message: str = "Transfer failed", status: int = 0) -> None:
        super().__init__(message)
        self.status = status

    def is_retryable(self) -> bool:
        return True


class DeviceBusyError(StoreError):
    """Every attempt for one chunk failed."""

    def __init__(self, address: int, attempts: int) -> None:
        super().__init__(f"Device busy at {address:#06x} after {attempts} attempts")
        self.address = address
        self.attempts = attempts

    def is_retryable(self) -> bool:
        return True


class TruncatedError(StoreError):
    """Fewer bytes were available than requested."""


class FormatError(NdefError):
    """Structural violation found while decoding."""


class BadMagicError(FormatError):
    """CC file magic number or version not recognised."""


class BadLengthError(FormatError):
    """A length field is out of range or overruns its container."""


class UnsupportedRecordError(FormatError):
    """Record uses a feature this codec does not handle."""


class RecordNotFoundError(NdefError):
    """No record of the requested kind at the requested index."""

    def __init__(self, kind: object = None, index: int = 1) -> None:
        msg = "Record not found"
        if kind is not None:
            msg += f": {kind} #{index}"
        super().__init__(msg)
        self.kind = kind
        self.index = index


class OutOfSpaceError(NdefError):
    """Message does not fit in the tag memory or the TLV length range."""

    def __init__(self, required: int, available: int) -> None:
        super().__init__(f"Out of space: need {required} bytes, {available} available")
        self.required = required
        self.available = available


# Two-wire endTransmission() status codes reported by bus transports
STATUS_CODE_MAP: dict[int, type[StoreError]] = {
    0x01: TruncatedError,  # DataTooLong
    0x02: TransportError,  # NackOnAddress
    0x03: TransportError,  # NackOnData
    0x04: TransportError,  # OtherError
    0x05: TransportError,  # Timeout
}


def error_from_status(status: int, message: str = "") -> StoreError:
    """Create the appropriate exception from a transport status code."""
    exc_class = STATUS_CODE_MAP.get(status, TransportError)
    text = message or f"Transfer failed with status {status:#04x}"

    if exc_class is TransportError:
        return TransportError(text, status)

    return exc_class(text)
