"""Configuration for the chunked byte store."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_CHUNK_SIZE = 32
DEFAULT_MAX_RETRIES = 6
DEFAULT_RETRY_DELAY_MS = 5


@dataclass(slots=True)
class StoreConfig:
    """Transfer parameters for a ByteStore.

    ``max_retries`` is the number of attempts made for each chunk before the
    operation gives up with ``DeviceBusyError``.
    """

    chunk_size: int = DEFAULT_CHUNK_SIZE
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay_ms: int = DEFAULT_RETRY_DELAY_MS
    write_settle_ms: int = 0
    capacity: int | None = None  # None = ask the transport

    def __post_init__(self) -> None:
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")
        if self.max_retries < 1:
            raise ValueError(f"max_retries must be at least 1, got {self.max_retries}")

    @property
    def retry_delay_s(self) -> float:
        return self.retry_delay_ms / 1000.0

    @property
    def write_settle_s(self) -> float:
        return self.write_settle_ms / 1000.0

    def with_chunk_size(self, size: int) -> StoreConfig:
        if size < 1:
            raise ValueError(f"chunk_size must be positive, got {size}")
        self.chunk_size = size
        return self

    def with_max_retries(self, n: int) -> StoreConfig:
        if n < 1:
            raise ValueError(f"max_retries must be at least 1, got {n}")
        self.max_retries = n
        return self

    def with_retry_delay(self, ms: int) -> StoreConfig:
        self.retry_delay_ms = ms
        return self

    def with_write_settle(self, ms: int) -> StoreConfig:
        self.write_settle_ms = ms
        return self

    def with_capacity(self, capacity: int) -> StoreConfig:
        self.capacity = capacity
        return self
