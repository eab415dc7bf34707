"""Error types raised by the allocator."""

from __future__ import annotations


class AllocationError(RuntimeError):
    """Base class for failures that abort a single allocation request."""


class PoolExhausted(AllocationError):
    """No address remains below the pool's exclusive upper bound."""

    def __init__(self, message: str = "Ran out of IP addresses."):
        super().__init__(message)


class StorageError(AllocationError):
    """The transactional store failed to read or commit."""

    MESSAGES = {
        "read": "Database lookup failed.",
        "write": "Database write failed.",
    }

    def __init__(self, operation: str, detail: str = ""):
        self.operation = operation
        self.detail = detail
        super().__init__(self.MESSAGES.get(operation, "Database operation failed."))


class InvalidDevice(ValueError):
    """Device identifier is empty or not printable."""
