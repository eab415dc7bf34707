"""IPv4 address allocator package."""

from .address_space import AddressSpace
from .errors import AllocationError, InvalidDevice, PoolExhausted, StorageError
from .service import Allocator
from .store import AddressStore

__all__ = [
    "AddressSpace",
    "AddressStore",
    "AllocationError",
    "Allocator",
    "InvalidDevice",
    "PoolExhausted",
    "StorageError",
]
