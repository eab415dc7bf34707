"""Address allocator service.

The Allocator owns the cursor (next free address) and the store handle.
The cursor is never persisted: it is rebuilt from the stored records on
start by `recover()`.
"""

from __future__ import annotations

import ipaddress
import logging
import threading

from .address_space import AddressSpace
from .errors import InvalidDevice, PoolExhausted, StorageError
from .store import AddressStore

logger = logging.getLogger("addr_alloc")


def validate_device(device: str) -> str:
    if not isinstance(device, str) or not device:
        raise InvalidDevice("Device identifier must be a non-empty string")
    if not device.isprintable():
        raise InvalidDevice("Device identifier must be printable")
    return device


class Allocator:
    """Hands out one stable address per device from an AddressSpace."""

    def __init__(self, store: AddressStore, space: AddressSpace | None = None) -> None:
        self._store = store
        self._space = space or AddressSpace.from_strings()
        self._lock = threading.Lock()
        self._next = self._space.first
        self.recover()

    @property
    def space(self) -> AddressSpace:
        return self._space

    @property
    def next(self) -> ipaddress.IPv4Address:
        """Lowest address not yet allocated."""
        return self._next

    def recover(self) -> ipaddress.IPv4Address:
        """Rebuild the cursor from every stored record.

        Raises:
            StorageError: If the namespace cannot be opened or scanned.
        """
        with self._lock:
            self._store.migrate()
            cursor = self._space.first
            with self._store.transaction() as txn:
                records = txn.items()
            for device, raw in records:
                try:
                    addr = self._space.decode(raw)
                except ValueError as e:
                    raise StorageError("read", f"record for {device!r}: {e}") from e
                logger.debug(f"Existing allocation: {device}: {addr}")
                if addr >= cursor:
                    cursor = self._space.successor(addr)
            self._next = cursor
        logger.info(f"Recovered {len(records)} allocations, next free address is {cursor}")
        return cursor

    def resolve(self, device: str) -> str:
        """Return the device's address, allocating one on first sight.

        Raises:
            InvalidDevice: If the identifier is empty or not printable.
            PoolExhausted: If the device is new and the pool is used up.
            StorageError: If the store fails; no address is consumed.
        """
        validate_device(device)

        with self._store.transaction() as txn:
            raw = txn.get(device)
        if raw is not None:
            addr = self._space.decode(raw)
            logger.info(f"Device {device}: returning {addr}")
            return str(addr)

        with self._lock:
            with self._store.transaction(write=True) as txn:
                # Another request may have allocated this device meanwhile.
                raw = txn.get(device)
                if raw is not None:
                    addr = self._space.decode(raw)
                    logger.info(f"Device {device}: returning {addr}")
                    return str(addr)

                addr = self._next
                if not self._space.contains(addr):
                    logger.warning(f"Device {device}: pool exhausted at {addr}")
                    raise PoolExhausted()
                txn.put(device, self._space.encode(addr))

            # Committed; only now is the address consumed.
            self._next = self._space.successor(addr)

        logger.info(f"Device {device}: allocated {addr}")
        return str(addr)

    def list(self) -> dict[str, str]:
        """Snapshot of every allocation as device -> dotted-decimal address."""
        with self._store.transaction() as txn:
            records = txn.items()
        return {device: str(self._space.decode(raw)) for device, raw in records}
