import ipaddress
from dataclasses import dataclass

# First address handed out, and the exclusive upper bound of the pool.
DEFAULT_FIRST = "10.8.0.2"
DEFAULT_LAST = "10.92.255.255"

_MAX = 0xFFFFFFFF


@dataclass(frozen=True)
class AddressSpace:
    """The allocatable IPv4 range [first, last)."""

    first: ipaddress.IPv4Address
    last: ipaddress.IPv4Address

    def __post_init__(self):
        if self.first > self.last:
            raise ValueError(f"Pool start {self.first} is above pool end {self.last}")

    @classmethod
    def from_strings(cls, first: str = DEFAULT_FIRST, last: str = DEFAULT_LAST) -> "AddressSpace":
        return cls(ipaddress.IPv4Address(first), ipaddress.IPv4Address(last))

    @property
    def size(self) -> int:
        return int(self.last) - int(self.first)

    def contains(self, addr: ipaddress.IPv4Address) -> bool:
        return self.first <= addr < self.last

    @staticmethod
    def successor(addr: ipaddress.IPv4Address) -> ipaddress.IPv4Address:
        """Next address as a big-endian 32-bit counter.

        255.255.255.255 wraps to 0.0.0.0; callers detect exhaustion.
        """
        return ipaddress.IPv4Address((int(addr) + 1) & _MAX)

    @staticmethod
    def encode(addr: ipaddress.IPv4Address) -> bytes:
        return addr.packed

    @staticmethod
    def decode(raw: bytes) -> ipaddress.IPv4Address:
        if len(raw) != 4:
            raise ValueError(f"Stored address has {len(raw)} bytes, expected 4")
        return ipaddress.IPv4Address(bytes(raw))
