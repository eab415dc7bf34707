import ipaddress
import os
from dataclasses import dataclass, fields, replace

from .address_space import DEFAULT_FIRST, DEFAULT_LAST, AddressSpace

ENV_PREFIX = "ADDR_ALLOC_"


@dataclass(frozen=True)
class AllocatorConfig:
    """Process-start configuration for the allocator service."""
    db_path: str = "/addresses/addr.db"
    first: str = DEFAULT_FIRST
    last: str = DEFAULT_LAST
    host: str = "0.0.0.0"
    port: int = 443
    ca_cert: str = "/key/cert.ca"
    cert: str = "/key/cert.allocator"
    key: str = "/key/key.allocator"

    def __post_init__(self):
        # Fail at load time rather than on the first request.
        ipaddress.IPv4Address(self.first)
        ipaddress.IPv4Address(self.last)
        if not 0 < int(self.port) < 65536:
            raise ValueError(f"Invalid port: {self.port}")

    @classmethod
    def from_env(cls, environ=None) -> "AllocatorConfig":
        environ = os.environ if environ is None else environ
        values = {}
        for f in fields(cls):
            raw = environ.get(ENV_PREFIX + f.name.upper())
            if raw is None or raw == "":
                continue
            values[f.name] = int(raw) if f.name == "port" else raw
        return cls(**values)

    def with_overrides(self, **overrides) -> "AllocatorConfig":
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def space(self) -> AddressSpace:
        return AddressSpace.from_strings(self.first, self.last)
