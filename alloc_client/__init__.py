"""Client for the address allocator."""

from .allocator_client import AllocatorClient, AllocatorClientError

__all__ = ["AllocatorClient", "AllocatorClientError"]
