from __future__ import annotations

from urllib.parse import quote

import requests


class AllocatorClientError(RuntimeError):
    """The allocator refused or failed a request."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class AllocatorClient:
    """Fetches addresses from the allocator over mutual TLS."""

    def __init__(self, base_url: str, cert: str = None, key: str = None,
                 ca_cert: str = None, timeout: float = 10):
        self.base_url = base_url.rstrip("/")
        self.cert = (cert, key) if cert and key else cert
        self.verify = ca_cert or True
        self.timeout = timeout

    def _get(self, path: str) -> requests.Response:
        try:
            resp = requests.get(
                f"{self.base_url}{path}",
                cert=self.cert,
                verify=self.verify,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise AllocatorClientError(f"Allocator unreachable: {e}") from e

        if resp.status_code != 200:
            raise AllocatorClientError(resp.text.strip() or resp.reason, resp.status_code)
        return resp

    def get_address(self, device: str) -> str:
        """Return the address allocated to device (allocating it if new)."""
        return self._get(f"/get/{quote(device, safe='')}").text.strip()

    def all(self) -> dict[str, str]:
        return self._get("/all").json()
