"""Tests for the TLS helpers, including a live mutual-TLS round trip."""
import ssl
import threading

import pytest
from cryptography import x509
from werkzeug.serving import make_server

from addr_alloc.address_space import AddressSpace
from addr_alloc.server import create_app
from addr_alloc.service import Allocator
from addr_alloc.store import AddressStore
from addr_alloc.tls import build_server_context, generate_dev_pki
from alloc_client import AllocatorClient, AllocatorClientError


@pytest.fixture(scope="module")
def pki(tmp_path_factory):
    return generate_dev_pki(tmp_path_factory.mktemp("pki"))


def _load(path):
    return x509.load_pem_x509_certificate(path.read_bytes())


def test_dev_pki_files(pki):
    for path in pki.values():
        assert path.exists()
    assert oct(pki["key"].stat().st_mode & 0o777) == "0o600"


def test_leaf_certificates_are_signed_by_ca(pki):
    ca = _load(pki["ca_cert"])
    server = _load(pki["cert"])
    client = _load(pki["client_cert"])

    server.verify_directly_issued_by(ca)
    client.verify_directly_issued_by(ca)

    san = server.extensions.get_extension_for_class(x509.SubjectAlternativeName)
    assert "localhost" in san.value.get_values_for_type(x509.DNSName)


def test_server_context_requires_client_certificate(pki):
    ctx = build_server_context(str(pki["cert"]), str(pki["key"]), str(pki["ca_cert"]))
    assert ctx.verify_mode == ssl.CERT_REQUIRED


@pytest.fixture
def live_server(pki, tmp_path):
    allocator = Allocator(AddressStore(tmp_path / "addr.db"), AddressSpace.from_strings("10.8.0.2", "10.8.1.0"))
    ctx = build_server_context(str(pki["cert"]), str(pki["key"]), str(pki["ca_cert"]))
    server = make_server("127.0.0.1", 0, create_app(allocator), threaded=True, ssl_context=ctx)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"https://localhost:{server.server_port}"
    finally:
        server.shutdown()
        thread.join(timeout=5)


def test_mutual_tls_round_trip(live_server, pki):
    client = AllocatorClient(
        live_server,
        cert=str(pki["client_cert"]),
        key=str(pki["client_key"]),
        ca_cert=str(pki["ca_cert"]),
    )
    assert client.get_address("laptop") == "10.8.0.2"
    assert client.get_address("laptop") == "10.8.0.2"
    assert client.all() == {"laptop": "10.8.0.2"}


def test_client_without_certificate_is_rejected(live_server, pki):
    client = AllocatorClient(live_server, ca_cert=str(pki["ca_cert"]))
    with pytest.raises(AllocatorClientError, match="unreachable"):
        client.get_address("laptop")
