"""TLS helpers: the mutual-auth server context and a development PKI."""

from __future__ import annotations

import datetime
import os
import ssl
from pathlib import Path

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

# File names the server looks for under its key directory.
CA_CERT = "cert.ca"
CA_KEY = "key.ca"
SERVER_CERT = "cert.allocator"
SERVER_KEY = "key.allocator"
CLIENT_CERT = "cert.client"
CLIENT_KEY = "key.client"


def build_server_context(cert: str, key: str, ca_cert: str) -> ssl.SSLContext:
    """Server context that refuses clients without a certificate signed by ca_cert."""
    ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    ctx.minimum_version = ssl.TLSVersion.TLSv1_2
    ctx.load_cert_chain(certfile=cert, keyfile=key)
    ctx.load_verify_locations(cafile=ca_cert)
    ctx.verify_mode = ssl.CERT_REQUIRED
    return ctx


def _name(common_name: str) -> x509.Name:
    return x509.Name([
        x509.NameAttribute(NameOID.ORGANIZATION_NAME, "addr-alloc"),
        x509.NameAttribute(NameOID.COMMON_NAME, common_name),
    ])


def _new_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


def generate_ca(common_name: str = "addr-alloc CA", days: int = 3650):
    """Generate a self-signed CA.

    Returns:
        Tuple of (private_key, certificate).
    """
    key = _new_key()
    name = _name(common_name)
    now = datetime.datetime.now(datetime.timezone.utc)
    cert = x509.CertificateBuilder().subject_name(
        name
    ).issuer_name(
        name
    ).public_key(
        key.public_key()
    ).serial_number(
        x509.random_serial_number()
    ).not_valid_before(
        now
    ).not_valid_after(
        now + datetime.timedelta(days=days)
    ).add_extension(
        x509.BasicConstraints(ca=True, path_length=0),
        critical=True,
    ).sign(key, hashes.SHA256())
    return key, cert


def issue_certificate(ca_key, ca_cert: x509.Certificate, common_name: str,
                      server: bool = False, days: int = 825):
    """Issue a leaf certificate signed by the CA.

    Server certificates carry the common name as a DNS SAN and the
    serverAuth usage; client certificates carry clientAuth.
    """
    key = _new_key()
    now = datetime.datetime.now(datetime.timezone.utc)
    usage = ExtendedKeyUsageOID.SERVER_AUTH if server else ExtendedKeyUsageOID.CLIENT_AUTH
    builder = x509.CertificateBuilder().subject_name(
        _name(common_name)
    ).issuer_name(
        ca_cert.subject
    ).public_key(
        key.public_key()
    ).serial_number(
        x509.random_serial_number()
    ).not_valid_before(
        now
    ).not_valid_after(
        now + datetime.timedelta(days=days)
    ).add_extension(
        x509.BasicConstraints(ca=False, path_length=None),
        critical=True,
    ).add_extension(
        x509.ExtendedKeyUsage([usage]),
        critical=False,
    )
    if server:
        builder = builder.add_extension(
            x509.SubjectAlternativeName([x509.DNSName(common_name)]),
            critical=False,
        )
    return key, builder.sign(ca_key, hashes.SHA256())


def write_pem(directory: str | Path, cert_name: str, key_name: str, key, cert) -> tuple[Path, Path]:
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    cert_path = directory / cert_name
    key_path = directory / key_name

    with open(key_path, "wb") as f:
        f.write(key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.TraditionalOpenSSL,
            encryption_algorithm=serialization.NoEncryption(),
        ))
    os.chmod(key_path, 0o600)

    with open(cert_path, "wb") as f:
        f.write(cert.public_bytes(serialization.Encoding.PEM))
    return cert_path, key_path


def generate_dev_pki(directory: str | Path, server_name: str = "localhost",
                     client_name: str = "client") -> dict[str, Path]:
    """Write a CA, a server pair and one client pair into directory."""
    ca_key, ca_cert = generate_ca()
    server_key, server_cert = issue_certificate(ca_key, ca_cert, server_name, server=True)
    client_key, client_cert = issue_certificate(ca_key, ca_cert, client_name)

    ca_cert_path, ca_key_path = write_pem(directory, CA_CERT, CA_KEY, ca_key, ca_cert)
    server_cert_path, server_key_path = write_pem(directory, SERVER_CERT, SERVER_KEY, server_key, server_cert)
    client_cert_path, client_key_path = write_pem(directory, CLIENT_CERT, CLIENT_KEY, client_key, client_cert)
    return {
        "ca_cert": ca_cert_path,
        "ca_key": ca_key_path,
        "cert": server_cert_path,
        "key": server_key_path,
        "client_cert": client_cert_path,
        "client_key": client_key_path,
    }
