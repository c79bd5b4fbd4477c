"""Shared pytest fixtures: generated keys, certificates and PEM files."""

import datetime
from dataclasses import dataclass

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.x509.oid import NameOID


@dataclass(frozen=True)
class Pki:
    """Generated key material used across tests."""

    key_pem: bytes
    cert_pem: bytes
    pkcs1_key_pem: bytes
    encrypted_key_pem: bytes
    other_key_pem: bytes
    ca_cert_pem: bytes
    chain_pem: bytes


def _pkcs8(key) -> bytes:
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


def _certificate(subject_cn: str, public_key, issuer_cn: str, signing_key, ca: bool):
    now = datetime.datetime.now(datetime.timezone.utc)
    return (
        x509.CertificateBuilder()
        .subject_name(x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, subject_cn)]))
        .issuer_name(x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, issuer_cn)]))
        .public_key(public_key)
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(minutes=5))
        .not_valid_after(now + datetime.timedelta(days=1))
        .add_extension(x509.BasicConstraints(ca=ca, path_length=None), critical=True)
        .sign(signing_key, hashes.SHA256())
    )


@pytest.fixture(scope="session")
def pki() -> Pki:
    """
    Key material fixture.

    Provides a leaf RSA key signed by a test CA, plus the same key in
    rejected encodings and an unrelated EC key.
    """
    ca_key = ec.generate_private_key(ec.SECP256R1())
    ca_cert = _certificate("test-ca", ca_key.public_key(), "test-ca", ca_key, ca=True)

    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    cert = _certificate("localhost", key.public_key(), "test-ca", ca_key, ca=False)

    cert_pem = cert.public_bytes(serialization.Encoding.PEM)
    ca_cert_pem = ca_cert.public_bytes(serialization.Encoding.PEM)

    return Pki(
        key_pem=_pkcs8(key),
        cert_pem=cert_pem,
        pkcs1_key_pem=key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.TraditionalOpenSSL,
            encryption_algorithm=serialization.NoEncryption(),
        ),
        encrypted_key_pem=key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.BestAvailableEncryption(b"secret"),
        ),
        other_key_pem=_pkcs8(ec.generate_private_key(ec.SECP256R1())),
        ca_cert_pem=ca_cert_pem,
        chain_pem=cert_pem + ca_cert_pem,
    )


@pytest.fixture
def pem_files(tmp_path, pki):
    """Write mykey.pem, mycert.pem and ca.pem into a temporary directory."""
    key_path = tmp_path / "mykey.pem"
    cert_path = tmp_path / "mycert.pem"
    ca_path = tmp_path / "ca.pem"
    key_path.write_bytes(pki.key_pem)
    cert_path.write_bytes(pki.cert_pem)
    ca_path.write_bytes(pki.ca_cert_pem)
    return {"key": str(key_path), "cert": str(cert_path), "ca": str(ca_path)}


@pytest.fixture(autouse=True)
def clean_keycert_env(monkeypatch):
    """Keep KEYCERT_* variables of the caller environment out of tests."""
    for name in ("KEYCERT_FORMAT", "KEYCERT_FACTORY", "KEYCERT_CONFIG_FILE"):
        monkeypatch.delenv(name, raising=False)
