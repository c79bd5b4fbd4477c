"""Tests for gRPC TLS credential loading."""

import grpc
import pytest

from keycert import (
    MalformedMaterialError,
    MissingSourceError,
    PemKeyCertOptions,
    PemKeyCertOptionsFactory,
    TlsConfig,
    load_channel_credentials,
    load_server_credentials,
)
from keycert.tls import load_key_material


class RecordingReader:
    """File reader serving fixed content."""

    def __init__(self, files: dict[str, bytes]) -> None:
        self.files = files
        self.calls: list[str] = []

    def read(self, path: str) -> bytes:
        self.calls.append(path)
        return self.files[path]


def test_load_key_material_uses_factory_resolver(pki) -> None:
    reader = RecordingReader({"/mykey.pem": pki.key_pem, "/mycert.pem": pki.chain_pem})
    options = PemKeyCertOptions(key_path="/mykey.pem", cert_path="/mycert.pem")

    material = load_key_material(
        options, factory=PemKeyCertOptionsFactory(), reader=reader
    )

    assert len(material.certificates) == 2
    assert reader.calls == ["/mykey.pem", "/mycert.pem"]


def test_server_credentials_from_paths(pem_files) -> None:
    options = PemKeyCertOptions(key_path=pem_files["key"], cert_path=pem_files["cert"])

    credentials = load_server_credentials(TlsConfig(key_cert=options))

    assert isinstance(credentials, grpc.ServerCredentials)


def test_server_credentials_with_client_auth(pki, pem_files) -> None:
    options = PemKeyCertOptions(key_value=pki.key_pem, cert_value=pki.cert_pem)
    tls = TlsConfig(
        key_cert=options,
        client_ca_path=pem_files["ca"],
        require_client_auth=True,
    )

    credentials = load_server_credentials(tls)

    assert isinstance(credentials, grpc.ServerCredentials)


def test_client_auth_requires_ca(pki) -> None:
    options = PemKeyCertOptions(key_value=pki.key_pem, cert_value=pki.cert_pem)

    with pytest.raises(ValueError, match="client_ca_path"):
        load_server_credentials(TlsConfig(key_cert=options, require_client_auth=True))


def test_server_credentials_propagate_missing_source(pki) -> None:
    options = PemKeyCertOptions(cert_value=pki.cert_pem)

    with pytest.raises(MissingSourceError):
        load_server_credentials(TlsConfig(key_cert=options))


def test_server_credentials_propagate_malformed_material(pki) -> None:
    options = PemKeyCertOptions(key_value=pki.pkcs1_key_pem, cert_value=pki.cert_pem)

    with pytest.raises(MalformedMaterialError):
        load_server_credentials(TlsConfig(key_cert=options))


def test_channel_credentials(pki, pem_files) -> None:
    options = PemKeyCertOptions(key_value=pki.key_pem, cert_path=pem_files["cert"])

    credentials = load_channel_credentials(options, root_ca_path=pem_files["ca"])

    assert isinstance(credentials, grpc.ChannelCredentials)
