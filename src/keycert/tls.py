"""TLS credential loading from key/certificate options."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import grpc

from .factory import KeyCertOptionsFactory, get_factory
from .options import KeyCertOptions
from .resolver import FileReader, KeyMaterial, LocalFileReader


@dataclass(frozen=True, slots=True)
class TlsConfig:
    """Server-side TLS configuration."""

    key_cert: KeyCertOptions
    client_ca_path: Optional[str] = None
    require_client_auth: bool = False


def load_key_material(
    options: KeyCertOptions,
    *,
    factory: Optional[KeyCertOptionsFactory] = None,
    reader: Optional[FileReader] = None,
) -> KeyMaterial:
    """Resolve options with the resolver of the active factory."""
    factory = factory or get_factory()
    return factory.create_resolver(reader).resolve(options)


def load_server_credentials(
    tls: TlsConfig,
    *,
    factory: Optional[KeyCertOptionsFactory] = None,
    reader: Optional[FileReader] = None,
) -> grpc.ServerCredentials:
    """Load TLS credentials for a gRPC server."""
    if tls.require_client_auth and not tls.client_ca_path:
        raise ValueError("require_client_auth needs a client_ca_path")

    material = load_key_material(tls.key_cert, factory=factory, reader=reader)

    client_ca = None
    if tls.client_ca_path:
        client_ca = (reader or LocalFileReader()).read(tls.client_ca_path)

    return grpc.ssl_server_credentials(
        [(material.private_key_pem, material.certificate_chain_pem)],
        root_certificates=client_ca,
        require_client_auth=tls.require_client_auth,
    )


def load_channel_credentials(
    options: KeyCertOptions,
    *,
    root_ca_path: Optional[str] = None,
    factory: Optional[KeyCertOptionsFactory] = None,
    reader: Optional[FileReader] = None,
) -> grpc.ChannelCredentials:
    """Load mutual TLS credentials for a gRPC client channel."""
    material = load_key_material(options, factory=factory, reader=reader)

    root_ca = None
    if root_ca_path:
        root_ca = (reader or LocalFileReader()).read(root_ca_path)

    return grpc.ssl_channel_credentials(
        root_certificates=root_ca,
        private_key=material.private_key_pem,
        certificate_chain=material.certificate_chain_pem,
    )
