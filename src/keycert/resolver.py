"""Resolve key/certificate options into TLS-ready key material."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Final, Protocol

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.types import (
    PrivateKeyTypes,
    PublicKeyTypes,
)

from .errors import (
    MalformedMaterialError,
    MaterialSlot,
    MissingSourceError,
    UnreadableSourceError,
)
from .options import KeyCertOptions, PemKeyCertOptions

logger = logging.getLogger(__name__)

_PEM_BEGIN_RE: Final = re.compile(rb"-----BEGIN ([A-Z0-9 ]+)-----")
_PKCS8_LABEL: Final[str] = "PRIVATE KEY"
_ENCRYPTED_PKCS8_LABEL: Final[str] = "ENCRYPTED PRIVATE KEY"
_CERTIFICATE_LABEL: Final[str] = "CERTIFICATE"


class FileReader(Protocol):
    """Filesystem access used to load material from paths."""

    def read(self, path: str) -> bytes:
        """Return the full contents of the file at path."""
        ...


class LocalFileReader:
    """Read material from the local filesystem."""

    def read(self, path: str) -> bytes:
        return Path(path).read_bytes()


@dataclass(frozen=True, slots=True)
class KeyMaterial:
    """Private key and certificate chain ready for a TLS engine."""

    private_key: PrivateKeyTypes
    certificates: tuple[x509.Certificate, ...]
    private_key_pem: bytes
    certificate_chain_pem: bytes

    @property
    def leaf(self) -> x509.Certificate:
        """Certificate presented for the private key."""
        return self.certificates[0]


class KeyCertResolver(Protocol):
    """Turns options of one variant into key material."""

    def resolve(self, options: KeyCertOptions) -> KeyMaterial:
        """Resolve options into key material."""
        ...


def _pem_labels(data: bytes) -> list[str]:
    return [m.group(1).decode("ascii") for m in _PEM_BEGIN_RE.finditer(data)]


def parse_private_key(data: bytes) -> PrivateKeyTypes:
    """
    Parse a single non-encrypted PKCS8 private key PEM block.

    Args:
        data: PEM text

    Returns:
        The private key

    Raises:
        MalformedMaterialError: If the data holds no key, several keys, an
            encrypted key, a non-PKCS8 key, or undecodable key content
    """
    labels = [label for label in _pem_labels(data) if label.endswith("PRIVATE KEY")]
    if not labels:
        raise MalformedMaterialError("no PEM private key block found", MaterialSlot.KEY)
    if len(labels) > 1:
        raise MalformedMaterialError(
            f"expected exactly one private key block, found {len(labels)}",
            MaterialSlot.KEY,
        )

    label = labels[0]
    if label == _ENCRYPTED_PKCS8_LABEL:
        raise MalformedMaterialError(
            "private key is encrypted; a non-encrypted PKCS8 key is required",
            MaterialSlot.KEY,
        )
    if label != _PKCS8_LABEL:
        raise MalformedMaterialError(
            f"unsupported private key block '{label}'; "
            f"a PKCS8 '{_PKCS8_LABEL}' block is required",
            MaterialSlot.KEY,
        )

    try:
        return serialization.load_pem_private_key(data, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise MalformedMaterialError(
            f"cannot decode private key: {e}", MaterialSlot.KEY
        ) from e


def parse_certificates(data: bytes) -> list[x509.Certificate]:
    """
    Parse one or more X.509 certificate PEM blocks, leaf first.

    Raises:
        MalformedMaterialError: If no certificate block is present or a
            block cannot be decoded
    """
    if _CERTIFICATE_LABEL not in _pem_labels(data):
        raise MalformedMaterialError(
            "no PEM certificate block found", MaterialSlot.CERT
        )

    try:
        return x509.load_pem_x509_certificates(data)
    except ValueError as e:
        raise MalformedMaterialError(
            f"cannot decode certificate: {e}", MaterialSlot.CERT
        ) from e


def _public_der(key: PublicKeyTypes) -> bytes:
    return key.public_bytes(
        serialization.Encoding.DER,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    )


class PemKeyCertResolver:
    """
    Resolve PEM options.

    For each slot the inline value wins; otherwise the path is read through
    the file reader. A slot with neither raises MissingSourceError.
    """

    def __init__(self, reader: FileReader | None = None) -> None:
        """Initialize resolver with a file reader."""
        self._reader = reader or LocalFileReader()

    def resolve(self, options: KeyCertOptions) -> KeyMaterial:
        """Resolve PEM options into key material."""
        if not isinstance(options, PemKeyCertOptions):
            raise TypeError(
                f"{type(self).__name__} cannot resolve {type(options).__name__}"
            )

        key_pem = self._load(options.key_value, options.key_path, MaterialSlot.KEY)
        cert_pem = self._load(
            options.cert_value, options.cert_path, MaterialSlot.CERT
        )

        private_key = parse_private_key(key_pem)
        certificates = parse_certificates(cert_pem)

        if _public_der(private_key.public_key()) != _public_der(
            certificates[0].public_key()
        ):
            raise MalformedMaterialError(
                "private key does not match the leaf certificate", MaterialSlot.KEY
            )

        logger.debug(
            "Resolved PEM key material",
            extra={
                "key_source": "value" if options.key_value is not None else "path",
                "cert_source": "value" if options.cert_value is not None else "path",
                "chain_length": len(certificates),
            },
        )

        return KeyMaterial(
            private_key=private_key,
            certificates=tuple(certificates),
            private_key_pem=private_key.private_bytes(
                encoding=serialization.Encoding.PEM,
                format=serialization.PrivateFormat.PKCS8,
                encryption_algorithm=serialization.NoEncryption(),
            ),
            certificate_chain_pem=b"".join(
                cert.public_bytes(serialization.Encoding.PEM) for cert in certificates
            ),
        )

    def _load(
        self, value: bytes | None, path: str | None, slot: MaterialSlot
    ) -> bytes:
        if value is not None:
            return value
        if path is None:
            raise MissingSourceError(slot)
        try:
            return self._reader.read(path)
        except OSError as e:
            raise UnreadableSourceError(path, slot, e.strerror or str(e)) from e
