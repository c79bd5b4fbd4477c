"""Key/certificate material options."""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any, Self

from .config import PemKeyCertConfig

BytesLike = bytes | bytearray | memoryview | str


def _owned_bytes(value: BytesLike | None) -> bytes | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


def _path_str(value: str | os.PathLike[str] | None) -> str | None:
    if value is None:
        return None
    return os.fspath(value)


class KeyCertOptions(ABC):
    """
    Provider of a private key and its certificate chain.

    Variants describe where the material lives (files, inline buffers,
    keystores). They perform no I/O; the resolver supplied by the variant's
    factory turns them into usable key material.
    """

    @abstractmethod
    def clone(self) -> Self:
        """Return an independent copy of the same variant."""

    @abstractmethod
    def to_config(self) -> dict[str, Any]:
        """Return a JSON-compatible record of every set field."""

    @classmethod
    @abstractmethod
    def from_config(cls, record: Mapping[str, Any]) -> Self:
        """Build options from a record produced by ``to_config``."""


@dataclass(slots=True)
class PemKeyCertOptions(KeyCertOptions):
    """
    PEM encoded private key and X.509 certificate chain.

    The key must be a non-encrypted PKCS8 ``PRIVATE KEY`` block. The
    certificate source holds one or more ``CERTIFICATE`` blocks, leaf first.

    Each slot can be given as a filesystem path or as an inline value:

        options = PemKeyCertOptions().set_key_path("/mykey.pem").set_cert_path(
            "/mycert.pem"
        )

        options = PemKeyCertOptions().set_key_value(key_pem).set_cert_value(cert_pem)

    Setting one source of a slot leaves the other one untouched. When both
    are present the value takes precedence over the path.
    """

    key_path: str | None = None
    key_value: bytes | None = None
    cert_path: str | None = None
    cert_value: bytes | None = None

    def __post_init__(self) -> None:
        self.key_path = _path_str(self.key_path)
        self.key_value = _owned_bytes(self.key_value)
        self.cert_path = _path_str(self.cert_path)
        self.cert_value = _owned_bytes(self.cert_value)

    def set_key_path(self, key_path: str | os.PathLike[str] | None) -> Self:
        """Set the path of the PEM private key file."""
        self.key_path = _path_str(key_path)
        return self

    def set_key_value(self, key_value: BytesLike | None) -> Self:
        """Set the inline PEM private key."""
        self.key_value = _owned_bytes(key_value)
        return self

    def set_cert_path(self, cert_path: str | os.PathLike[str] | None) -> Self:
        """Set the path of the PEM certificate file."""
        self.cert_path = _path_str(cert_path)
        return self

    def set_cert_value(self, cert_value: BytesLike | None) -> Self:
        """Set the inline PEM certificate chain."""
        self.cert_value = _owned_bytes(cert_value)
        return self

    def clone(self) -> Self:
        return replace(self)

    def to_config(self) -> dict[str, Any]:
        record = PemKeyCertConfig(
            key_path=self.key_path,
            key_value=self.key_value,
            cert_path=self.cert_path,
            cert_value=self.cert_value,
        )
        return record.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_config(cls, record: Mapping[str, Any]) -> Self:
        config = PemKeyCertConfig.model_validate(dict(record))
        return cls(
            key_path=config.key_path,
            key_value=config.key_value,
            cert_path=config.cert_path,
            cert_value=config.cert_value,
        )
