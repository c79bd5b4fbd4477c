"""Key/certificate material errors."""

from __future__ import annotations

from enum import Enum


class MaterialSlot(Enum):
    """Independently resolvable piece of TLS material."""

    KEY = "key"
    CERT = "cert"


class KeyCertError(Exception):
    """Base exception for key/certificate material failures."""

    def __init__(self, message: str, slot: MaterialSlot | None = None):
        """Initialize error with message and the slot it concerns."""
        super().__init__(message)
        self.message = message
        self.slot = slot


class MissingSourceError(KeyCertError):
    """Neither a path nor a value is configured for a slot."""

    def __init__(self, slot: MaterialSlot):
        """Initialize missing source error."""
        what = "private key" if slot is MaterialSlot.KEY else "certificate"
        super().__init__(f"no {what} source provided", slot)


class UnreadableSourceError(KeyCertError):
    """A configured path could not be read."""

    def __init__(self, path: str, slot: MaterialSlot, reason: str):
        """Initialize unreadable source error."""
        super().__init__(f"cannot read {slot.value} file {path}: {reason}", slot)
        self.path = path


class MalformedMaterialError(KeyCertError):
    """Resolved bytes are not usable PEM key/certificate material."""


class DiscoveryError(KeyCertError):
    """No usable options factory could be located."""
