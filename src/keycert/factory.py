"""Options factories and the process-wide factory registry."""

from __future__ import annotations

import importlib
import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from importlib.metadata import entry_points
from pathlib import Path
from threading import Lock
from typing import Any, Final, Optional

import yaml

from .config import KeyCertSettings, load_yaml
from .errors import DiscoveryError
from .options import KeyCertOptions, PemKeyCertOptions
from .resolver import FileReader, KeyCertResolver, PemKeyCertResolver

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP: Final[str] = "keycert.factories"

_PATH_FIELDS: Final[tuple[str, ...]] = ("keyPath", "certPath")


class KeyCertOptionsFactory(ABC):
    """Construction logic for one key/certificate material variant."""

    @abstractmethod
    def new_options(self) -> KeyCertOptions:
        """Return options with every field unset."""

    def copied_options(self, other: KeyCertOptions) -> KeyCertOptions:
        """Return an independent copy of other."""
        return other.clone()

    @abstractmethod
    def options_from_json(self, record: Mapping[str, Any]) -> KeyCertOptions:
        """Return options built from a structured record."""

    @abstractmethod
    def create_resolver(self, reader: FileReader | None = None) -> KeyCertResolver:
        """Return the resolver able to materialize this variant."""


class PemKeyCertOptionsFactory(KeyCertOptionsFactory):
    """Factory for PEM key/certificate options."""

    def new_options(self) -> PemKeyCertOptions:
        return PemKeyCertOptions()

    def options_from_json(self, record: Mapping[str, Any]) -> PemKeyCertOptions:
        return PemKeyCertOptions.from_config(record)

    def create_resolver(self, reader: FileReader | None = None) -> PemKeyCertResolver:
        return PemKeyCertResolver(reader)


_BUILTIN_FACTORIES: Final[dict[str, type[KeyCertOptionsFactory]]] = {
    "pem": PemKeyCertOptionsFactory,
}


def _check_factory_class(target: object, origin: str) -> type[KeyCertOptionsFactory]:
    if not isinstance(target, type):
        raise DiscoveryError(f"{origin} does not reference a class")

    if not issubclass(target, KeyCertOptionsFactory):
        raise DiscoveryError(f"{origin} is not a KeyCertOptionsFactory subclass")

    return target


def _load_factory_class(class_path: str) -> type[KeyCertOptionsFactory]:
    if ":" not in class_path:
        raise DiscoveryError(
            f"Invalid factory path '{class_path}'. Use module:ClassName format."
        )

    module_name, class_name = class_path.split(":", 1)
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise DiscoveryError(f"Cannot import factory module '{module_name}'") from e

    try:
        target = getattr(module, class_name)
    except AttributeError as e:
        raise DiscoveryError(f"{class_path} not found") from e

    return _check_factory_class(target, class_path)


def _factory_for_format(name: str) -> type[KeyCertOptionsFactory]:
    if name in _BUILTIN_FACTORIES:
        return _BUILTIN_FACTORIES[name]

    plugins = {ep.name: ep for ep in entry_points(group=ENTRY_POINT_GROUP)}
    ep = plugins.get(name)
    if ep is None:
        available = sorted({*_BUILTIN_FACTORIES, *plugins})
        raise DiscoveryError(
            f"No key/cert options factory for format '{name}' "
            f"(available: {', '.join(available)})"
        )

    try:
        target = ep.load()
    except (ImportError, AttributeError) as e:
        raise DiscoveryError(f"Cannot load factory entry point '{ep.value}'") from e

    return _check_factory_class(target, ep.value)


def discover_factory(settings: Optional[KeyCertSettings] = None) -> KeyCertOptionsFactory:
    """
    Locate the options factory for this process.

    An explicit ``factory`` import path wins. Otherwise the ``format`` is
    looked up in the built-in table, then in the ``keycert.factories``
    entry point group of installed distributions.

    Args:
        settings: Discovery settings (default: loaded from environment)

    Returns:
        Factory instance

    Raises:
        DiscoveryError: If no usable factory is found
    """
    if settings is None:
        settings = KeyCertSettings()

    if settings.factory:
        factory_cls = _load_factory_class(settings.factory)
    else:
        factory_cls = _factory_for_format(settings.format.lower())

    return factory_cls()


class FactoryRegistry:
    """
    Holds the options factory used to build key/certificate options.

    The factory is either injected or discovered on first access. Once set
    it never changes.
    """

    def __init__(
        self,
        factory: Optional[KeyCertOptionsFactory] = None,
        *,
        settings: Optional[KeyCertSettings] = None,
    ) -> None:
        """Initialize registry with an explicit factory or discovery settings."""
        self._factory = factory
        self._settings = settings
        self._lock = Lock()

    @property
    def factory(self) -> KeyCertOptionsFactory:
        """Return the factory, discovering it on first access."""
        factory = self._factory
        if factory is not None:
            return factory

        with self._lock:
            if self._factory is None:
                self._factory = discover_factory(self._settings)
                logger.info(
                    "Key/cert options factory initialized",
                    extra={"factory": type(self._factory).__qualname__},
                )
            return self._factory

    def new_options(self) -> KeyCertOptions:
        return self.factory.new_options()

    def copied_options(self, other: KeyCertOptions) -> KeyCertOptions:
        return self.factory.copied_options(other)

    def options_from_json(self, record: Mapping[str, Any]) -> KeyCertOptions:
        return self.factory.options_from_json(record)


_registry = FactoryRegistry()


def get_factory() -> KeyCertOptionsFactory:
    """Return the process-wide options factory."""
    return _registry.factory


def options() -> KeyCertOptions:
    """Create options with every field unset."""
    return _registry.new_options()


def copied_options(other: KeyCertOptions) -> KeyCertOptions:
    """Create an independent copy of other."""
    return _registry.copied_options(other)


def options_from_json(record: Mapping[str, Any]) -> KeyCertOptions:
    """Create options from a structured record."""
    return _registry.options_from_json(record)


def load_options_file(
    file_path: str | Path, factory: Optional[KeyCertOptionsFactory] = None
) -> KeyCertOptions:
    """
    Create options from a YAML file holding a structured record.

    Relative ``keyPath`` and ``certPath`` entries are resolved against the
    directory of the YAML file.

    Args:
        file_path: Path to YAML file
        factory: Factory to build with (default: process-wide factory)

    Returns:
        Options instance

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the document is not a mapping
    """
    record = load_yaml(file_path)
    base = Path(file_path).resolve().parent

    for name in _PATH_FIELDS:
        value = record.get(name)
        if isinstance(value, str) and not Path(value).is_absolute():
            record[name] = str((base / value).resolve())

    return (factory or get_factory()).options_from_json(record)


def dump_options_file(key_cert: KeyCertOptions, file_path: str | Path) -> None:
    """
    Write options to a YAML file.

    Args:
        key_cert: Options to export
        file_path: Path to output YAML file
    """
    path = Path(file_path)
    with path.open("w") as f:
        yaml.dump(key_cert.to_config(), f, default_flow_style=False, sort_keys=False)
