"""Key/certificate material options for TLS endpoints."""

from .config import KeyCertSettings, PemKeyCertConfig
from .errors import (
    DiscoveryError,
    KeyCertError,
    MalformedMaterialError,
    MaterialSlot,
    MissingSourceError,
    UnreadableSourceError,
)
from .factory import (
    FactoryRegistry,
    KeyCertOptionsFactory,
    PemKeyCertOptionsFactory,
    copied_options,
    discover_factory,
    dump_options_file,
    get_factory,
    load_options_file,
    options,
    options_from_json,
)
from .options import KeyCertOptions, PemKeyCertOptions
from .resolver import FileReader, KeyMaterial, LocalFileReader, PemKeyCertResolver
from .tls import TlsConfig, load_channel_credentials, load_server_credentials
from .__version__ import __version__

__all__ = [
    "KeyCertOptions",
    "PemKeyCertOptions",
    "KeyCertOptionsFactory",
    "PemKeyCertOptionsFactory",
    "FactoryRegistry",
    "discover_factory",
    "get_factory",
    "options",
    "copied_options",
    "options_from_json",
    "load_options_file",
    "dump_options_file",
    "KeyCertSettings",
    "PemKeyCertConfig",
    "FileReader",
    "LocalFileReader",
    "KeyMaterial",
    "PemKeyCertResolver",
    "TlsConfig",
    "load_server_credentials",
    "load_channel_credentials",
    "KeyCertError",
    "MissingSourceError",
    "UnreadableSourceError",
    "MalformedMaterialError",
    "DiscoveryError",
    "MaterialSlot",
    "__version__",
]
