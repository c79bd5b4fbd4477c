"""Key/certificate configuration records and settings."""

import base64
import binascii
import os
from pathlib import Path
from typing import Annotated, Any, Optional

import yaml
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError
from pydantic_settings import BaseSettings, SettingsConfigDict


def _decode_pem_value(value: Any) -> Any:
    # Text is base64 (RFC 4648, no line wrapping); byte buffers are content
    if isinstance(value, str):
        try:
            return base64.b64decode(value, validate=True)
        except binascii.Error as e:
            raise PydanticCustomError(
                "base64_decode",
                "Base64 decoding error: '{error}'",
                {"error": str(e)},
            )
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    return value


def _encode_pem_value(value: bytes) -> str:
    return base64.b64encode(value).decode("ascii")


PemBytes = Annotated[
    bytes,
    BeforeValidator(_decode_pem_value),
    PlainSerializer(_encode_pem_value, return_type=str),
]


class PemKeyCertConfig(BaseModel):
    """
    Structured record for PEM key/certificate options.

    Field names use camelCase on the wire (``keyPath``, ``keyValue``,
    ``certPath``, ``certValue``). Inline values are written as base64 text;
    on input, text is base64-decoded and byte buffers are taken as content.
    Unknown fields are ignored.
    """

    key_path: Optional[str] = Field(
        default=None, description="Path to PEM PKCS8 private key file"
    )
    key_value: Optional[PemBytes] = Field(
        default=None, description="Inline PEM PKCS8 private key"
    )
    cert_path: Optional[str] = Field(
        default=None, description="Path to PEM X.509 certificate file"
    )
    cert_value: Optional[PemBytes] = Field(
        default=None, description="Inline PEM X.509 certificate chain"
    )

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class KeyCertSettings(BaseSettings):
    """
    Options factory discovery settings.

    Configuration can be loaded from:
    1. Environment variables (KEYCERT_*)
    2. .env file
    3. YAML config file (via config_file or KEYCERT_CONFIG_FILE)
    4. Direct instantiation with parameters

    Example usage:

        # Built-in PEM factory
        settings = KeyCertSettings()

        # Format contributed by an installed plugin
        settings = KeyCertSettings(format="pkcs12")

        # Explicit factory class
        settings = KeyCertSettings(factory="myproject.tls:VaultOptionsFactory")
    """

    config_file: Optional[str] = Field(
        default=None,
        description="Path to YAML config file",
    )
    format: str = Field(
        default="pem",
        min_length=1,
        description="Material format whose factory is used",
    )
    factory: Optional[str] = Field(
        default=None,
        description="Import path of a factory class (module:ClassName)",
    )

    model_config = SettingsConfigDict(
        env_prefix="KEYCERT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def __init__(self, **data: Any):
        """
        Initialize settings.

        If config_file is provided or KEYCERT_CONFIG_FILE env var is set,
        load configuration from YAML file and merge explicit parameters on top.
        """
        config_file = data.get("config_file") or os.getenv("KEYCERT_CONFIG_FILE")
        if config_file:
            yaml_data = load_yaml(config_file)
            data = {**yaml_data, **data, "config_file": config_file}
        super().__init__(**data)


def load_yaml(file_path: str | Path) -> dict[str, Any]:
    """
    Load a YAML mapping from a file.

    Args:
        file_path: Path to YAML file

    Returns:
        Dictionary with configuration data (empty for an empty file)

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the document is not a mapping
        yaml.YAMLError: If YAML is invalid
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {file_path}")

    with path.open("r") as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}

    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {file_path}")

    return data
