"""Local filesystem collaborators: path reader, key provider and data bags."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from cryptography import x509
from cryptography.hazmat.primitives import serialization

from ssl_certificate.errors import CaMaterialError, ConfigurationError, SourceUnavailable
from ssl_certificate.types import IssuerMaterials, KeyMaterial, PathReader


class FilePathReader:
    """Reads text files; ``None`` for a missing file, ``OSError`` for an unreadable one.

    Bytes that are not UTF-8 (a DER certificate, say) are replaced rather
    than raised, so the content reaches callers as text that will not parse.
    """

    def read(self, path: str) -> str | None:
        target = Path(path)
        if not target.is_file():
            return None
        return target.read_bytes().decode("utf-8", errors="replace")


class FileKeyProvider:
    """Loads PEM private keys managed by the key resource from ``key_dir``."""

    def __init__(
        self,
        key_dir: str,
        *,
        password: bytes | None = None,
        reader: PathReader | None = None,
    ):
        self.key_dir = key_dir
        self._password = password
        self._reader = reader or FilePathReader()

    def get_key(self, name: str) -> KeyMaterial:
        path = os.path.join(self.key_dir, name)
        try:
            pem = self._reader.read(path)
        except OSError as error:
            raise ConfigurationError(
                f"Cannot read SSL key from path: {path}", resource=name, cause=error
            ) from error
        if not isinstance(pem, str) or not pem.strip():
            raise ConfigurationError(f"Cannot read SSL key from path: {path}", resource=name)
        return KeyMaterial.from_pem(pem, password=self._password)


class LocalDataBagStore:
    """Plain JSON data bags laid out as ``<root>/<bag>/<item>.json``."""

    def __init__(self, root: str):
        self.root = root

    def fetch(
        self,
        bag: str | None,
        item: str | None,
        key: str | None = None,
        encrypted: bool = False,
        secret_file: str | None = None,
    ) -> Any:
        if not bag or not item:
            raise ConfigurationError("Data bag and item are required", source="data_bag")
        if encrypted:
            raise ConfigurationError(
                f"Encrypted data bag item {bag}.{item} needs a decrypting secret store",
                source="data_bag",
            )

        item_path = Path(self.root) / bag / f"{item}.json"
        if not item_path.is_file():
            return None
        try:
            raw = json.loads(item_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as error:
            raise SourceUnavailable(
                f"Failed to parse data bag item {item_path}", source="data_bag", cause=error
            ) from error

        if key is None:
            return raw
        if not isinstance(raw, dict):
            return None
        return raw.get(key)


def _read_ca_file(reader: PathReader, path: str | None, what: str) -> str:
    try:
        content = reader.read(path) if path else None
    except OSError as error:
        raise CaMaterialError(
            f"Cannot read CA {what} from path: {path}", source="with_ca", cause=error
        ) from error
    if not isinstance(content, str):
        raise CaMaterialError(f"Cannot read CA {what} from path: {path}", source="with_ca")
    return content


def load_ca_materials(
    reader: PathReader,
    ca_cert_path: str | None,
    ca_key_path: str | None,
    *,
    password: bytes | None = None,
) -> IssuerMaterials:
    ca_cert_pem = _read_ca_file(reader, ca_cert_path, "certificate")
    ca_key_pem = _read_ca_file(reader, ca_key_path, "key")

    try:
        x509.load_pem_x509_certificate(ca_cert_pem.encode("utf-8"))
    except ValueError as error:
        raise CaMaterialError(
            f"Invalid CA certificate at {ca_cert_path}", source="with_ca", cause=error
        ) from error
    try:
        ca_key = serialization.load_pem_private_key(ca_key_pem.encode("utf-8"), password=password)
    except (ValueError, TypeError) as error:
        raise CaMaterialError(
            f"Invalid CA key at {ca_key_path}", source="with_ca", cause=error
        ) from error

    return IssuerMaterials(ca_cert_pem=ca_cert_pem, ca_key=ca_key)
