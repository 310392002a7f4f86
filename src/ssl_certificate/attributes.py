"""Layered attribute lookup and the once-per-resource configuration step."""

from __future__ import annotations

import json
import os
import socket
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from ssl_certificate.errors import ConfigurationError
from ssl_certificate.types import DEFAULT_VALIDITY_SECONDS, CertConfig, SubjectSpec

DEFAULT_CERT_DIR = "/etc/ssl/certs"
DEFAULT_SOURCE = "self-signed"

ATTRIBUTES = frozenset({
    "cert_name", "cert_dir", "cert_path", "source", "bag", "item", "item_key",
    "encrypted", "secret_file", "subject_alternate_names", "common_name",
    "country", "state", "city", "organization", "department", "email",
    "ca_cert_path", "ca_key_path", "key_name", "validity_seconds",
})


class ConfigNamespace:
    """Ordered attribute layers; the first layer holding a key wins."""

    def __init__(self, *layers: Mapping[str, Any]):
        self.layers = tuple(layer for layer in layers if layer is not None)

    @classmethod
    def from_json_file(cls, path: str, namespace: str | Sequence[str] | None = None) -> "ConfigNamespace":
        try:
            raw = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as error:
            raise ConfigurationError(f"Failed to parse attribute file {path}", cause=error) from error
        if not isinstance(raw, dict):
            raise ConfigurationError(f"Attribute file {path} is invalid")

        layers: list[Mapping[str, Any]] = []
        if namespace:
            scoped = _dig(raw, _split_keys(namespace))
            if not isinstance(scoped, dict):
                raise ConfigurationError(f"Attribute namespace {namespace} not found in {path}")
            layers.append(scoped)
        defaults = raw.get("ssl_certificate")
        if isinstance(defaults, dict):
            layers.append(defaults)
        return cls(*layers)

    def read(self, keys: str | Sequence[str]) -> Any:
        path = _split_keys(keys)
        for layer in self.layers:
            value = _dig(layer, path)
            if value is not None:
                return value
        return None


def _split_keys(keys: str | Sequence[str]) -> list[str]:
    if isinstance(keys, str):
        return [part for part in keys.split(".") if part]
    return list(keys)


def _dig(data: Any, path: Sequence[str]) -> Any:
    for key in path:
        if not isinstance(data, Mapping):
            return None
        data = data.get(key)
    return data


def _first(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


_TRUE = frozenset({"true", "yes", "on", "1"})
_FALSE = frozenset({"false", "no", "off", "0", ""})


def _as_bool(value: Any, attribute: str, resource: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
    raise ConfigurationError(f"Invalid boolean for {attribute}: {value!r}", resource=resource)


def resolve_cert_config(
    name: str,
    namespace: ConfigNamespace | None = None,
    **overrides: Any,
) -> CertConfig:
    """Resolve every certificate attribute once into an immutable config.

    Explicit overrides win, then the ``ssl_cert`` sub-namespace, then the
    shared namespace keys, then built-in defaults. ``None`` overrides are
    ignored.
    """
    if not isinstance(name, str) or not name.strip():
        raise ConfigurationError("Certificate resource name is required")

    ns = namespace or ConfigNamespace()
    unknown = sorted(set(overrides) - ATTRIBUTES)
    if unknown:
        raise ConfigurationError(f"Unknown certificate attributes: {', '.join(unknown)}", resource=name)
    given = {key: value for key, value in overrides.items() if value is not None}

    def read(*keys: str | Sequence[str]) -> Any:
        return _first(*(ns.read(key) for key in keys))

    cert_name = given.get("cert_name") or f"{name}.pem"
    cert_dir = (
        given.get("cert_dir")
        or read("cert_dir")
        or os.environ.get("SSL_CERTIFICATE_CERT_DIR")
        or DEFAULT_CERT_DIR
    )
    cert_path = given.get("cert_path") or os.path.join(cert_dir, cert_name)

    sans = given.get("subject_alternate_names")
    if sans is None:
        sans = read(["ssl_cert", "subject_alternate_names"]) or ()
    if isinstance(sans, str):
        sans = [sans]

    subject = SubjectSpec(
        common_name=given.get("common_name") or read("common_name") or socket.getfqdn(),
        alternate_names=tuple(sans),
        country=given.get("country") or read("country"),
        state=given.get("state") or read("state"),
        city=given.get("city") or read("city"),
        organization=given.get("organization") or read("organization"),
        department=given.get("department") or read("department"),
        email=given.get("email") or read("email"),
    )

    validity = _first(given.get("validity_seconds"), read("time"), DEFAULT_VALIDITY_SECONDS)
    try:
        validity_seconds = int(validity)
    except (TypeError, ValueError) as error:
        raise ConfigurationError(f"Invalid certificate validity: {validity}", resource=name) from error
    if validity_seconds <= 0:
        raise ConfigurationError("Certificate validity must be positive", resource=name)

    return CertConfig(
        name=name,
        cert_name=cert_name,
        cert_dir=cert_dir,
        cert_path=cert_path,
        source=_first(given.get("source"), read(["ssl_cert", "source"], "source"), DEFAULT_SOURCE),
        subject=subject,
        key_name=given.get("key_name") or read("key_name") or f"{name}.key",
        bag=_first(given.get("bag"), read(["ssl_cert", "bag"], "bag")),
        item=_first(given.get("item"), read(["ssl_cert", "item"], "item")),
        item_key=_first(given.get("item_key"), read(["ssl_cert", "item_key"])),
        encrypted=_as_bool(
            _first(given.get("encrypted"), read(["ssl_cert", "encrypted"], "encrypted"), False),
            "encrypted",
            name,
        ),
        secret_file=_first(given.get("secret_file"), read(["ssl_cert", "secret_file"], "secret_file")),
        ca_cert_path=_first(given.get("ca_cert_path"), read("ca_cert_path")),
        ca_key_path=_first(given.get("ca_key_path"), read("ca_key_path")),
        validity_seconds=validity_seconds,
    )
