"""Shared datatypes and collaborator protocols for certificate resolution."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Optional, Protocol, Sequence

from cryptography.hazmat.primitives import serialization

from ssl_certificate.errors import ConfigurationError, IssuanceError

DEFAULT_VALIDITY_SECONDS = 365 * 24 * 60 * 60
SAN_PREFIXES = ("DNS", "IP", "email", "URI")


def normalize_alternate_name(raw: str) -> str:
    name = raw.strip()
    prefix, sep, value = name.partition(":")
    if sep:
        for known in SAN_PREFIXES:
            if prefix.lower() == known.lower():
                value = value.strip()
                if known == "IP":
                    try:
                        value = str(ipaddress.ip_address(value))
                    except ValueError as error:
                        raise ConfigurationError(
                            f"Invalid IP subject alternate name: {value}", cause=error
                        ) from error
                return f"{known}:{value}"
    return f"DNS:{name}"


@dataclass(frozen=True)
class SubjectSpec:
    common_name: str
    alternate_names: tuple[str, ...] = ()
    country: str | None = None
    state: str | None = None
    city: str | None = None
    organization: str | None = None
    department: str | None = None
    email: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.common_name, str) or not self.common_name.strip():
            raise ConfigurationError("Certificate common name is required")
        names = tuple(normalize_alternate_name(name) for name in self.alternate_names)
        object.__setattr__(self, "alternate_names", names)

    @property
    def alternate_name_set(self) -> frozenset[str]:
        return frozenset(self.alternate_names)


@dataclass(frozen=True)
class KeyMaterial:
    private_key: Any
    pem: str

    @classmethod
    def from_pem(cls, pem: str, password: bytes | None = None) -> "KeyMaterial":
        try:
            private_key = serialization.load_pem_private_key(pem.encode("utf-8"), password=password)
        except (ValueError, TypeError) as error:
            raise IssuanceError("Cannot load private key", cause=error) from error
        return cls(private_key=private_key, pem=pem)

    @classmethod
    def from_private_key(cls, private_key: Any) -> "KeyMaterial":
        pem = private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        ).decode("ascii")
        return cls(private_key=private_key, pem=pem)

    def public_key_der(self) -> bytes:
        return self.private_key.public_key().public_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )


@dataclass(frozen=True)
class CertificateCandidate:
    pem: str | None = None


@dataclass(frozen=True)
class IssuerMaterials:
    ca_cert_pem: str
    ca_key: Any

    @property
    def issuer_candidate(self) -> CertificateCandidate:
        return CertificateCandidate(pem=self.ca_cert_pem)


@dataclass(frozen=True)
class ValidityWindow:
    not_before: datetime
    not_after: datetime

    def __post_init__(self) -> None:
        if self.not_after <= self.not_before:
            raise ConfigurationError("Certificate validity must end after it starts")

    @classmethod
    def starting(cls, now: datetime, seconds: int = DEFAULT_VALIDITY_SECONDS) -> "ValidityWindow":
        return cls(not_before=now, not_after=now + timedelta(seconds=seconds))


@dataclass(frozen=True)
class CertConfig:
    name: str
    cert_name: str
    cert_dir: str
    cert_path: str
    source: str
    subject: SubjectSpec
    key_name: str
    bag: str | None = None
    item: str | None = None
    item_key: str | None = None
    encrypted: bool = False
    secret_file: str | None = None
    ca_cert_path: str | None = None
    ca_key_path: str | None = None
    validity_seconds: int = DEFAULT_VALIDITY_SECONDS


@dataclass(frozen=True)
class CertificateResult:
    content: str
    changed: bool
    source: str
    cert_path: str | None = None


@dataclass
class ChangeFlag:
    """Change sink that remembers whether the resolution issued a certificate."""

    changed: bool = False
    events: list[str] = field(default_factory=list)

    def __call__(self, reason: str = "issued") -> None:
        self.changed = True
        self.events.append(reason)


class KeyProvider(Protocol):
    def get_key(self, name: str) -> KeyMaterial: ...


class PathReader(Protocol):
    def read(self, path: str) -> Optional[str]: ...


class Namespace(Protocol):
    def read(self, keys: str | Sequence[str]) -> Any: ...


class SecretStore(Protocol):
    def fetch(
        self,
        bag: str | None,
        item: str | None,
        key: str | None = None,
        encrypted: bool = False,
        secret_file: str | None = None,
    ) -> Any: ...


class ChangeSink(Protocol):
    def __call__(self) -> None: ...
