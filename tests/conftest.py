from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import ExtensionOID, NameOID

from ssl_certificate.issue import issue_certificate
from ssl_certificate.types import IssuerMaterials, KeyMaterial, SubjectSpec, ValidityWindow

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def new_key() -> KeyMaterial:
    return KeyMaterial.from_private_key(ec.generate_private_key(ec.SECP256R1()))


def make_ca(common_name: str = "Test CA") -> IssuerMaterials:
    ca_key = new_key()
    ca_pem = issue_certificate(ca_key, SubjectSpec(common_name=common_name), ValidityWindow.starting(NOW))
    return IssuerMaterials(ca_cert_pem=ca_pem, ca_key=ca_key.private_key)


def malformed_san_pem(key: KeyMaterial, common_name: str) -> str:
    """A self-signed certificate that loads but whose SAN extension is not valid DER."""
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.private_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(NOW - timedelta(days=1))
        .not_valid_after(NOW + timedelta(days=30))
        .add_extension(
            x509.UnrecognizedExtension(ExtensionOID.SUBJECT_ALTERNATIVE_NAME, b"\x30\x03\x01\x02"),
            critical=False,
        )
        .sign(key.private_key, hashes.SHA256())
    )
    return cert.public_bytes(serialization.Encoding.PEM).decode("utf-8")


class MemoryReader:
    def __init__(self, files: dict[str, str] | None = None):
        self.files = dict(files or {})
        self.reads: list[str] = []

    def read(self, path: str) -> str | None:
        self.reads.append(path)
        return self.files.get(path)


class MemoryKeyProvider:
    def __init__(self, keys: dict[str, KeyMaterial]):
        self.keys = keys
        self.requests: list[str] = []

    def get_key(self, name: str) -> KeyMaterial:
        self.requests.append(name)
        return self.keys[name]


class UnreadableReader:
    def read(self, path: str) -> str | None:
        raise PermissionError(13, "Permission denied", path)


@pytest.fixture
def key() -> KeyMaterial:
    return new_key()


@pytest.fixture
def ca() -> IssuerMaterials:
    return make_ca()
