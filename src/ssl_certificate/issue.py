"""Self-signed and CA-signed certificate generation."""

from __future__ import annotations

import ipaddress
import logging
from typing import Any

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ed448, ed25519
from cryptography.x509.oid import NameOID

from ssl_certificate.errors import IssuanceError
from ssl_certificate.types import (
    IssuerMaterials,
    KeyMaterial,
    SubjectSpec,
    ValidityWindow,
)

logger = logging.getLogger(__name__)


def _subject_name(subject: SubjectSpec) -> x509.Name:
    fields = [
        (NameOID.COUNTRY_NAME, subject.country),
        (NameOID.STATE_OR_PROVINCE_NAME, subject.state),
        (NameOID.LOCALITY_NAME, subject.city),
        (NameOID.ORGANIZATION_NAME, subject.organization),
        (NameOID.ORGANIZATIONAL_UNIT_NAME, subject.department),
        (NameOID.COMMON_NAME, subject.common_name),
        (NameOID.EMAIL_ADDRESS, subject.email),
    ]
    return x509.Name([x509.NameAttribute(oid, value) for oid, value in fields if value])


def general_name(name: str) -> x509.GeneralName:
    kind, _, value = name.partition(":")
    if kind == "DNS":
        return x509.DNSName(value)
    if kind == "IP":
        return x509.IPAddress(ipaddress.ip_address(value))
    if kind == "email":
        return x509.RFC822Name(value)
    if kind == "URI":
        return x509.UniformResourceIdentifier(value)
    raise ValueError(f"Unsupported subject alternate name: {name}")


def _hash_for(signing_key: Any) -> hashes.HashAlgorithm | None:
    if isinstance(signing_key, (ed25519.Ed25519PrivateKey, ed448.Ed448PrivateKey)):
        return None
    return hashes.SHA256()


def _same_public_key(private_key: Any, cert: x509.Certificate) -> bool:
    spki = (serialization.Encoding.DER, serialization.PublicFormat.SubjectPublicKeyInfo)
    return private_key.public_key().public_bytes(*spki) == cert.public_key().public_bytes(*spki)


def issue_certificate(
    key: KeyMaterial,
    subject: SubjectSpec,
    validity: ValidityWindow,
    issuer: IssuerMaterials | None = None,
) -> str:
    try:
        public_key = key.private_key.public_key()
        name = _subject_name(subject)
        builder = (
            x509.CertificateBuilder()
            .subject_name(name)
            .public_key(public_key)
            .serial_number(x509.random_serial_number())
            .not_valid_before(validity.not_before)
            .not_valid_after(validity.not_after)
            .add_extension(x509.SubjectKeyIdentifier.from_public_key(public_key), critical=False)
        )
        if subject.alternate_names:
            builder = builder.add_extension(
                x509.SubjectAlternativeName([general_name(n) for n in subject.alternate_names]),
                critical=False,
            )

        if issuer is None:
            signing_key = key.private_key
            builder = builder.issuer_name(name).add_extension(
                x509.BasicConstraints(ca=True, path_length=None), critical=True
            )
        else:
            ca_cert = x509.load_pem_x509_certificate(issuer.ca_cert_pem.encode("utf-8"))
            if not _same_public_key(issuer.ca_key, ca_cert):
                raise IssuanceError("CA key does not match the CA certificate")
            signing_key = issuer.ca_key
            builder = (
                builder.issuer_name(ca_cert.subject)
                .add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
                .add_extension(
                    x509.AuthorityKeyIdentifier.from_issuer_public_key(ca_cert.public_key()),
                    critical=False,
                )
            )

        cert = builder.sign(signing_key, _hash_for(signing_key))
    except IssuanceError:
        raise
    except (ValueError, TypeError, AttributeError, UnsupportedAlgorithm) as error:
        raise IssuanceError("Certificate signing failed", cause=error) from error

    return cert.public_bytes(serialization.Encoding.PEM).decode("ascii")


class CertificateIssuer:
    def issue(
        self,
        key: KeyMaterial,
        subject: SubjectSpec,
        validity: ValidityWindow,
        issuer: IssuerMaterials | None = None,
    ) -> str:
        logger.debug(
            "Issuing %s certificate for %s",
            "self-signed" if issuer is None else "CA-signed",
            subject.common_name,
        )
        return issue_certificate(key, subject, validity, issuer)
