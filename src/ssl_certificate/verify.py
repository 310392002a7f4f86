"""Decide whether an existing certificate still satisfies its declaration."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from cryptography import x509
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.x509.oid import NameOID

from ssl_certificate.types import CertificateCandidate, KeyMaterial, SubjectSpec

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def load_certificate(candidate: CertificateCandidate | None) -> x509.Certificate | None:
    if candidate is None or not candidate.pem:
        return None
    try:
        cert = x509.load_pem_x509_certificate(candidate.pem.encode("utf-8"))
        # subject, issuer and extensions are decoded lazily; force it here
        cert.subject
        cert.issuer
        cert.extensions
    except (ValueError, x509.DuplicateExtension, x509.UnsupportedGeneralNameType):
        return None
    return cert


def common_name_of(cert: x509.Certificate) -> str | None:
    attributes = cert.subject.get_attributes_for_oid(NameOID.COMMON_NAME)
    if not attributes:
        return None
    value = attributes[0].value
    return value.decode("utf-8") if isinstance(value, bytes) else value


def alternate_names_of(cert: x509.Certificate) -> frozenset[str]:
    try:
        extension = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName)
    except x509.ExtensionNotFound:
        return frozenset()

    san = extension.value
    names = [f"DNS:{name}" for name in san.get_values_for_type(x509.DNSName)]
    names += [f"IP:{address}" for address in san.get_values_for_type(x509.IPAddress)]
    names += [f"email:{email}" for email in san.get_values_for_type(x509.RFC822Name)]
    names += [f"URI:{uri}" for uri in san.get_values_for_type(x509.UniformResourceIdentifier)]
    return frozenset(names)


def _public_key_der(cert: x509.Certificate) -> bytes:
    return cert.public_key().public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


def _signed_by(cert: x509.Certificate, issuer: x509.Certificate) -> bool:
    try:
        cert.verify_directly_issued_by(issuer)
    except (ValueError, TypeError, InvalidSignature, UnsupportedAlgorithm):
        return False
    return True


def verify_certificate(
    key: KeyMaterial,
    candidate: CertificateCandidate | None,
    subject: SubjectSpec,
    issuer: CertificateCandidate | None = None,
    *,
    now: datetime | None = None,
) -> bool:
    cert = load_certificate(candidate)
    if cert is None:
        logger.debug("Certificate is missing or not valid PEM")
        return False

    try:
        key_matches = _public_key_der(cert) == key.public_key_der()
    except (ValueError, UnsupportedAlgorithm):
        key_matches = False
    if not key_matches:
        logger.debug("Certificate public key does not match the private key")
        return False

    if common_name_of(cert) != subject.common_name:
        logger.debug("Certificate common name does not match %s", subject.common_name)
        return False

    if subject.alternate_names and alternate_names_of(cert) != subject.alternate_name_set:
        logger.debug("Certificate subject alternate names do not match")
        return False

    if issuer is None:
        signer = cert
    else:
        signer = load_certificate(issuer)
        if signer is None:
            logger.debug("Issuer certificate is not valid PEM")
            return False
    if not _signed_by(cert, signer):
        logger.debug("Certificate signature does not verify against %s", "its own key" if issuer is None else "the CA")
        return False

    current = now or _utc_now()
    if not cert.not_valid_before_utc <= current <= cert.not_valid_after_utc:
        logger.debug("Certificate is outside its validity window")
        return False

    return True


class CertificateVerifier:
    def __init__(self, *, now: Clock | None = None):
        self._now = now or _utc_now

    def verify(
        self,
        key: KeyMaterial,
        candidate: CertificateCandidate | None,
        subject: SubjectSpec,
        issuer: CertificateCandidate | None = None,
    ) -> bool:
        return verify_certificate(key, candidate, subject, issuer, now=self._now())
