from __future__ import annotations

import pytest
from cryptography import x509
from cryptography.hazmat.primitives.asymmetric import ed25519, rsa

from conftest import NOW, new_key

from ssl_certificate.errors import IssuanceError
from ssl_certificate.issue import CertificateIssuer, issue_certificate
from ssl_certificate.types import CertificateCandidate, IssuerMaterials, KeyMaterial, SubjectSpec, ValidityWindow
from ssl_certificate.verify import common_name_of, verify_certificate


def _load(pem: str) -> x509.Certificate:
    return x509.load_pem_x509_certificate(pem.encode("utf-8"))


def test_self_signed_certificate_fields(key) -> None:
    subject = SubjectSpec(common_name="web.example.com", organization="Example", country="ES")
    cert = _load(issue_certificate(key, subject, ValidityWindow.starting(NOW)))

    assert cert.version == x509.Version.v3
    assert cert.serial_number > 0
    assert cert.issuer == cert.subject
    assert common_name_of(cert) == "web.example.com"
    assert cert.not_valid_before_utc == NOW
    assert (cert.not_valid_after_utc - NOW).days == 365
    assert cert.extensions.get_extension_for_class(x509.BasicConstraints).value.ca is True


def test_no_alternate_name_extension_when_names_are_empty(key) -> None:
    cert = _load(issue_certificate(key, SubjectSpec(common_name="web"), ValidityWindow.starting(NOW)))
    with pytest.raises(x509.ExtensionNotFound):
        cert.extensions.get_extension_for_class(x509.SubjectAlternativeName)


def test_serial_numbers_differ_per_issuance(key) -> None:
    subject = SubjectSpec(common_name="web")
    window = ValidityWindow.starting(NOW)
    serials = {_load(issue_certificate(key, subject, window)).serial_number for _ in range(5)}
    assert len(serials) == 5


def test_ca_signed_certificate_uses_ca_subject_as_issuer(key, ca) -> None:
    pem = issue_certificate(key, SubjectSpec(common_name="web"), ValidityWindow.starting(NOW), ca)
    cert = _load(pem)

    assert cert.issuer == _load(ca.ca_cert_pem).subject
    assert cert.extensions.get_extension_for_class(x509.BasicConstraints).value.ca is False
    cert.verify_directly_issued_by(_load(ca.ca_cert_pem))


def test_mismatched_ca_key_is_an_issuance_error(key, ca) -> None:
    wrong = IssuerMaterials(ca_cert_pem=ca.ca_cert_pem, ca_key=new_key().private_key)
    with pytest.raises(IssuanceError):
        issue_certificate(key, SubjectSpec(common_name="web"), ValidityWindow.starting(NOW), wrong)


def test_malformed_key_material_is_an_issuance_error() -> None:
    broken = KeyMaterial(private_key=object(), pem="")
    with pytest.raises(IssuanceError):
        issue_certificate(broken, SubjectSpec(common_name="web"), ValidityWindow.starting(NOW))


def test_rsa_and_ed25519_keys_issue_verifiable_certificates() -> None:
    subject = SubjectSpec(common_name="web", alternate_names=("web.example.com",))
    for private_key in (
        rsa.generate_private_key(public_exponent=65537, key_size=2048),
        ed25519.Ed25519PrivateKey.generate(),
    ):
        material = KeyMaterial.from_private_key(private_key)
        pem = CertificateIssuer().issue(material, subject, ValidityWindow.starting(NOW))
        assert verify_certificate(material, CertificateCandidate(pem=pem), subject, now=NOW) is True


def test_rsa_certificate_signed_by_ed25519_ca() -> None:
    ca_key = KeyMaterial.from_private_key(ed25519.Ed25519PrivateKey.generate())
    ca_pem = issue_certificate(ca_key, SubjectSpec(common_name="Ed CA"), ValidityWindow.starting(NOW))
    ca = IssuerMaterials(ca_cert_pem=ca_pem, ca_key=ca_key.private_key)
    leaf_key = KeyMaterial.from_private_key(rsa.generate_private_key(public_exponent=65537, key_size=2048))

    pem = issue_certificate(leaf_key, SubjectSpec(common_name="web"), ValidityWindow.starting(NOW), ca)
    _load(pem).verify_directly_issued_by(_load(ca_pem))

