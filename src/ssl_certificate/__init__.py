"""SSL certificate lifecycle: verify existing certificates, issue replacements, read trusted sources."""

from ssl_certificate.attributes import ConfigNamespace, resolve_cert_config
from ssl_certificate.errors import (
    CaMaterialError,
    ConfigurationError,
    IssuanceError,
    SourceUnavailable,
    SslCertificateError,
)
from ssl_certificate.issue import CertificateIssuer, issue_certificate
from ssl_certificate.resource import manage_certificate
from ssl_certificate.sources import SOURCES, SourceResolver, normalize_source
from ssl_certificate.stores import (
    FileKeyProvider,
    FilePathReader,
    LocalDataBagStore,
    load_ca_materials,
)
from ssl_certificate.types import (
    CertConfig,
    CertificateCandidate,
    CertificateResult,
    ChangeFlag,
    IssuerMaterials,
    KeyMaterial,
    SubjectSpec,
    ValidityWindow,
)
from ssl_certificate.verify import CertificateVerifier, verify_certificate

__all__ = [
    "SOURCES",
    "CaMaterialError",
    "CertConfig",
    "CertificateCandidate",
    "CertificateIssuer",
    "CertificateResult",
    "CertificateVerifier",
    "ChangeFlag",
    "ConfigNamespace",
    "ConfigurationError",
    "FileKeyProvider",
    "FilePathReader",
    "IssuanceError",
    "IssuerMaterials",
    "KeyMaterial",
    "LocalDataBagStore",
    "SourceResolver",
    "SourceUnavailable",
    "SslCertificateError",
    "SubjectSpec",
    "ValidityWindow",
    "issue_certificate",
    "load_ca_materials",
    "manage_certificate",
    "normalize_source",
    "resolve_cert_config",
    "verify_certificate",
]

__version__ = "0.0.1"
