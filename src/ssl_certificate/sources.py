"""Resolve certificate content for a declared source policy."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable

from ssl_certificate.errors import ConfigurationError, SourceUnavailable, SslCertificateError
from ssl_certificate.issue import CertificateIssuer
from ssl_certificate.stores import FilePathReader, load_ca_materials
from ssl_certificate.types import (
    CertConfig,
    CertificateCandidate,
    ChangeFlag,
    ChangeSink,
    IssuerMaterials,
    KeyProvider,
    Namespace,
    PathReader,
    SecretStore,
    ValidityWindow,
)
from ssl_certificate.verify import CertificateVerifier

logger = logging.getLogger(__name__)

SOURCES = (
    "attribute",
    "data_bag",
    "chef_vault",
    "file",
    "self_signed",
    "with_ca",
)


def normalize_source(raw: str | None) -> str:
    if not isinstance(raw, str) or not raw.strip():
        raise ConfigurationError("Cannot read SSL cert, no source given")
    source = raw.strip().lower().replace("-", "_")
    if source not in SOURCES:
        raise ConfigurationError(f"Cannot read SSL cert, unknown source: {raw}", source=raw)
    return source


def _require_string(content: Any, message: str, *, source: str, resource: str) -> str:
    if not isinstance(content, str):
        raise SourceUnavailable(message, source=source, resource=resource)
    return content


class SourceResolver:
    """Maps a source policy to its content: passive lookups or verify-then-issue."""

    def __init__(
        self,
        config: CertConfig,
        *,
        key_provider: KeyProvider | None = None,
        namespace: Namespace | None = None,
        path_reader: PathReader | None = None,
        data_bags: SecretStore | None = None,
        vault: SecretStore | None = None,
        change_sink: ChangeSink | None = None,
        now: Callable[[], datetime] | None = None,
    ):
        self.config = config
        self._key_provider = key_provider
        self._namespace = namespace
        self._reader = path_reader or FilePathReader()
        self._data_bags = data_bags
        self._vault = vault
        self.change_sink = change_sink if change_sink is not None else ChangeFlag()
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._verifier = CertificateVerifier(now=self._now)
        self._issuer = CertificateIssuer()
        self._handlers: dict[str, Callable[[], str]] = {
            "attribute": self._from_attribute,
            "data_bag": self._from_data_bag,
            "chef_vault": self._from_chef_vault,
            "file": self._from_file,
            "self_signed": self._from_self_signed,
            "with_ca": self._from_with_ca,
        }

    def resolve(self, source: str | None = None) -> str:
        name = normalize_source(self.config.source if source is None else source)
        try:
            return self._handlers[name]()
        except SslCertificateError as error:
            error.source = error.source or name
            error.resource = error.resource or self.config.name
            raise

    def _missing(self, collaborator: str, source: str) -> ConfigurationError:
        return ConfigurationError(
            f"No {collaborator} configured", source=source, resource=self.config.name
        )

    def _from_attribute(self) -> str:
        if self._namespace is None:
            raise self._missing("attribute namespace", "attribute")
        return _require_string(
            self._namespace.read(["ssl_cert", "content"]),
            "Cannot read SSL certificate from content key value",
            source="attribute",
            resource=self.config.name,
        )

    def _from_data_bag(self) -> str:
        if self._data_bags is None:
            raise self._missing("data bag store", "data_bag")
        c = self.config
        content = self._data_bags.fetch(c.bag, c.item, c.item_key, c.encrypted, c.secret_file)
        return _require_string(
            content,
            f"Cannot read SSL certificate from data bag: {c.bag}.{c.item}->{c.item_key}",
            source="data_bag",
            resource=c.name,
        )

    def _from_chef_vault(self) -> str:
        if self._vault is None:
            raise self._missing("chef-vault store", "chef_vault")
        c = self.config
        return _require_string(
            self._vault.fetch(c.bag, c.item, c.item_key),
            f"Cannot read SSL certificate from chef-vault: {c.bag}.{c.item}->{c.item_key}",
            source="chef_vault",
            resource=c.name,
        )

    def _read_cert(self, source: str) -> str | None:
        try:
            return self._reader.read(self.config.cert_path)
        except OSError as error:
            raise SourceUnavailable(
                f"Cannot read SSL certificate from path: {self.config.cert_path}",
                source=source,
                resource=self.config.name,
                cause=error,
            ) from error

    def _from_file(self) -> str:
        content = self._read_cert("file")
        if not isinstance(content, str) or not content.strip():
            raise SourceUnavailable(
                f"Cannot read SSL certificate from path: {self.config.cert_path}",
                source="file",
                resource=self.config.name,
            )
        return content

    def _from_self_signed(self) -> str:
        return self._verify_or_issue(None)

    def _from_with_ca(self) -> str:
        return self._verify_or_issue(
            load_ca_materials(self._reader, self.config.ca_cert_path, self.config.ca_key_path)
        )

    def _verify_or_issue(self, ca: IssuerMaterials | None) -> str:
        if self._key_provider is None:
            raise self._missing("key provider", "self_signed" if ca is None else "with_ca")
        c = self.config
        key = self._key_provider.get_key(c.key_name)
        content = self._read_cert("self_signed" if ca is None else "with_ca")
        if content is not None and self._verifier.verify(
            key,
            CertificateCandidate(pem=content),
            c.subject,
            None if ca is None else ca.issuer_candidate,
        ):
            return content

        if ca is None:
            logger.debug("Generating new self-signed certificate: %s.", c.name)
        else:
            logger.debug("Generating new certificate: %s from the given CA.", c.name)
        validity = ValidityWindow.starting(self._now(), c.validity_seconds)
        content = self._issuer.issue(key, c.subject, validity, ca)
        self.change_sink()
        return content
