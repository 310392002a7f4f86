"""One-call certificate resource action: resolve content and write it when changed."""

from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Callable

from ssl_certificate.sources import SourceResolver, normalize_source
from ssl_certificate.stores import FilePathReader
from ssl_certificate.types import (
    CertConfig,
    CertificateResult,
    ChangeFlag,
    KeyProvider,
    Namespace,
    PathReader,
    SecretStore,
)

logger = logging.getLogger(__name__)

CERT_FILE_MODE = 0o644


def write_certificate(path: str, content: str) -> None:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content, encoding="utf-8")
    os.chmod(target, CERT_FILE_MODE)


def manage_certificate(
    config: CertConfig,
    *,
    key_provider: KeyProvider | None = None,
    namespace: Namespace | None = None,
    path_reader: PathReader | None = None,
    data_bags: SecretStore | None = None,
    vault: SecretStore | None = None,
    content: str | None = None,
    now: Callable[[], datetime] | None = None,
) -> CertificateResult:
    reader = path_reader or FilePathReader()
    source = normalize_source(config.source)
    flag = ChangeFlag()

    if content is None:
        resolver = SourceResolver(
            config,
            key_provider=key_provider,
            namespace=namespace,
            path_reader=reader,
            data_bags=data_bags,
            vault=vault,
            change_sink=flag,
            now=now,
        )
        content = resolver.resolve(source)
        # the file source already lives at cert_path
        if source == "file":
            return CertificateResult(content=content, changed=False, source=source, cert_path=config.cert_path)

    if flag.changed or reader.read(config.cert_path) != content:
        write_certificate(config.cert_path, content)
        logger.info("Wrote SSL certificate %s to %s", config.name, config.cert_path)
        return CertificateResult(content=content, changed=True, source=source, cert_path=config.cert_path)

    return CertificateResult(content=content, changed=False, source=source, cert_path=config.cert_path)
