"""Error taxonomy for certificate resolution."""

from __future__ import annotations


class SslCertificateError(ValueError):
    """Base error; carries the source, resource and underlying cause."""

    def __init__(
        self,
        message: str,
        *,
        source: str | None = None,
        resource: str | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.source = source
        self.resource = resource
        self.cause = cause

    def __str__(self) -> str:
        context = []
        if self.resource:
            context.append(f"resource={self.resource}")
        if self.source:
            context.append(f"source={self.source}")
        if self.cause is not None:
            context.append(f"cause={self.cause}")
        if not context:
            return self.message
        return f"{self.message} ({', '.join(context)})"


class ConfigurationError(SslCertificateError):
    """A required attribute is missing or the source is unknown."""


class SourceUnavailable(SslCertificateError):
    """Passive source content is absent or not a string."""


class IssuanceError(SslCertificateError):
    """Key material or signing failed while generating a certificate."""


class CaMaterialError(SslCertificateError):
    """CA certificate or key is unreadable or invalid."""
