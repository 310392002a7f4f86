"""ssl-certificate CLI."""

from __future__ import annotations

import argparse
import json
import logging
import sys

from ssl_certificate.attributes import ConfigNamespace, resolve_cert_config
from ssl_certificate.errors import SslCertificateError
from ssl_certificate.resource import manage_certificate
from ssl_certificate.stores import FileKeyProvider, FilePathReader, LocalDataBagStore
from ssl_certificate.types import CertificateCandidate, KeyMaterial, SubjectSpec
from ssl_certificate.verify import CertificateVerifier


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ssl-certificate", description="SSL certificate manager")
    parser.add_argument("-v", "--verbose", action="store_true")
    subparsers = parser.add_subparsers(dest="command", required=True)

    resolve_parser = subparsers.add_parser("resolve", help="Resolve and write a certificate")
    resolve_parser.add_argument("name")
    resolve_parser.add_argument("--source", default=None)
    resolve_parser.add_argument("--cert-dir", default=None)
    resolve_parser.add_argument("--cert-path", default=None)
    resolve_parser.add_argument("--key-dir", default=None)
    resolve_parser.add_argument("--key-name", default=None)
    resolve_parser.add_argument("--common-name", default=None)
    resolve_parser.add_argument("--san", action="append", default=None)
    resolve_parser.add_argument("--ca-cert", default=None)
    resolve_parser.add_argument("--ca-key", default=None)
    resolve_parser.add_argument("--attributes", default=None)
    resolve_parser.add_argument("--namespace", default=None)
    resolve_parser.add_argument("--data-bag-dir", default=None)
    resolve_parser.add_argument("--json", action="store_true")

    verify_parser = subparsers.add_parser("verify", help="Check a certificate against a key and subject")
    verify_parser.add_argument("cert")
    verify_parser.add_argument("--key", required=True)
    verify_parser.add_argument("--common-name", required=True)
    verify_parser.add_argument("--san", action="append", default=[])
    verify_parser.add_argument("--ca-cert", default=None)
    verify_parser.add_argument("--json", action="store_true")

    return parser


def _resolve(args: argparse.Namespace) -> int:
    namespace = (
        ConfigNamespace.from_json_file(args.attributes, args.namespace)
        if args.attributes
        else ConfigNamespace()
    )
    config = resolve_cert_config(
        args.name,
        namespace,
        source=args.source,
        cert_dir=args.cert_dir,
        cert_path=args.cert_path,
        key_name=args.key_name,
        common_name=args.common_name,
        subject_alternate_names=args.san,
        ca_cert_path=args.ca_cert,
        ca_key_path=args.ca_key,
    )
    result = manage_certificate(
        config,
        key_provider=FileKeyProvider(args.key_dir or config.cert_dir),
        namespace=namespace,
        data_bags=LocalDataBagStore(args.data_bag_dir) if args.data_bag_dir else None,
    )
    if args.json:
        print(
            json.dumps(
                {
                    "command": "resolve",
                    "name": config.name,
                    "source": result.source,
                    "changed": result.changed,
                    "cert_path": result.cert_path,
                },
                sort_keys=True,
            )
        )
        return 0
    print("Updated SSL certificate" if result.changed else "SSL certificate up to date")
    print(f"name: {config.name}")
    print(f"source: {result.source}")
    print(f"certPath: {result.cert_path}")
    return 0


def _verify(args: argparse.Namespace) -> int:
    reader = FilePathReader()
    key_pem = reader.read(args.key)
    if key_pem is None:
        raise SslCertificateError(f"Cannot read SSL key from path: {args.key}")
    issuer = None
    if args.ca_cert:
        ca_pem = reader.read(args.ca_cert)
        if ca_pem is None:
            raise SslCertificateError(f"Cannot read CA certificate from path: {args.ca_cert}")
        issuer = CertificateCandidate(pem=ca_pem)

    valid = CertificateVerifier().verify(
        KeyMaterial.from_pem(key_pem),
        CertificateCandidate(pem=reader.read(args.cert)),
        SubjectSpec(common_name=args.common_name, alternate_names=tuple(args.san)),
        issuer,
    )
    if args.json:
        print(json.dumps({"command": "verify", "cert": args.cert, "valid": valid}, sort_keys=True))
    else:
        print("valid" if valid else "invalid")
    return 0 if valid else 1


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    try:
        if args.command == "resolve":
            return _resolve(args)
        if args.command == "verify":
            return _verify(args)
    except SslCertificateError as error:
        print(f"error: {error}", file=sys.stderr)
        return 2

    parser.print_help()
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
