from __future__ import annotations

import json

import pytest
from cryptography.hazmat.primitives import serialization

from conftest import UnreadableReader, make_ca

from ssl_certificate.errors import CaMaterialError, ConfigurationError, IssuanceError, SourceUnavailable
from ssl_certificate.stores import FileKeyProvider, FilePathReader, LocalDataBagStore, load_ca_materials


def test_path_reader_returns_none_for_missing_file(tmp_path) -> None:
    reader = FilePathReader()
    target = tmp_path / "cert.pem"
    assert reader.read(str(target)) is None
    target.write_text("PEM", encoding="utf-8")
    assert reader.read(str(target)) == "PEM"


def test_file_key_provider_loads_named_key(tmp_path, key) -> None:
    (tmp_path / "web.key").write_text(key.pem, encoding="utf-8")
    loaded = FileKeyProvider(str(tmp_path)).get_key("web.key")
    assert loaded.public_key_der() == key.public_key_der()


def test_file_key_provider_supports_encrypted_keys(tmp_path, key) -> None:
    encrypted = key.private_key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.BestAvailableEncryption(b"s3cret"),
    ).decode("ascii")
    (tmp_path / "web.key").write_text(encrypted, encoding="utf-8")

    loaded = FileKeyProvider(str(tmp_path), password=b"s3cret").get_key("web.key")
    assert loaded.public_key_der() == key.public_key_der()


def test_file_key_provider_errors(tmp_path) -> None:
    provider = FileKeyProvider(str(tmp_path))
    with pytest.raises(ConfigurationError):
        provider.get_key("missing.key")

    (tmp_path / "bad.key").write_text("not a key", encoding="utf-8")
    with pytest.raises(IssuanceError):
        provider.get_key("bad.key")


def test_local_data_bag_store(tmp_path) -> None:
    bag_dir = tmp_path / "ssl"
    bag_dir.mkdir()
    (bag_dir / "web.json").write_text(json.dumps({"id": "web", "cert": "PEM"}), encoding="utf-8")
    store = LocalDataBagStore(str(tmp_path))

    assert store.fetch("ssl", "web", "cert") == "PEM"
    assert store.fetch("ssl", "web", "missing") is None
    assert store.fetch("ssl", "web") == {"id": "web", "cert": "PEM"}
    assert store.fetch("ssl", "other", "cert") is None


def test_local_data_bag_store_errors(tmp_path) -> None:
    store = LocalDataBagStore(str(tmp_path))
    with pytest.raises(ConfigurationError):
        store.fetch(None, "web", "cert")
    with pytest.raises(ConfigurationError):
        store.fetch("ssl", "web", "cert", encrypted=True)

    (tmp_path / "ssl").mkdir()
    (tmp_path / "ssl" / "web.json").write_text("{broken", encoding="utf-8")
    with pytest.raises(SourceUnavailable):
        store.fetch("ssl", "web", "cert")


def test_load_ca_materials(tmp_path) -> None:
    ca = make_ca()
    ca_key_pem = ca.ca_key.private_bytes(
        serialization.Encoding.PEM, serialization.PrivateFormat.PKCS8, serialization.NoEncryption()
    ).decode("ascii")
    (tmp_path / "ca.pem").write_text(ca.ca_cert_pem, encoding="utf-8")
    (tmp_path / "ca.key").write_text(ca_key_pem, encoding="utf-8")
    reader = FilePathReader()

    loaded = load_ca_materials(reader, str(tmp_path / "ca.pem"), str(tmp_path / "ca.key"))
    assert loaded.ca_cert_pem == ca.ca_cert_pem

    with pytest.raises(CaMaterialError):
        load_ca_materials(reader, None, str(tmp_path / "ca.key"))
    with pytest.raises(CaMaterialError):
        load_ca_materials(reader, str(tmp_path / "ca.pem"), str(tmp_path / "missing.key"))
    with pytest.raises(CaMaterialError):
        load_ca_materials(reader, str(tmp_path / "ca.pem"), str(tmp_path / "ca.pem"))


def test_path_reader_replaces_undecodable_bytes(tmp_path) -> None:
    target = tmp_path / "cert.der"
    target.write_bytes(b"\x30\x82\xff\xfe")
    content = FilePathReader().read(str(target))
    assert isinstance(content, str)
    assert "�" in content


def test_unreadable_files_raise_domain_errors() -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        FileKeyProvider("/keys", reader=UnreadableReader()).get_key("web.key")
    assert isinstance(excinfo.value.cause, PermissionError)
    with pytest.raises(CaMaterialError) as excinfo:
        load_ca_materials(UnreadableReader(), "/ca/ca.pem", "/ca/ca.key")
    assert isinstance(excinfo.value.cause, PermissionError)


def test_binary_ca_certificate_is_ca_material_error(tmp_path) -> None:
    ca = make_ca()
    (tmp_path / "ca.pem").write_bytes(b"\x30\x82\xff\xfe binary DER")
    (tmp_path / "ca.key").write_text(
        ca.ca_key.private_bytes(
            serialization.Encoding.PEM, serialization.PrivateFormat.PKCS8, serialization.NoEncryption()
        ).decode("utf-8"),
        encoding="utf-8",
    )
    with pytest.raises(CaMaterialError):
        load_ca_materials(FilePathReader(), str(tmp_path / "ca.pem"), str(tmp_path / "ca.key"))
