"""Tests for platform key containers and key material discovery."""

import pytest
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec

from credbind.binding.keys import KeyContainer, KeyKind, KeyMaterialInfo, SoftwareKeyContainer
from credbind.config import ApplicationConfig
from credbind.exceptions import KeyContainerError


class FailingKeyContainer(KeyContainer):
    def open_key(self, name):
        raise KeyContainerError("locked")

    def create_key(self, name):
        raise KeyContainerError("locked")

    def delete_key(self, name):
        raise KeyContainerError("locked")


class TestSoftwareKeyContainer:
    def test_create_and_open(self):
        container = SoftwareKeyContainer()
        created = container.create_key("k1")
        assert container.open_key("k1") is created
        assert created.unique_name == "k1"

    def test_create_duplicate_fails(self):
        container = SoftwareKeyContainer()
        container.create_key("k1")
        with pytest.raises(KeyContainerError):
            container.create_key("k1")

    def test_open_missing_fails(self):
        with pytest.raises(KeyContainerError):
            SoftwareKeyContainer().open_key("missing")

    def test_delete(self):
        container = SoftwareKeyContainer()
        container.create_key("k1")
        container.delete_key("k1")
        with pytest.raises(KeyContainerError):
            container.open_key("k1")
        with pytest.raises(KeyContainerError):
            container.delete_key("k1")

    def test_get_or_create_reuses_key(self):
        container = SoftwareKeyContainer()
        first = container.get_or_create_key("k1")
        assert container.get_or_create_key("k1") is first

    def test_handle_signs_with_p256(self):
        handle = SoftwareKeyContainer().create_key("k1")
        public_key = handle.public_key()
        assert isinstance(public_key.curve, ec.SECP256R1)

        signature = handle.sign(b"payload")
        public_key.verify(signature, b"payload", ec.ECDSA(hashes.SHA256()))
        with pytest.raises(InvalidSignature):
            public_key.verify(signature, b"tampered", ec.ECDSA(hashes.SHA256()))

    def test_handle_does_not_expose_private_key(self):
        handle = SoftwareKeyContainer().create_key("k1")
        assert not hasattr(handle, "private_key")
        assert "k1" in repr(handle)


class TestKeyMaterialInfo:
    def test_kind_follows_key_presence(self):
        handle = SoftwareKeyContainer().create_key("k1")
        assert KeyMaterialInfo(False).kind is KeyKind.RSA
        assert KeyMaterialInfo(False, elliptic_curve_key=handle).kind is KeyKind.ELLIPTIC_CURVE

    def test_kind_cannot_be_changed(self):
        info = KeyMaterialInfo(False)
        with pytest.raises(AttributeError):
            info.kind = KeyKind.ELLIPTIC_CURVE

    def test_discover_without_container(self, config):
        info = KeyMaterialInfo.discover(config)
        assert info.kind is KeyKind.RSA
        assert info.elliptic_curve_key is None

    def test_discover_with_container(self, config):
        container = SoftwareKeyContainer()
        info = KeyMaterialInfo.discover(config, container)
        assert info.kind is KeyKind.ELLIPTIC_CURVE
        assert info.elliptic_curve_key.unique_name == config.binding_key_name

    def test_discover_falls_back_when_container_fails(self, config):
        info = KeyMaterialInfo.discover(config, FailingKeyContainer())
        assert info.kind is KeyKind.RSA

    def test_client_capabilities(self):
        config = ApplicationConfig(client_id="c", client_capabilities=["cp1"])
        assert KeyMaterialInfo.discover(config).has_client_capabilities is True
        assert KeyMaterialInfo.discover(ApplicationConfig(client_id="c")).has_client_capabilities is False
