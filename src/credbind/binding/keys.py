"""
Platform Key Material

Describes which signing key the process can use for its binding certificate:
an elliptic-curve key held by a platform key container, or none (in which
case an ephemeral RSA key is generated). Keys handed out by a container never
expose their private bytes; only signing operations are available.
"""

from __future__ import annotations

import abc
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Optional

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec

from credbind.exceptions import KeyContainerError

if TYPE_CHECKING:
    from credbind.config import ApplicationConfig

logger = logging.getLogger(__name__)


class KeyKind(str, Enum):
    """Algorithm family used for the binding certificate."""

    ELLIPTIC_CURVE = "elliptic_curve"
    RSA = "rsa"


class PlatformKeyHandle(abc.ABC):
    """Handle to a non-exportable elliptic-curve key living in a key container.

    Implementations sign on behalf of the caller; the private key itself is
    never returned.
    """

    @property
    @abc.abstractmethod
    def unique_name(self) -> str:
        """Container-wide unique identifier of the key."""

    @abc.abstractmethod
    def public_key(self) -> ec.EllipticCurvePublicKey:
        """Return the public half of the key."""

    @abc.abstractmethod
    def sign(self, data: bytes) -> bytes:
        """Sign *data* with ECDSA over SHA-256.

        Returns:
            DER-encoded ECDSA signature.
        """

    @abc.abstractmethod
    def sign_certificate(self, builder: x509.CertificateBuilder) -> x509.Certificate:
        """Sign a certificate builder with the contained key (ECDSA, SHA-256)."""


class KeyContainer(abc.ABC):
    """Abstract platform key container.

    Example:
        >>> container = SoftwareKeyContainer()
        >>> handle = container.get_or_create_key("binding-key")
        >>> handle.unique_name
        'binding-key'
    """

    @abc.abstractmethod
    def open_key(self, name: str) -> PlatformKeyHandle:
        """Open an existing key.

        Raises:
            KeyContainerError: If no key named ``name`` exists.
        """

    @abc.abstractmethod
    def create_key(self, name: str) -> PlatformKeyHandle:
        """Create a new P-256 key.

        Raises:
            KeyContainerError: If a key named ``name`` already exists.
        """

    @abc.abstractmethod
    def delete_key(self, name: str) -> None:
        """Delete a key.

        Raises:
            KeyContainerError: If no key named ``name`` exists.
        """

    def get_or_create_key(self, name: str) -> PlatformKeyHandle:
        """Open ``name``, creating it first if the container does not hold it."""
        try:
            return self.open_key(name)
        except KeyContainerError:
            return self.create_key(name)


class _SoftwareKeyHandle(PlatformKeyHandle):
    __slots__ = ("_name", "_key")

    def __init__(self, name: str, key: ec.EllipticCurvePrivateKey) -> None:
        self._name = name
        self._key = key

    @property
    def unique_name(self) -> str:
        return self._name

    def public_key(self) -> ec.EllipticCurvePublicKey:
        return self._key.public_key()

    def sign(self, data: bytes) -> bytes:
        signature = self._key.sign(data, ec.ECDSA(hashes.SHA256()))
        logger.debug("Signed %d bytes with platform key %s", len(data), self._name)
        return signature

    def sign_certificate(self, builder: x509.CertificateBuilder) -> x509.Certificate:
        return builder.sign(self._key, hashes.SHA256())

    def __repr__(self) -> str:
        return f"<PlatformKeyHandle name={self._name!r}>"


class SoftwareKeyContainer(KeyContainer):
    """In-memory key container (default backend).

    Keys are generated and held in process memory using the ``cryptography``
    library and are only reachable through their handles. Suitable for
    development, testing, and hosts without a hardware-backed store.
    """

    def __init__(self) -> None:
        self._keys: dict[str, _SoftwareKeyHandle] = {}

    def open_key(self, name: str) -> PlatformKeyHandle:
        if name not in self._keys:
            raise KeyContainerError(f"No key found with name: {name}")
        return self._keys[name]

    def create_key(self, name: str) -> PlatformKeyHandle:
        if name in self._keys:
            raise KeyContainerError(f"Key already exists: {name}")

        handle = _SoftwareKeyHandle(name, ec.generate_private_key(ec.SECP256R1()))
        self._keys[name] = handle
        logger.info("Created software platform key %s", name)
        return handle

    def delete_key(self, name: str) -> None:
        if name not in self._keys:
            raise KeyContainerError(f"No key found with name: {name}")

        del self._keys[name]
        logger.info("Deleted software platform key %s", name)


@dataclass(frozen=True)
class KeyMaterialInfo:
    """Key material available to the process.

    The key path is chosen once, at construction: an elliptic-curve handle
    selects :attr:`KeyKind.ELLIPTIC_CURVE`, its absence selects :attr:`KeyKind.RSA`.
    """

    has_client_capabilities: bool
    elliptic_curve_key: Optional[PlatformKeyHandle] = None
    kind: KeyKind = field(init=False)

    def __post_init__(self) -> None:
        kind = KeyKind.ELLIPTIC_CURVE if self.elliptic_curve_key is not None else KeyKind.RSA
        object.__setattr__(self, "kind", kind)

    @classmethod
    def discover(
        cls,
        config: ApplicationConfig,
        key_container: Optional[KeyContainer] = None,
    ) -> KeyMaterialInfo:
        """Build key material info from the application config and key container.

        A container that cannot provide the configured binding key is logged
        and treated as absent.
        """
        has_capabilities = bool(config.client_capabilities)
        if key_container is None:
            return cls(has_client_capabilities=has_capabilities)

        try:
            handle = key_container.get_or_create_key(config.binding_key_name)
        except KeyContainerError as e:
            logger.info("Platform key unavailable, falling back to RSA: %s", e)
            return cls(has_client_capabilities=has_capabilities)

        return cls(has_client_capabilities=has_capabilities, elliptic_curve_key=handle)
