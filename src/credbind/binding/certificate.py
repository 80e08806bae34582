"""
Binding Certificate

Self-signed X.509 certificate used to prove possession of a key when
requesting tokens, together with the key it is bound to. Certificates created
from a platform key keep their private operations inside the key container;
certificates created from an in-memory RSA key can be exported as PKCS#12.
"""

from __future__ import annotations

import base64
from datetime import datetime
from typing import Optional

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.hazmat.primitives.serialization import pkcs12
from cryptography.x509.oid import NameOID

from credbind.binding.keys import KeyKind, PlatformKeyHandle
from credbind.exceptions import CryptographicError

CERTIFICATE_VALIDITY_YEARS = 2


def add_years(moment: datetime, years: int) -> datetime:
    """Add calendar years, mapping February 29 to February 28 when needed."""
    try:
        return moment.replace(year=moment.year + years)
    except ValueError:
        return moment.replace(year=moment.year + years, day=28)


def validity_window(start: datetime) -> tuple[datetime, datetime]:
    """Return the (not_before, not_after) pair for a certificate issued at ``start``.

    Sub-second precision is dropped because X.509 validity is encoded in
    whole seconds.
    """
    not_before = start.replace(microsecond=0)
    return not_before, add_years(not_before, CERTIFICATE_VALIDITY_YEARS)


def common_name(subject_name: str) -> x509.Name:
    return x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, subject_name)])


class BindingCertificate:
    """A generated binding certificate and the key it is bound to.

    Exactly one of ``private_key`` (RSA path) or ``key_handle``
    (elliptic-curve path) is set.

    Args:
        certificate: The public X.509 certificate.
        private_key: Exportable in-memory RSA key.
        key_handle: Non-exportable platform key handle.
    """

    def __init__(
        self,
        certificate: x509.Certificate,
        private_key: Optional[rsa.RSAPrivateKey] = None,
        key_handle: Optional[PlatformKeyHandle] = None,
    ) -> None:
        if (private_key is None) == (key_handle is None):
            raise CryptographicError(
                "A binding certificate needs exactly one of a private key or a key handle"
            )
        self._certificate = certificate
        self._private_key = private_key
        self._key_handle = key_handle

    @property
    def certificate(self) -> x509.Certificate:
        return self._certificate

    @property
    def key_kind(self) -> KeyKind:
        return KeyKind.ELLIPTIC_CURVE if self._key_handle is not None else KeyKind.RSA

    @property
    def key_handle(self) -> Optional[PlatformKeyHandle]:
        return self._key_handle

    @property
    def subject_name(self) -> str:
        attrs = self._certificate.subject.get_attributes_for_oid(NameOID.COMMON_NAME)
        return str(attrs[0].value) if attrs else ""

    @property
    def not_before(self) -> datetime:
        return self._certificate.not_valid_before_utc

    @property
    def not_after(self) -> datetime:
        return self._certificate.not_valid_after_utc

    @property
    def public_der(self) -> bytes:
        """DER encoding of the certificate, without any key material."""
        return self._certificate.public_bytes(serialization.Encoding.DER)

    @property
    def public_der_base64(self) -> str:
        return base64.b64encode(self.public_der).decode("ascii")

    @property
    def thumbprint(self) -> str:
        """Upper-case hex SHA-1 digest of the DER certificate."""
        return self._certificate.fingerprint(hashes.SHA1()).hex().upper()

    @property
    def has_exportable_private_key(self) -> bool:
        return self._private_key is not None

    def sign(self, data: bytes) -> bytes:
        """Sign *data* with the bound key.

        RSA keys sign with PKCS#1 v1.5 over SHA-256; platform keys with ECDSA
        over SHA-256 inside their container.
        """
        if self._key_handle is not None:
            return self._key_handle.sign(data)
        return self._private_key.sign(data, padding.PKCS1v15(), hashes.SHA256())

    def export_pkcs12(self, password: Optional[bytes] = None) -> bytes:
        """Export certificate and private key as a PKCS#12 bundle.

        Raises:
            CryptographicError: If the key lives in a platform key container.
        """
        if self._private_key is None:
            raise CryptographicError(
                "The binding key is held by a platform key container and cannot be exported"
            )
        encryption = (
            serialization.BestAvailableEncryption(password)
            if password
            else serialization.NoEncryption()
        )
        return pkcs12.serialize_key_and_certificates(
            name=self.subject_name.encode("utf-8"),
            key=self._private_key,
            cert=self._certificate,
            cas=None,
            encryption_algorithm=encryption,
        )

    @classmethod
    def from_pkcs12(cls, data: bytes, password: Optional[bytes] = None) -> BindingCertificate:
        """Load an RSA binding certificate from a PKCS#12 bundle.

        Raises:
            CryptographicError: If the bundle lacks an RSA key or a certificate.
        """
        try:
            key, certificate, _ = pkcs12.load_key_and_certificates(data, password)
        except ValueError as e:
            raise CryptographicError(f"Invalid PKCS#12 bundle: {e}") from e

        if certificate is None or not isinstance(key, rsa.RSAPrivateKey):
            raise CryptographicError("PKCS#12 bundle must contain an RSA key and a certificate")
        return cls(certificate, private_key=key)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BindingCertificate):
            return NotImplemented
        return self.thumbprint == other.thumbprint

    def __hash__(self) -> int:
        return hash(self.thumbprint)

    def __repr__(self) -> str:
        return (
            f"<BindingCertificate subject={self.subject_name!r} "
            f"kind={self.key_kind.value} thumbprint={self.thumbprint}>"
        )
