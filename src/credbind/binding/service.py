"""
Credential Binding Service

Creates the per-process binding certificate and renders it into the
credential payload understood by the credential endpoint.

Two strategies exist, chosen by :class:`~credbind.binding.keys.KeyMaterialInfo`:

- Elliptic curve: the certificate is signed by a platform key. Only the
  public certificate is exported; private operations stay bound to the
  original key handle.
- RSA: an ephemeral RSA key is generated in memory and shipped, together with
  the certificate, as a PKCS#12 bundle.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.types import PublicKeyTypes

from credbind.binding.cache import CertificateCache
from credbind.binding.certificate import BindingCertificate, common_name, validity_window
from credbind.binding.keys import KeyKind, KeyMaterialInfo
from credbind.exceptions import CryptographicError, KeyContainerError

if TYPE_CHECKING:
    from credbind.context import RequestContext

logger = logging.getLogger(__name__)

RSA_CERTIFICATE_SUBJECT = "CredbindInMemoryCertificate"
RSA_KEY_SIZE = 2048

_CRYPTO_FAILURES = (ValueError, TypeError, UnsupportedAlgorithm, KeyContainerError)


class CredentialBindingService:
    """Provides the binding certificate for a process.

    Use :meth:`get_credential_info` rather than the constructor so that every
    caller sharing a binding context shares one instance and one certificate.

    Args:
        request_context: Context of the request that first needed binding.
        key_material_info: Key material to use; discovered from the service
            bundle when omitted.
        certificate_cache: Cache to hold the certificate; defaults to the
            binding context's cache.
    """

    def __init__(
        self,
        request_context: RequestContext,
        key_material_info: Optional[KeyMaterialInfo] = None,
        certificate_cache: Optional[CertificateCache] = None,
    ) -> None:
        bundle = request_context.service_bundle
        self._key_material_info = key_material_info or KeyMaterialInfo.discover(
            bundle.config, bundle.key_container
        )
        self._certificate_cache = certificate_cache or bundle.binding_context.certificate_cache

    @classmethod
    def get_credential_info(cls, request_context: RequestContext) -> CredentialBindingService:
        """Return the binding service of the request's binding context.

        The first caller constructs it; concurrent first callers block until
        that single construction completes.
        """
        binding_context = request_context.service_bundle.binding_context
        return binding_context.service.get_or_init(
            lambda: cls(request_context, certificate_cache=binding_context.certificate_cache)
        )

    @property
    def key_material_info(self) -> KeyMaterialInfo:
        return self._key_material_info

    @property
    def binding_certificate(self) -> BindingCertificate:
        return self.get_binding_certificate()

    def get_binding_certificate(
        self,
        key_material_info: Optional[KeyMaterialInfo] = None,
        request_logger: Optional[logging.LoggerAdapter] = None,
    ) -> BindingCertificate:
        """Return the cached binding certificate, creating it on first use.

        ``request_logger`` is the logger of the request asking for the
        certificate; the module logger is used without one.

        Raises:
            CryptographicError: If the certificate cannot be created. Nothing is
                cached and no retry is attempted.
        """
        log = request_logger or logger
        cached = self._certificate_cache.certificate
        if cached is not None:
            log.debug("A cached binding certificate was available.")
            return cached

        info = key_material_info or self._key_material_info
        return self._certificate_cache.get_or_add(lambda: self._create_certificate(info, log))

    def _create_certificate(self, key_material_info: KeyMaterialInfo, log) -> BindingCertificate:
        if key_material_info.kind is KeyKind.ELLIPTIC_CURVE:
            return self._create_elliptic_curve_certificate(key_material_info, log)
        return self._create_rsa_certificate(log)

    def _create_elliptic_curve_certificate(
        self, key_material_info: KeyMaterialInfo, log
    ) -> BindingCertificate:
        handle = key_material_info.elliptic_curve_key
        log.debug("Creating binding certificate with platform key for credential endpoint.")
        try:
            builder = self._certificate_builder(handle.unique_name, handle.public_key(), log)
            self_signed = handle.sign_certificate(builder)

            # Only the public part leaves the key container.
            public_der = self_signed.public_bytes(serialization.Encoding.DER)
            public_only = x509.load_der_x509_certificate(public_der)
            log.debug("Associating private key with the binding certificate.")
            certificate = BindingCertificate(public_only, key_handle=handle)
        except _CRYPTO_FAILURES as e:
            log.error("Error generating binding certificate: %s", e)
            raise CryptographicError(f"Error generating binding certificate: {e}") from e

        log.debug("Binding certificate (with platform key) created successfully.")
        return certificate

    def _create_rsa_certificate(self, log) -> BindingCertificate:
        log.debug("Creating binding certificate with RSA key for credential endpoint.")
        try:
            rsa_key = rsa.generate_private_key(public_exponent=65537, key_size=RSA_KEY_SIZE)
            builder = self._certificate_builder(RSA_CERTIFICATE_SUBJECT, rsa_key.public_key(), log)
            # RSA signing through CertificateBuilder uses PKCS#1 v1.5 padding.
            self_signed = builder.sign(rsa_key, hashes.SHA256())

            bundle = BindingCertificate(self_signed, private_key=rsa_key).export_pkcs12()
            certificate = BindingCertificate.from_pkcs12(bundle)
        except _CRYPTO_FAILURES as e:
            log.error("Error generating binding certificate: %s", e)
            raise CryptographicError(f"Error generating binding certificate: {e}") from e

        log.debug("Binding certificate (with rsa key) created successfully.")
        return certificate

    def _certificate_builder(
        self, subject_name: str, public_key: PublicKeyTypes, log
    ) -> x509.CertificateBuilder:
        log.debug("Creating certificate request for the binding certificate.")
        not_before, not_after = validity_window(datetime.now(timezone.utc))
        subject = common_name(subject_name)
        return (
            x509.CertificateBuilder()
            .subject_name(subject)
            .issuer_name(subject)
            .public_key(public_key)
            .serial_number(x509.random_serial_number())
            .not_valid_before(not_before)
            .not_valid_after(not_after)
        )

    @staticmethod
    def create_credential_payload(certificate: BindingCertificate) -> str:
        """Render the credential endpoint payload for ``certificate``.

        The document layout is fixed by the credential endpoint.
        """
        payload = {
            "cnf": {
                "jwk": {
                    "kty": "RSA",
                    "use": "sig",
                    "alg": "RS256",
                    "kid": certificate.thumbprint,
                    "x5c": [certificate.public_der_base64],
                }
            },
            "latch_key": False,
        }
        return json.dumps(payload)

