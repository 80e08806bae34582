"""
Credential binding.

Lazily generated, process-wide binding certificate used to prove possession
of a key when requesting tokens:
- Platform elliptic-curve keys that never leave their container
- Exportable in-memory RSA fallback
- Credential endpoint payload rendering
"""

from .keys import KeyKind, KeyMaterialInfo, KeyContainer, PlatformKeyHandle, SoftwareKeyContainer
from .certificate import BindingCertificate, CERTIFICATE_VALIDITY_YEARS, add_years
from .cache import BindingContext, CertificateCache, LazyValue
from .service import CredentialBindingService

__all__ = [
    "KeyKind",
    "KeyMaterialInfo",
    "KeyContainer",
    "PlatformKeyHandle",
    "SoftwareKeyContainer",
    "BindingCertificate",
    "CERTIFICATE_VALIDITY_YEARS",
    "add_years",
    "BindingContext",
    "CertificateCache",
    "LazyValue",
    "CredentialBindingService",
]
