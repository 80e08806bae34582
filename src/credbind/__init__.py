"""
credbind - Credential binding and confidential client token requests

- Process-wide binding certificate (platform EC key or in-memory RSA)
- Confidential client request builders with PoP and mTLS binding
- OAuth2 authorization code grant with scope-aware cache storage

Version: 0.1.0
"""

__version__ = "0.1.0"

from .exceptions import (
    CredbindError,
    ArgumentError,
    ConfigurationError,
    UnsupportedPlatformError,
    CryptographicError,
    KeyContainerError,
    ProtocolError,
    TokenCacheError,
)
from .config import ApplicationConfig, AppTokenProviderParameters, load_config
from .credentials import ClientAssertion, ClientKey, ClientSecret
from .binding import (
    BindingCertificate,
    BindingContext,
    CredentialBindingService,
    KeyKind,
    KeyMaterialInfo,
    SoftwareKeyContainer,
)
from .context import RequestContext, ServiceBundle
from .results import AuthenticationResult, AuthenticationResultEx, UserInfo
from .cache import InMemoryTokenCache, TokenCache, TokenCacheKey
from .transport import TokenEndpointClient, TokenEndpointRequest
from .grants import AuthorizationCodeGrantHandler, ClientCredentialsGrantHandler
from .acquire import PopAuthenticationConfiguration
from .acquire.builder import (
    AbstractConfidentialClientAcquireTokenParameterBuilder,
    AcquireTokenByAuthorizationCodeParameterBuilder,
    AcquireTokenForClientParameterBuilder,
)
from .application import ConfidentialClientApplication

__all__ = [
    "__version__",
    "CredbindError",
    "ArgumentError",
    "ConfigurationError",
    "UnsupportedPlatformError",
    "CryptographicError",
    "KeyContainerError",
    "ProtocolError",
    "TokenCacheError",
    "ApplicationConfig",
    "AppTokenProviderParameters",
    "load_config",
    "ClientAssertion",
    "ClientKey",
    "ClientSecret",
    "BindingCertificate",
    "BindingContext",
    "CredentialBindingService",
    "KeyKind",
    "KeyMaterialInfo",
    "SoftwareKeyContainer",
    "RequestContext",
    "ServiceBundle",
    "AuthenticationResult",
    "AuthenticationResultEx",
    "UserInfo",
    "InMemoryTokenCache",
    "TokenCache",
    "TokenCacheKey",
    "TokenEndpointClient",
    "TokenEndpointRequest",
    "AuthorizationCodeGrantHandler",
    "ClientCredentialsGrantHandler",
    "PopAuthenticationConfiguration",
    "AbstractConfidentialClientAcquireTokenParameterBuilder",
    "AcquireTokenByAuthorizationCodeParameterBuilder",
    "AcquireTokenForClientParameterBuilder",
    "ConfidentialClientApplication",
]
