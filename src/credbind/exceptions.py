# Copyright (c) Credbind Contributors. All rights reserved.
# Licensed under the MIT License.
"""Centralized exception hierarchy for credbind.

All credbind exceptions inherit from CredbindError, enabling
consistent error handling across builders, grants and the binding core.
"""

from typing import Optional


class CredbindError(Exception):
    """Base exception for all credbind errors."""

    def __init__(self, message: str = "", error_code: Optional[str] = None) -> None:
        super().__init__(message)
        self.error_code = error_code


class ArgumentError(CredbindError, ValueError):
    """A required argument was missing or invalid."""


class ConfigurationError(CredbindError):
    """The client application or request is misconfigured."""


class UnsupportedPlatformError(ConfigurationError):
    """Confidential client flows are not available on this runtime."""


class CryptographicError(CredbindError):
    """Errors raised while creating or using binding key material."""


class KeyContainerError(CryptographicError):
    """The platform key container could not open or create a key."""


class ProtocolError(CredbindError):
    """The token endpoint answered with an OAuth2 error."""

    def __init__(
        self,
        message: str = "",
        error_code: Optional[str] = None,
        error_description: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message, error_code)
        self.error_description = error_description
        self.status_code = status_code

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.error_code:
            parts.append(f"[{self.error_code}]")
        if self.error_description:
            parts.append(f": {self.error_description}")
        return " ".join(parts)


class TokenCacheError(CredbindError):
    """Errors related to token cache storage."""


# Error codes
CLIENT_CREDENTIAL_AUTHENTICATION_TYPE_MUST_BE_DEFINED = (
    "client_credential_authentication_type_must_be_defined"
)
EXPERIMENTAL_FEATURE = "experimental_feature"
PLATFORM_NOT_SUPPORTED = "platform_not_supported"
INVALID_CONFIGURATION = "invalid_configuration"


__all__ = [
    "CredbindError",
    "ArgumentError",
    "ConfigurationError",
    "UnsupportedPlatformError",
    "CryptographicError",
    "KeyContainerError",
    "ProtocolError",
    "TokenCacheError",
    "CLIENT_CREDENTIAL_AUTHENTICATION_TYPE_MUST_BE_DEFINED",
    "EXPERIMENTAL_FEATURE",
    "PLATFORM_NOT_SUPPORTED",
    "INVALID_CONFIGURATION",
]
