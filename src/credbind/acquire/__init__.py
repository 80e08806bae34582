"""Token request parameters, builders and executor."""

from .parameters import (
    ApiId,
    AuthenticationScheme,
    BearerAuthenticationScheme,
    PopAuthenticationConfiguration,
    PopAuthenticationScheme,
    TokenRequestCommonParameters,
)

__all__ = [
    "ApiId",
    "AuthenticationScheme",
    "BearerAuthenticationScheme",
    "PopAuthenticationConfiguration",
    "PopAuthenticationScheme",
    "TokenRequestCommonParameters",
]
