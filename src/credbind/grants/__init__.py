"""
OAuth2 grants.

Each handler turns one token request into token endpoint parameters, sends
it through the configured transport and decides whether to cache the result.
"""

from .base import Authenticator, TokenRequestHandlerBase, TokenSubjectType
from .authorization_code import AuthorizationCodeGrantHandler
from .client_credentials import ClientCredentialsGrantHandler

__all__ = [
    "Authenticator",
    "TokenRequestHandlerBase",
    "TokenSubjectType",
    "AuthorizationCodeGrantHandler",
    "ClientCredentialsGrantHandler",
]
