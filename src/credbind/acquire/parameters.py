"""
Token request parameters and authentication schemes.
"""

from __future__ import annotations

import abc
import base64
import json
from dataclasses import dataclass, field
from enum import IntEnum
from typing import TYPE_CHECKING, Awaitable, Callable, Optional

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from credbind.binding.certificate import BindingCertificate
    from credbind.context import RequestContext, ServiceBundle
    from credbind.transport import TokenEndpointRequest


class ApiId(IntEnum):
    """Identifies which public API started a token request."""

    NONE = 0
    ACQUIRE_TOKEN_BY_AUTHORIZATION_CODE = 1000
    ACQUIRE_TOKEN_FOR_CLIENT = 1004


class AuthenticationScheme(abc.ABC):
    """How an access token is requested and presented."""

    authorization_header_prefix: str = "Bearer"
    access_token_type: str = "Bearer"

    @property
    def binds_to_certificate(self) -> bool:
        """Whether requests need the process binding certificate."""
        return False

    @abc.abstractmethod
    def token_request_parameters(self, request_context: RequestContext) -> dict[str, str]:
        """Extra body parameters for the token request."""


class BearerAuthenticationScheme(AuthenticationScheme):
    def token_request_parameters(self, request_context: RequestContext) -> dict[str, str]:
        return {}


class PopAuthenticationConfiguration(BaseModel):
    """Properties of the HTTP request a Proof-of-Possession token is bound to.

    Attributes:
        request_uri: URI of the protected resource request.
        http_method: HTTP method of the protected resource request.
        nonce: Server-provided nonce, if any.
    """

    request_uri: Optional[str] = Field(None, description="Protected resource URI")
    http_method: Optional[str] = Field(None, description="Protected resource HTTP method")
    nonce: Optional[str] = None


class PopAuthenticationScheme(AuthenticationScheme):
    """Requests tokens bound to the process binding certificate.

    The token request carries ``token_type=pop`` and a ``req_cnf`` naming the
    binding certificate's thumbprint as key id.
    """

    authorization_header_prefix = "PoP"
    access_token_type = "pop"

    def __init__(
        self,
        configuration: PopAuthenticationConfiguration,
        service_bundle: ServiceBundle,
    ) -> None:
        self.configuration = configuration
        self.service_bundle = service_bundle

    @property
    def binds_to_certificate(self) -> bool:
        return True

    def binding_certificate(self, request_context: RequestContext) -> BindingCertificate:
        from credbind.binding.service import CredentialBindingService

        service = CredentialBindingService.get_credential_info(request_context)
        return service.get_binding_certificate(request_logger=request_context.logger)

    def key_id(self, request_context: RequestContext) -> str:
        return self.binding_certificate(request_context).thumbprint

    def token_request_parameters(self, request_context: RequestContext) -> dict[str, str]:
        req_cnf = json.dumps({"kid": self.key_id(request_context)}).encode("utf-8")
        return {
            "token_type": self.access_token_type,
            "req_cnf": base64.urlsafe_b64encode(req_cnf).rstrip(b"=").decode("ascii"),
        }


OnBeforeTokenRequest = Callable[["TokenEndpointRequest"], Awaitable[None]]


@dataclass
class TokenRequestCommonParameters:
    """Parameters shared by every kind of token request."""

    scopes: Optional[frozenset[str]] = None
    correlation_id: Optional[str] = None
    api_id: ApiId = ApiId.NONE
    authentication_scheme: AuthenticationScheme = field(default_factory=BearerAuthenticationScheme)
    pop_configuration: Optional[PopAuthenticationConfiguration] = None
    mtls_certificate: Optional[BindingCertificate] = None
    on_before_token_request: Optional[OnBeforeTokenRequest] = None
    extra_query_parameters: dict[str, str] = field(default_factory=dict)
