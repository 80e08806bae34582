"""
Token request pipeline shared by all grants.

A handler is created for one request, runs once, and is not shared between
tasks.
"""

from __future__ import annotations

import abc
import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Optional

from credbind.acquire.parameters import TokenRequestCommonParameters
from credbind.cache import TokenCache, TokenCacheKey
from credbind.credentials import ClientKey
from credbind.exceptions import ConfigurationError, TokenCacheError
from credbind.results import AuthenticationResultEx
from credbind.scopes import scope_to_string
from credbind.transport import TokenEndpointRequest

if TYPE_CHECKING:
    from credbind.context import RequestContext


class TokenSubjectType(Enum):
    USER = "user"
    CLIENT = "client"
    USER_PLUS_CLIENT = "user_plus_client"


@dataclass
class Authenticator:
    """The authority tokens are requested from."""

    authority: str
    tenant_id: Optional[str] = None

    @property
    def token_uri(self) -> str:
        return self.authority.rstrip("/") + "/oauth2/v2.0/token"

    def update_tenant_id(self, tenant_id: str) -> None:
        self.tenant_id = tenant_id


class TokenRequestHandlerBase(abc.ABC):
    """Builds, sends and post-processes one token request.

    Args:
        authenticator: Authority to request tokens from.
        token_cache: Shared token cache, or ``None``.
        scope: Requested scopes.
        client_key: Client id and credential.
        policy: Optional policy name, sent as the ``p`` query parameter.
        subject_type: Who the token is issued to.
        request_context: Context of the current request.
        common_parameters: Parameters collected by the request builder.
    """

    def __init__(
        self,
        authenticator: Authenticator,
        token_cache: Optional[TokenCache],
        scope: Optional[Iterable[str]],
        client_key: ClientKey,
        policy: Optional[str] = None,
        subject_type: TokenSubjectType = TokenSubjectType.CLIENT,
        *,
        request_context: RequestContext,
        common_parameters: Optional[TokenRequestCommonParameters] = None,
    ) -> None:
        self.authenticator = authenticator
        self.token_cache = token_cache
        self.scope: frozenset[str] = frozenset(scope or ())
        self.client_key = client_key
        self.policy = policy
        self.subject_type = subject_type
        self.request_context = request_context
        self.common_parameters = common_parameters or TokenRequestCommonParameters()

        self.load_from_cache = token_cache is not None
        self.store_to_cache = token_cache is not None
        self.support_adfs = True
        self.unique_id: Optional[str] = None
        self.displayable_id: Optional[str] = None
        self.scope_from_response = False
        self.credential_payload: Optional[str] = None

    @property
    def logger(self):
        return self.request_context.logger

    @abc.abstractmethod
    def add_additional_request_parameters(self, request_parameters: dict[str, str]) -> None:
        """Add the grant-specific body parameters."""

    async def run_async(
        self, cancellation_event: Optional[asyncio.Event] = None
    ) -> AuthenticationResultEx:
        """Run the request: cache lookup, token endpoint call, post-processing, cache store."""
        if self.load_from_cache and self.token_cache is not None and self.scope:
            cached = self.token_cache.lookup(
                self.authenticator.authority,
                self.client_key.client_id,
                self.scope,
                self._cache_subject(),
            )
            if cached is not None:
                self.logger.debug("A cached access token was found for the requested scope.")
                return cached

        transport = self.request_context.service_bundle.token_endpoint
        if transport is None:
            raise ConfigurationError("No token endpoint client is configured")

        request = self.create_token_request()
        hook = self.common_parameters.on_before_token_request
        if hook is not None:
            await hook(request)

        result_ex = await transport.send(request, cancellation_event)
        self.post_token_request(result_ex)

        if self.store_to_cache:
            self._store(result_ex)
        return result_ex

    def build_request_parameters(self) -> dict[str, str]:
        params = self.client_key.request_parameters()
        if self.scope:
            params["scope"] = scope_to_string(self.scope)
        params.update(
            self.common_parameters.authentication_scheme.token_request_parameters(
                self.request_context
            )
        )
        self.add_additional_request_parameters(params)
        return params

    def create_token_request(self) -> TokenEndpointRequest:
        query = dict(self.common_parameters.extra_query_parameters)
        if self.policy:
            query["p"] = self.policy
        return TokenEndpointRequest(
            token_uri=self.authenticator.token_uri,
            body=self.build_request_parameters(),
            headers={"client-request-id": self.request_context.correlation_id},
            query_parameters=query,
            mtls_certificate=self.common_parameters.mtls_certificate,
            credential_payload=self.credential_payload,
        )

    def post_token_request(self, result_ex: AuthenticationResultEx) -> None:
        tenant_id = result_ex.result.tenant_id
        if tenant_id:
            self.authenticator.update_tenant_id(tenant_id)
        result_ex.store_to_cache = self.store_to_cache

    def cache_key(self) -> TokenCacheKey:
        return TokenCacheKey(
            authority=self.authenticator.authority,
            client_id=self.client_key.client_id,
            scope=self.scope,
            subject=self._cache_subject(),
        )

    def _cache_subject(self) -> Optional[str]:
        if self.subject_type is TokenSubjectType.CLIENT:
            return None
        return self.unique_id

    def _store(self, result_ex: AuthenticationResultEx) -> None:
        try:
            self.token_cache.store(self.cache_key(), result_ex)
        except TokenCacheError as e:
            self.logger.warning("Token could not be stored in the cache: %s", e)
