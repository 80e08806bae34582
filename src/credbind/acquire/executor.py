"""
Confidential client executor.

Turns validated builder parameters into a grant handler run. Requests that are
bound to the process binding certificate (PoP, managed identity) obtain the
certificate before anything is sent.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional

from credbind.acquire.parameters import TokenRequestCommonParameters
from credbind.binding.service import CredentialBindingService
from credbind.config import AppTokenProviderParameters
from credbind.context import RequestContext, ServiceBundle
from credbind.credentials import ClientKey
from credbind.grants.authorization_code import AuthorizationCodeGrantHandler
from credbind.grants.base import Authenticator, TokenRequestHandlerBase
from credbind.grants.client_credentials import ClientCredentialsGrantHandler
from credbind.results import AuthenticationResultEx
from credbind.scopes import scope_to_string


@dataclass
class AcquireTokenForClientParameters:
    force_refresh: bool = False


@dataclass
class AcquireTokenByAuthorizationCodeParameters:
    authorization_code: str
    redirect_uri: str
    policy: Optional[str] = None


class ConfidentialClientExecutor:
    """Executes confidential client token requests for one service bundle."""

    def __init__(self, service_bundle: ServiceBundle) -> None:
        self.service_bundle = service_bundle

    async def execute_for_client(
        self,
        common_parameters: TokenRequestCommonParameters,
        parameters: AcquireTokenForClientParameters,
        cancellation_event: Optional[asyncio.Event] = None,
    ) -> AuthenticationResultEx:
        request_context = self._create_request_context(common_parameters)
        config = self.service_bundle.config

        if config.app_token_provider is not None:
            return await self._execute_app_token_provider(common_parameters, request_context)

        handler = ClientCredentialsGrantHandler(
            self._authenticator(),
            self.service_bundle.token_cache,
            common_parameters.scopes,
            self._client_key(),
            force_refresh=parameters.force_refresh,
            request_context=request_context,
            common_parameters=common_parameters,
        )
        return await self._run(handler, cancellation_event)

    async def execute_by_authorization_code(
        self,
        common_parameters: TokenRequestCommonParameters,
        parameters: AcquireTokenByAuthorizationCodeParameters,
        cancellation_event: Optional[asyncio.Event] = None,
    ) -> AuthenticationResultEx:
        request_context = self._create_request_context(common_parameters)
        handler = AuthorizationCodeGrantHandler(
            self._authenticator(),
            self.service_bundle.token_cache,
            common_parameters.scopes,
            self._client_key(),
            parameters.authorization_code,
            parameters.redirect_uri,
            parameters.policy,
            request_context=request_context,
            common_parameters=common_parameters,
        )
        return await self._run(handler, cancellation_event)

    async def _run(
        self,
        handler: TokenRequestHandlerBase,
        cancellation_event: Optional[asyncio.Event],
    ) -> AuthenticationResultEx:
        self._prepare_binding(handler)
        return await handler.run_async(cancellation_event)

    def _prepare_binding(self, handler: TokenRequestHandlerBase) -> None:
        common = handler.common_parameters
        managed_identity = self.service_bundle.config.managed_identity
        if not (managed_identity or common.authentication_scheme.binds_to_certificate):
            return

        request_context = handler.request_context
        certificate = CredentialBindingService.get_credential_info(
            request_context
        ).get_binding_certificate(request_logger=request_context.logger)
        request_context.logger.debug(
            "Token request bound to certificate %s", certificate.thumbprint
        )

        if managed_identity:
            if common.mtls_certificate is None:
                common.mtls_certificate = certificate
            handler.credential_payload = CredentialBindingService.create_credential_payload(
                certificate
            )

    async def _execute_app_token_provider(
        self,
        common_parameters: TokenRequestCommonParameters,
        request_context: RequestContext,
    ) -> AuthenticationResultEx:
        provider = self.service_bundle.config.app_token_provider
        provider_parameters = AppTokenProviderParameters(
            scopes=sorted(common_parameters.scopes or ()),
            correlation_id=request_context.correlation_id,
        )
        request_context.logger.debug("Acquiring token from the custom app token provider.")
        response = await provider(provider_parameters)

        payload = dict(response)
        payload.setdefault("scope", scope_to_string(common_parameters.scopes))
        result_ex = AuthenticationResultEx.from_token_response(payload)
        result_ex.store_to_cache = False
        return result_ex

    def _create_request_context(self, common_parameters: TokenRequestCommonParameters) -> RequestContext:
        request_context = RequestContext(self.service_bundle, common_parameters.correlation_id)
        common_parameters.correlation_id = request_context.correlation_id
        return request_context

    def _authenticator(self) -> Authenticator:
        return Authenticator(self.service_bundle.config.authority)

    def _client_key(self) -> ClientKey:
        config = self.service_bundle.config
        return ClientKey(config.client_id, config.client_credential)
