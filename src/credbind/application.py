"""Confidential client application entry point."""

from __future__ import annotations

from typing import Iterable, Optional

from credbind.acquire.builder import (
    AcquireTokenByAuthorizationCodeParameterBuilder,
    AcquireTokenForClientParameterBuilder,
    guard_mobile_frameworks,
)
from credbind.acquire.executor import ConfidentialClientExecutor
from credbind.binding.cache import BindingContext
from credbind.binding.keys import KeyContainer
from credbind.cache import TokenCache
from credbind.config import ApplicationConfig
from credbind.context import ServiceBundle
from credbind.transport import TokenEndpointClient


class ConfidentialClientApplication:
    """A confidential client: holds configuration and hands out request builders.

    Example:
        >>> app = ConfidentialClientApplication(config, token_endpoint=client)
        >>> result = await (
        ...     app.acquire_token_for_client(["https://graph.example/.default"])
        ...     .with_force_refresh(True)
        ...     .execute()
        ... )
    """

    def __init__(
        self,
        config: ApplicationConfig,
        token_endpoint: Optional[TokenEndpointClient] = None,
        token_cache: Optional[TokenCache] = None,
        key_container: Optional[KeyContainer] = None,
        binding_context: Optional[BindingContext] = None,
    ) -> None:
        guard_mobile_frameworks()
        self.service_bundle = ServiceBundle(
            config,
            token_endpoint=token_endpoint,
            token_cache=token_cache,
            key_container=key_container,
            binding_context=binding_context,
        )
        self._executor = ConfidentialClientExecutor(self.service_bundle)

    @property
    def config(self) -> ApplicationConfig:
        return self.service_bundle.config

    def acquire_token_for_client(
        self, scopes: Iterable[str]
    ) -> AcquireTokenForClientParameterBuilder:
        return AcquireTokenForClientParameterBuilder(self._executor, scopes)

    def acquire_token_by_authorization_code(
        self,
        scopes: Iterable[str],
        authorization_code: str,
        redirect_uri: str,
    ) -> AcquireTokenByAuthorizationCodeParameterBuilder:
        return AcquireTokenByAuthorizationCodeParameterBuilder(
            self._executor, scopes, authorization_code, redirect_uri
        )
