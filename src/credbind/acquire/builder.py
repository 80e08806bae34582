"""
Token request builders.

Builders collect the parameters of one token request through chained
``with_*`` calls (each returns the builder itself), validate them, and hand
them to the confidential client executor.
"""

from __future__ import annotations

import abc
import asyncio
import logging
import sys
from typing import Iterable, Mapping, Optional

from credbind.acquire.executor import (
    AcquireTokenByAuthorizationCodeParameters,
    AcquireTokenForClientParameters,
    ConfidentialClientExecutor,
)
from credbind.acquire.parameters import (
    ApiId,
    OnBeforeTokenRequest,
    PopAuthenticationConfiguration,
    PopAuthenticationScheme,
    TokenRequestCommonParameters,
)
from credbind.binding.certificate import BindingCertificate
from credbind.context import ServiceBundle
from credbind.exceptions import (
    CLIENT_CREDENTIAL_AUTHENTICATION_TYPE_MUST_BE_DEFINED,
    EXPERIMENTAL_FEATURE,
    PLATFORM_NOT_SUPPORTED,
    ArgumentError,
    ConfigurationError,
    UnsupportedPlatformError,
)
from credbind.results import AuthenticationResultEx

logger = logging.getLogger(__name__)

MOBILE_PLATFORMS = frozenset({"ios", "android"})

RESERVED_PARAMETERS = frozenset(
    {
        "client_id",
        "client_secret",
        "client_assertion",
        "client_assertion_type",
        "grant_type",
        "code",
        "redirect_uri",
        "scope",
    }
)


def guard_mobile_frameworks() -> None:
    """Reject confidential client flows on mobile runtimes.

    Raises:
        UnsupportedPlatformError: If running on iOS or Android.
    """
    if sys.platform in MOBILE_PLATFORMS:
        raise UnsupportedPlatformError(
            f"Confidential client is not supported on {sys.platform}",
            PLATFORM_NOT_SUPPORTED,
        )


class AcquireTokenParameterBuilder(abc.ABC):
    """Base class of all token request builders."""

    def __init__(self, service_bundle: ServiceBundle, scopes: Optional[Iterable[str]]) -> None:
        self.service_bundle = service_bundle
        self.common_parameters = TokenRequestCommonParameters(
            scopes=frozenset(scopes) if scopes is not None else None
        )

    def with_correlation_id(self, correlation_id: str):
        self.common_parameters.correlation_id = correlation_id
        return self

    def with_extra_query_parameters(self, parameters: Mapping[str, str]):
        self.common_parameters.extra_query_parameters.update(parameters)
        return self

    def with_on_before_token_request(self, handler: OnBeforeTokenRequest):
        """Register a coroutine that may adjust the outgoing token request."""
        self.common_parameters.on_before_token_request = handler
        return self

    def validate(self) -> None:
        """Validate the collected parameters.

        Raises:
            ArgumentError: If no scope set was given.
            ConfigurationError: If extra query parameters shadow OAuth parameters.
        """
        if self.common_parameters.scopes is None:
            raise ArgumentError("scopes must not be None")

        shadowed = RESERVED_PARAMETERS & set(self.common_parameters.extra_query_parameters)
        if shadowed:
            raise ConfigurationError(
                f"Extra query parameters may not override {', '.join(sorted(shadowed))}"
            )

    def validate_use_of_experimental_feature(self) -> None:
        if not self.service_bundle.config.experimental_features_enabled:
            raise ConfigurationError(
                "This is an experimental API; enable experimental features in the "
                "application configuration to use it",
                EXPERIMENTAL_FEATURE,
            )

    def _validate_and_calculate_api_id(self) -> None:
        self.validate()
        self.common_parameters.api_id = self._calculate_api_id()

    @abc.abstractmethod
    def _calculate_api_id(self) -> ApiId: ...

    @abc.abstractmethod
    async def execute(
        self, cancellation_event: Optional[asyncio.Event] = None
    ) -> AuthenticationResultEx: ...


class AbstractConfidentialClientAcquireTokenParameterBuilder(AcquireTokenParameterBuilder):
    """Base class of confidential client token request builders.

    Raises:
        UnsupportedPlatformError: If constructed on a mobile runtime.
    """

    def __init__(
        self,
        confidential_client_executor: ConfidentialClientExecutor,
        scopes: Optional[Iterable[str]],
    ) -> None:
        guard_mobile_frameworks()
        super().__init__(confidential_client_executor.service_bundle, scopes)
        self.confidential_client_executor = confidential_client_executor

    @abc.abstractmethod
    async def _execute_internal(
        self, cancellation_event: Optional[asyncio.Event]
    ) -> AuthenticationResultEx: ...

    async def execute(
        self, cancellation_event: Optional[asyncio.Event] = None
    ) -> AuthenticationResultEx:
        """Validate and run the request.

        ``cancellation_event`` is handed to the transport, which stops waiting
        once it is set; work already in progress is not interrupted.
        """
        guard_mobile_frameworks()
        self._validate_and_calculate_api_id()
        logger.debug("Executing token request %s", self.common_parameters.api_id.name)
        return await self._execute_internal(cancellation_event)

    def validate(self) -> None:
        """Validate the request parameters.

        Raises:
            ConfigurationError: If the client has no credential, no
                ``on_before_token_request`` hook and no app token provider.
        """
        config = self.service_bundle.config
        if (
            config.client_credential is None
            and self.common_parameters.on_before_token_request is None
            and config.app_token_provider is None
        ):
            raise ConfigurationError(
                "A confidential client application needs a client credential, an "
                "on_before_token_request hook or an app token provider",
                CLIENT_CREDENTIAL_AUTHENTICATION_TYPE_MUST_BE_DEFINED,
            )

        super().validate()

    def with_proof_of_possession(self, pop_configuration: PopAuthenticationConfiguration):
        """Request a Proof-of-Possession token instead of a Bearer token.

        The token is bound to the process binding certificate. This is an
        experimental API.

        Raises:
            ConfigurationError: If experimental features are disabled.
            ArgumentError: If ``pop_configuration`` is ``None``.
        """
        self.validate_use_of_experimental_feature()

        if pop_configuration is None:
            raise ArgumentError("pop_configuration must not be None")

        self.common_parameters.pop_configuration = pop_configuration
        self.common_parameters.authentication_scheme = PopAuthenticationScheme(
            pop_configuration, self.service_bundle
        )
        return self

    def with_mtls_certificate(self, certificate: BindingCertificate):
        """Send the token request over mutual TLS with ``certificate``.

        Only the token endpoint exchange uses this certificate.
        """
        self.common_parameters.mtls_certificate = certificate
        return self


class AcquireTokenForClientParameterBuilder(AbstractConfidentialClientAcquireTokenParameterBuilder):
    """Builder for app-only tokens (client credentials grant)."""

    def __init__(
        self,
        confidential_client_executor: ConfidentialClientExecutor,
        scopes: Optional[Iterable[str]],
    ) -> None:
        super().__init__(confidential_client_executor, scopes)
        self.parameters = AcquireTokenForClientParameters()

    def with_force_refresh(self, force_refresh: bool):
        self.parameters.force_refresh = force_refresh
        return self

    def _calculate_api_id(self) -> ApiId:
        return ApiId.ACQUIRE_TOKEN_FOR_CLIENT

    async def _execute_internal(
        self, cancellation_event: Optional[asyncio.Event]
    ) -> AuthenticationResultEx:
        return await self.confidential_client_executor.execute_for_client(
            self.common_parameters, self.parameters, cancellation_event
        )


class AcquireTokenByAuthorizationCodeParameterBuilder(
    AbstractConfidentialClientAcquireTokenParameterBuilder
):
    """Builder for the authorization code grant."""

    def __init__(
        self,
        confidential_client_executor: ConfidentialClientExecutor,
        scopes: Optional[Iterable[str]],
        authorization_code: str,
        redirect_uri: str,
    ) -> None:
        super().__init__(confidential_client_executor, scopes)
        self.parameters = AcquireTokenByAuthorizationCodeParameters(
            authorization_code=authorization_code,
            redirect_uri=redirect_uri,
        )

    def with_policy(self, policy: str):
        self.parameters.policy = policy
        return self

    def _calculate_api_id(self) -> ApiId:
        return ApiId.ACQUIRE_TOKEN_BY_AUTHORIZATION_CODE

    async def _execute_internal(
        self, cancellation_event: Optional[asyncio.Event]
    ) -> AuthenticationResultEx:
        return await self.confidential_client_executor.execute_by_authorization_code(
            self.common_parameters, self.parameters, cancellation_event
        )
