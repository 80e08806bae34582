"""Shared fixtures for credbind tests."""

from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from credbind.binding.cache import BindingContext
from credbind.cache import InMemoryTokenCache
from credbind.config import ApplicationConfig
from credbind.context import RequestContext, ServiceBundle
from credbind.credentials import ClientSecret
from credbind.results import AuthenticationResult, AuthenticationResultEx, UserInfo
from credbind.transport import TokenEndpointClient


def _make_result(
    scope_in_response: Optional[frozenset] = None,
    user: Optional[UserInfo] = None,
    tenant_id: Optional[str] = None,
) -> AuthenticationResultEx:
    return AuthenticationResultEx(
        result=AuthenticationResult(
            access_token="at-123",
            expires_on=datetime.now(timezone.utc) + timedelta(hours=1),
            tenant_id=tenant_id,
            user=user,
        ),
        scope_in_response=scope_in_response,
    )


class FakeTokenEndpoint(TokenEndpointClient):
    """Records outgoing requests and answers with a canned result."""

    def __init__(self, result: Optional[AuthenticationResultEx] = None) -> None:
        self.result = result
        self.requests = []
        self.cancellation_events = []

    async def send(self, request, cancellation_event=None):
        self.requests.append(request)
        self.cancellation_events.append(cancellation_event)
        return self.result if self.result is not None else _make_result()


@pytest.fixture()
def config() -> ApplicationConfig:
    return ApplicationConfig(
        client_id="client-123",
        authority="https://login.example.com/tenant/",
        client_credential=ClientSecret("s3cret"),
    )


@pytest.fixture()
def binding_context() -> BindingContext:
    return BindingContext()


@pytest.fixture()
def token_endpoint() -> FakeTokenEndpoint:
    return FakeTokenEndpoint()


@pytest.fixture()
def token_cache() -> InMemoryTokenCache:
    return InMemoryTokenCache()


@pytest.fixture()
def service_bundle(config, token_endpoint, token_cache, binding_context) -> ServiceBundle:
    return ServiceBundle(
        config,
        token_endpoint=token_endpoint,
        token_cache=token_cache,
        binding_context=binding_context,
    )


@pytest.fixture()
def request_context(service_bundle) -> RequestContext:
    return RequestContext(service_bundle, correlation_id="corr-1")


@pytest.fixture()
def make_result():
    """Factory for canned token endpoint results."""
    return _make_result
