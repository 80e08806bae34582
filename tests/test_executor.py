"""Tests for confidential client request execution."""

import base64
import json

import pytest

from credbind.acquire.parameters import PopAuthenticationConfiguration
from credbind.application import ConfidentialClientApplication
from credbind.binding.service import CredentialBindingService
from credbind.config import ApplicationConfig
from credbind.context import RequestContext
from credbind.credentials import ClientSecret
from credbind.exceptions import ConfigurationError

SCOPES = ["api://resource/.default"]


def _app(config, token_endpoint, token_cache, binding_context):
    return ConfidentialClientApplication(
        config,
        token_endpoint=token_endpoint,
        token_cache=token_cache,
        binding_context=binding_context,
    )


def _binding_certificate(app):
    context = RequestContext(app.service_bundle)
    return CredentialBindingService.get_credential_info(context).binding_certificate


class TestClientCredentials:
    @pytest.mark.asyncio
    async def test_request_body(self, config, token_endpoint, token_cache, binding_context):
        app = _app(config, token_endpoint, token_cache, binding_context)
        result = await app.acquire_token_for_client(SCOPES).execute()

        request = token_endpoint.requests[0]
        assert request.body == {
            "client_id": "client-123",
            "client_secret": "s3cret",
            "scope": "api://resource/.default",
            "grant_type": "client_credentials",
        }
        assert request.mtls_certificate is None
        assert request.credential_payload is None
        assert result.store_to_cache is True

    @pytest.mark.asyncio
    async def test_second_request_served_from_cache(
        self, config, token_endpoint, token_cache, binding_context
    ):
        app = _app(config, token_endpoint, token_cache, binding_context)
        first = await app.acquire_token_for_client(SCOPES).execute()
        second = await app.acquire_token_for_client(SCOPES).execute()

        assert second is first
        assert len(token_endpoint.requests) == 1

    @pytest.mark.asyncio
    async def test_force_refresh_skips_cache(
        self, config, token_endpoint, token_cache, binding_context
    ):
        app = _app(config, token_endpoint, token_cache, binding_context)
        await app.acquire_token_for_client(SCOPES).execute()
        await app.acquire_token_for_client(SCOPES).with_force_refresh(True).execute()

        assert len(token_endpoint.requests) == 2

    @pytest.mark.asyncio
    async def test_empty_scope_not_served_from_cache(
        self, config, token_endpoint, token_cache, binding_context
    ):
        app = _app(config, token_endpoint, token_cache, binding_context)
        cached = await app.acquire_token_for_client(SCOPES).execute()
        result = await app.acquire_token_for_client([]).execute()

        assert result is not cached
        assert len(token_endpoint.requests) == 2
        assert "scope" not in token_endpoint.requests[1].body

    @pytest.mark.asyncio
    async def test_missing_transport(self, config, token_cache, binding_context):
        app = _app(config, None, token_cache, binding_context)
        with pytest.raises(ConfigurationError):
            await app.acquire_token_for_client(SCOPES).execute()


class TestAppTokenProvider:
    @pytest.mark.asyncio
    async def test_provider_replaces_token_endpoint(self, token_endpoint, token_cache, binding_context):
        received = []

        async def provider(parameters):
            received.append(parameters)
            return {"access_token": "from-provider", "expires_in": 600}

        config = ApplicationConfig(client_id="client-123", app_token_provider=provider)
        app = _app(config, token_endpoint, token_cache, binding_context)
        result = await app.acquire_token_for_client(["b", "a"]).with_correlation_id("c-1").execute()

        assert result.result.access_token == "from-provider"
        assert result.scope_in_response == frozenset({"a", "b"})
        assert result.store_to_cache is False
        assert token_endpoint.requests == []
        assert received[0].scopes == ["a", "b"]
        assert received[0].correlation_id == "c-1"


class TestManagedIdentityBinding:
    @pytest.fixture()
    def mi_config(self):
        return ApplicationConfig(
            client_id="client-123",
            client_credential=ClientSecret("s3cret"),
            managed_identity=True,
        )

    @pytest.mark.asyncio
    async def test_request_bound_to_binding_certificate(
        self, mi_config, token_endpoint, token_cache, binding_context
    ):
        app = _app(mi_config, token_endpoint, token_cache, binding_context)
        await app.acquire_token_for_client(SCOPES).execute()

        request = token_endpoint.requests[0]
        certificate = binding_context.certificate_cache.certificate
        assert request.mtls_certificate is certificate
        payload = json.loads(request.credential_payload)
        assert payload["cnf"]["jwk"]["kid"] == certificate.thumbprint

    @pytest.mark.asyncio
    async def test_explicit_mtls_certificate_kept(
        self, mi_config, config, token_endpoint, token_cache, binding_context
    ):
        from credbind.binding.cache import BindingContext

        other = _binding_certificate(_app(config, None, None, BindingContext()))
        app = _app(mi_config, token_endpoint, token_cache, binding_context)
        await app.acquire_token_for_client(SCOPES).with_mtls_certificate(other).execute()

        request = token_endpoint.requests[0]
        assert request.mtls_certificate is other
        payload = json.loads(request.credential_payload)
        assert payload["cnf"]["jwk"]["kid"] == binding_context.certificate_cache.certificate.thumbprint

    @pytest.mark.asyncio
    async def test_certificate_shared_across_requests(
        self, mi_config, token_endpoint, binding_context
    ):
        app = _app(mi_config, token_endpoint, None, binding_context)
        await app.acquire_token_for_client(SCOPES).execute()
        await app.acquire_token_by_authorization_code(SCOPES, "code", "https://app/cb").execute()

        first, second = token_endpoint.requests
        assert first.mtls_certificate is second.mtls_certificate
        assert first.credential_payload == second.credential_payload


class TestProofOfPossessionRequest:
    @pytest.mark.asyncio
    async def test_req_cnf_names_binding_certificate(
        self, token_endpoint, token_cache, binding_context
    ):
        config = ApplicationConfig(
            client_id="client-123",
            client_credential=ClientSecret("s3cret"),
            experimental_features_enabled=True,
        )
        app = _app(config, token_endpoint, token_cache, binding_context)
        pop = PopAuthenticationConfiguration(request_uri="https://api.example.com/items", http_method="GET")
        await app.acquire_token_for_client(SCOPES).with_proof_of_possession(pop).execute()

        body = token_endpoint.requests[0].body
        assert body["token_type"] == "pop"
        encoded = body["req_cnf"]
        assert "=" not in encoded
        decoded = json.loads(base64.urlsafe_b64decode(encoded + "=" * (-len(encoded) % 4)))
        assert decoded == {"kid": _binding_certificate(app).thumbprint}
        assert token_endpoint.requests[0].credential_payload is None


class TestAuthorizationCode:
    @pytest.mark.asyncio
    async def test_exchange(self, config, token_endpoint, token_cache, binding_context):
        app = _app(config, token_endpoint, token_cache, binding_context)
        await (
            app.acquire_token_by_authorization_code(SCOPES, "the-code", "https://app/cb")
            .with_policy("B2C_1_signin")
            .execute()
        )
        request = token_endpoint.requests[0]
        assert request.body["grant_type"] == "authorization_code"
        assert request.body["code"] == "the-code"
        assert request.body["redirect_uri"] == "https://app/cb"
        assert request.query_parameters["p"] == "B2C_1_signin"
