"""Tests for the authorization code grant handler."""

import logging

import pytest

from credbind.cache import TokenCache
from credbind.credentials import ClientKey, ClientSecret
from credbind.exceptions import ArgumentError, TokenCacheError
from credbind.grants.authorization_code import AuthorizationCodeGrantHandler
from credbind.grants.base import Authenticator
from credbind.results import UserInfo


AUTHORITY = "https://login.example.com/tenant/"


class FailingTokenCache(TokenCache):
    def store(self, key, result):
        raise TokenCacheError("disk full")

    def lookup(self, authority, client_id, scope, subject=None):
        return None


def _handler(request_context, token_cache, scope=("User.Read",), code="auth-code",
             redirect_uri="https://app.example.com/callback", policy=None):
    return AuthorizationCodeGrantHandler(
        Authenticator(AUTHORITY),
        token_cache,
        scope,
        ClientKey("client-123", ClientSecret("s3cret")),
        code,
        redirect_uri,
        policy,
        request_context=request_context,
    )


class TestConstruction:
    @pytest.mark.parametrize("code", ["", "   ", None])
    def test_blank_code_rejected(self, request_context, token_cache, code):
        with pytest.raises(ArgumentError):
            _handler(request_context, token_cache, code=code)

    def test_none_redirect_uri_rejected(self, request_context, token_cache):
        with pytest.raises(ArgumentError):
            _handler(request_context, token_cache, redirect_uri=None)

    def test_never_reads_cache(self, request_context, token_cache):
        handler = _handler(request_context, token_cache)
        assert handler.load_from_cache is False
        assert handler.store_to_cache is True
        assert handler.support_adfs is False


class TestRequestParameters:
    def test_body(self, request_context, token_cache):
        body = _handler(request_context, token_cache, scope=("b", "a")).build_request_parameters()
        assert body["grant_type"] == "authorization_code"
        assert body["code"] == "auth-code"
        assert body["redirect_uri"] == "https://app.example.com/callback"
        assert body["client_id"] == "client-123"
        assert body["client_secret"] == "s3cret"
        assert body["scope"] == "a b"

    def test_policy_and_headers(self, request_context, token_cache):
        request = _handler(request_context, token_cache, policy="B2C_1_signin").create_token_request()
        assert request.query_parameters["p"] == "B2C_1_signin"
        assert request.headers["client-request-id"] == "corr-1"
        assert request.token_uri == "https://login.example.com/tenant/oauth2/v2.0/token"


class TestScopeAndStorePolicy:
    @pytest.mark.asyncio
    async def test_response_scope_replaces_request_scope(
        self, request_context, token_cache, token_endpoint, make_result, caplog
    ):
        token_endpoint.result = make_result(scope_in_response=frozenset({"c"}))
        handler = _handler(request_context, token_cache, scope=("a", "b"))

        with caplog.at_level(logging.DEBUG, logger="credbind"):
            result = await handler.run_async()

        assert handler.scope == frozenset({"c"})
        assert handler.scope_from_response is True
        assert result.scope_from_response is True
        assert result.store_to_cache is True
        assert "Scope value in the token response was used" in caplog.text
        assert token_cache.lookup(AUTHORITY, "client-123", frozenset({"c"})) is result
        assert token_cache.lookup(AUTHORITY, "client-123", frozenset({"a"})) is None

    @pytest.mark.asyncio
    async def test_request_scope_kept_without_response_scope(
        self, request_context, token_cache, token_endpoint
    ):
        handler = _handler(request_context, token_cache, scope=("a",))
        result = await handler.run_async()

        assert handler.scope == frozenset({"a"})
        assert handler.scope_from_response is False
        assert result.store_to_cache is True
        assert len(token_cache) == 1

    @pytest.mark.asyncio
    async def test_no_scope_anywhere_is_not_stored(
        self, request_context, token_cache, token_endpoint
    ):
        handler = _handler(request_context, token_cache, scope=())
        result = await handler.run_async()

        assert handler.store_to_cache is False
        assert result.store_to_cache is False
        assert len(token_cache) == 0

    @pytest.mark.asyncio
    async def test_empty_response_scope_is_not_stored(
        self, request_context, token_cache, token_endpoint, make_result
    ):
        token_endpoint.result = make_result(scope_in_response=frozenset())
        handler = _handler(request_context, token_cache, scope=("a",))
        result = await handler.run_async()

        assert handler.scope_from_response is True
        assert result.store_to_cache is False
        assert len(token_cache) == 0

    @pytest.mark.asyncio
    async def test_without_cache_nothing_is_stored(self, request_context, token_endpoint):
        handler = _handler(request_context, None)
        result = await handler.run_async()
        assert result.store_to_cache is False


class TestUserIdentity:
    @pytest.mark.asyncio
    async def test_user_ids_taken_from_result(
        self, request_context, token_cache, token_endpoint, make_result
    ):
        token_endpoint.result = make_result(
            user=UserInfo(unique_id="oid-1", displayable_id="ada@example.com"),
            tenant_id="tid-9",
        )
        handler = _handler(request_context, token_cache)
        result = await handler.run_async()

        assert handler.unique_id == "oid-1"
        assert handler.displayable_id == "ada@example.com"
        assert handler.authenticator.tenant_id == "tid-9"
        assert token_cache.lookup(AUTHORITY, "client-123", frozenset({"User.Read"}), "oid-1") is result

    @pytest.mark.asyncio
    async def test_missing_user_leaves_ids_empty(self, request_context, token_cache, token_endpoint):
        handler = _handler(request_context, token_cache)
        await handler.run_async()
        assert handler.unique_id is None
        assert handler.displayable_id is None


class TestCacheFailure:
    @pytest.mark.asyncio
    async def test_store_failure_is_logged(self, request_context, token_endpoint, caplog):
        handler = _handler(request_context, FailingTokenCache())
        with caplog.at_level(logging.WARNING, logger="credbind"):
            result = await handler.run_async()

        assert result.result.access_token == "at-123"
        assert "could not be stored" in caplog.text
