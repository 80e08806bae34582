"""OAuth2 authorization code grant."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Optional

from credbind.acquire.parameters import TokenRequestCommonParameters
from credbind.cache import TokenCache
from credbind.credentials import ClientKey
from credbind.exceptions import ArgumentError
from credbind.grants.base import Authenticator, TokenRequestHandlerBase, TokenSubjectType
from credbind.results import AuthenticationResultEx
from credbind.scopes import is_null_or_empty

if TYPE_CHECKING:
    from credbind.context import RequestContext

AUTHORIZATION_CODE_GRANT_TYPE = "authorization_code"


class AuthorizationCodeGrantHandler(TokenRequestHandlerBase):
    """Exchanges an authorization code for tokens.

    The grant never reads existing cache entries. After the exchange the
    server's scope, when present, replaces the requested scope, and the
    result is only stored if that scope is non-empty: scope is part of the
    cache key.

    Raises:
        ArgumentError: If ``authorization_code`` is blank or ``redirect_uri``
            is ``None``.
    """

    def __init__(
        self,
        authenticator: Authenticator,
        token_cache: Optional[TokenCache],
        scope: Optional[Iterable[str]],
        client_key: ClientKey,
        authorization_code: str,
        redirect_uri: str,
        policy: Optional[str] = None,
        *,
        request_context: RequestContext,
        common_parameters: Optional[TokenRequestCommonParameters] = None,
    ) -> None:
        super().__init__(
            authenticator,
            token_cache,
            scope,
            client_key,
            policy,
            TokenSubjectType.USER_PLUS_CLIENT,
            request_context=request_context,
            common_parameters=common_parameters,
        )
        if authorization_code is None or not authorization_code.strip():
            raise ArgumentError("authorization_code must not be empty")
        self.authorization_code = authorization_code

        if redirect_uri is None:
            raise ArgumentError("redirect_uri must not be None")
        self.redirect_uri = redirect_uri

        self.load_from_cache = False
        self.support_adfs = False

    def add_additional_request_parameters(self, request_parameters: dict[str, str]) -> None:
        request_parameters["grant_type"] = AUTHORIZATION_CODE_GRANT_TYPE
        request_parameters["code"] = self.authorization_code
        request_parameters["redirect_uri"] = str(self.redirect_uri)

    def post_token_request(self, result_ex: AuthenticationResultEx) -> None:
        super().post_token_request(result_ex)

        user = result_ex.result.user
        self.unique_id = user.unique_id if user is not None else None
        self.displayable_id = user.displayable_id if user is not None else None

        if result_ex.scope_in_response is not None:
            self.scope = result_ex.scope_in_response
            self.scope_from_response = True
            self.logger.debug(
                "Scope value in the token response was used for storing tokens in the cache"
            )

        # Without scope from the request or the response the token has no cache key.
        self.store_to_cache = self.store_to_cache and not is_null_or_empty(self.scope)

        result_ex.store_to_cache = self.store_to_cache
        result_ex.scope_from_response = self.scope_from_response
