"""OAuth2 client credentials grant."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Optional

from credbind.acquire.parameters import TokenRequestCommonParameters
from credbind.cache import TokenCache
from credbind.credentials import ClientKey
from credbind.grants.base import Authenticator, TokenRequestHandlerBase, TokenSubjectType

if TYPE_CHECKING:
    from credbind.context import RequestContext

CLIENT_CREDENTIALS_GRANT_TYPE = "client_credentials"


class ClientCredentialsGrantHandler(TokenRequestHandlerBase):
    """Acquires an app-only token, reusing a cached one unless ``force_refresh``."""

    def __init__(
        self,
        authenticator: Authenticator,
        token_cache: Optional[TokenCache],
        scope: Optional[Iterable[str]],
        client_key: ClientKey,
        force_refresh: bool = False,
        *,
        request_context: RequestContext,
        common_parameters: Optional[TokenRequestCommonParameters] = None,
    ) -> None:
        super().__init__(
            authenticator,
            token_cache,
            scope,
            client_key,
            subject_type=TokenSubjectType.CLIENT,
            request_context=request_context,
            common_parameters=common_parameters,
        )
        self.load_from_cache = self.load_from_cache and not force_refresh

    def add_additional_request_parameters(self, request_parameters: dict[str, str]) -> None:
        request_parameters["grant_type"] = CLIENT_CREDENTIALS_GRANT_TYPE
