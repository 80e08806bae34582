"""Interface to the token endpoint transport."""

from __future__ import annotations

import abc
import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from credbind.binding.certificate import BindingCertificate
    from credbind.results import AuthenticationResultEx


@dataclass
class TokenEndpointRequest:
    """An outgoing token request, before it reaches the wire.

    Attributes:
        token_uri: Token endpoint URL.
        body: Form-encoded body parameters.
        headers: Extra HTTP headers.
        query_parameters: Extra query string parameters.
        mtls_certificate: Client certificate for the TLS handshake of this
            request only.
        credential_payload: Binding credential payload, when the request is
            bound to the process binding certificate.
    """

    token_uri: str
    body: dict[str, str]
    headers: dict[str, str] = field(default_factory=dict)
    query_parameters: dict[str, str] = field(default_factory=dict)
    mtls_certificate: Optional[BindingCertificate] = None
    credential_payload: Optional[str] = None


class TokenEndpointClient(abc.ABC):
    """Sends token requests; HTTP and retry policy belong to implementations."""

    @abc.abstractmethod
    async def send(
        self,
        request: TokenEndpointRequest,
        cancellation_event: Optional[asyncio.Event] = None,
    ) -> AuthenticationResultEx:
        """Send ``request`` and parse the response.

        Implementations should stop waiting once ``cancellation_event`` is set.

        Raises:
            ProtocolError: If the endpoint answers with an OAuth2 error.
        """
