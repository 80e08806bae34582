"""Client credentials presented to the token endpoint."""

from __future__ import annotations

import abc
from typing import Callable, Optional, Union

from credbind.exceptions import ArgumentError

JWT_BEARER_ASSERTION_TYPE = "urn:ietf:params:oauth:client-assertion-type:jwt-bearer"


class ClientCredential(abc.ABC):
    """Something a confidential client can prove its identity with."""

    @abc.abstractmethod
    def request_parameters(self) -> dict[str, str]:
        """Body parameters that authenticate the client."""


class ClientSecret(ClientCredential):
    def __init__(self, secret: str) -> None:
        if not secret:
            raise ArgumentError("Client secret must not be empty")
        self._secret = secret

    def request_parameters(self) -> dict[str, str]:
        return {"client_secret": self._secret}

    def __repr__(self) -> str:
        return "<ClientSecret ***>"


class ClientAssertion(ClientCredential):
    """A signed client assertion, given directly or produced on demand.

    Args:
        assertion: The serialized assertion, or a callable returning a fresh one
            for each request.
    """

    def __init__(self, assertion: Union[str, Callable[[], str]]) -> None:
        if not assertion:
            raise ArgumentError("Client assertion must not be empty")
        self._assertion = assertion

    def request_parameters(self) -> dict[str, str]:
        assertion = self._assertion() if callable(self._assertion) else self._assertion
        return {
            "client_assertion_type": JWT_BEARER_ASSERTION_TYPE,
            "client_assertion": assertion,
        }


class ClientKey:
    """Client id plus the credential (if any) used for a token request."""

    def __init__(self, client_id: str, credential: Optional[ClientCredential] = None) -> None:
        if not client_id:
            raise ArgumentError("client_id must not be empty")
        self.client_id = client_id
        self.credential = credential

    @property
    def has_credential(self) -> bool:
        return self.credential is not None

    def request_parameters(self) -> dict[str, str]:
        params = {"client_id": self.client_id}
        if self.credential is not None:
            params.update(self.credential.request_parameters())
        return params
