"""
Token cache interface.

The grant handlers only decide *whether* to store a result and under which
scope; storage itself belongs to a :class:`TokenCache` implementation.
"""

from __future__ import annotations

import abc
import logging
import threading
from dataclasses import dataclass
from typing import Optional

from credbind.exceptions import TokenCacheError
from credbind.results import AuthenticationResultEx

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenCacheKey:
    authority: str
    client_id: str
    scope: frozenset[str]
    subject: Optional[str] = None


class TokenCache(abc.ABC):
    """Abstract token cache."""

    @abc.abstractmethod
    def store(self, key: TokenCacheKey, result: AuthenticationResultEx) -> None:
        """Store ``result`` under ``key``.

        Raises:
            TokenCacheError: If the entry cannot be stored.
        """

    @abc.abstractmethod
    def lookup(
        self,
        authority: str,
        client_id: str,
        scope: frozenset[str],
        subject: Optional[str] = None,
    ) -> Optional[AuthenticationResultEx]:
        """Return a fresh entry whose scope covers ``scope``, if any.

        An empty ``scope`` never matches: scope is part of the cache key.
        """


class InMemoryTokenCache(TokenCache):
    """
    In-memory token cache.

    Uses a dictionary for storage. Data is lost on restart.
    Suitable for development and testing only.
    """

    def __init__(self) -> None:
        self._entries: dict[TokenCacheKey, AuthenticationResultEx] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def store(self, key: TokenCacheKey, result: AuthenticationResultEx) -> None:
        if not key.scope:
            raise TokenCacheError("Cannot store a token without scope")
        with self._lock:
            self._entries[key] = result
        logger.debug("Stored token for client %s (%d entries)", key.client_id, len(self._entries))

    def lookup(
        self,
        authority: str,
        client_id: str,
        scope: frozenset[str],
        subject: Optional[str] = None,
    ) -> Optional[AuthenticationResultEx]:
        if not scope:
            return None
        with self._lock:
            for key, entry in self._entries.items():
                if (
                    key.authority == authority
                    and key.client_id == client_id
                    and key.subject == subject
                    and scope <= key.scope
                    and not entry.result.is_expired()
                ):
                    return entry
        return None
