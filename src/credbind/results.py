"""
Token acquisition results.

An :class:`AuthenticationResultEx` wraps the public result with what the
grant handlers need for bookkeeping: the scope echoed by the server and the
cache-store decision.
"""

from __future__ import annotations

import base64
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional

from credbind.exceptions import ProtocolError
from credbind.scopes import scope_from_string

logger = logging.getLogger(__name__)


@dataclass
class UserInfo:
    """Identity of the user a token was issued to."""

    unique_id: Optional[str] = None
    displayable_id: Optional[str] = None

    @classmethod
    def from_id_token_claims(cls, claims: Mapping[str, Any]) -> UserInfo:
        return cls(
            unique_id=claims.get("oid") or claims.get("sub"),
            displayable_id=(
                claims.get("preferred_username") or claims.get("upn") or claims.get("email")
            ),
        )


@dataclass
class AuthenticationResult:
    access_token: str
    expires_on: datetime
    token_type: str = "Bearer"
    id_token: Optional[str] = None
    tenant_id: Optional[str] = None
    user: Optional[UserInfo] = None

    def is_expired(self, buffer_seconds: int = 300) -> bool:
        """Check if the token expires within ``buffer_seconds``."""
        threshold = datetime.now(timezone.utc) + timedelta(seconds=buffer_seconds)
        return self.expires_on <= threshold


@dataclass
class AuthenticationResultEx:
    """Result plus the bookkeeping decided while post-processing it."""

    result: AuthenticationResult
    scope_in_response: Optional[frozenset[str]] = None
    refresh_token: Optional[str] = None
    store_to_cache: bool = False
    scope_from_response: bool = False
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_token_response(cls, payload: Mapping[str, Any]) -> AuthenticationResultEx:
        """Build a result from a token endpoint JSON body.

        Raises:
            ProtocolError: If the body carries an OAuth2 error or no access token.
        """
        if "error" in payload:
            raise ProtocolError(
                "Token endpoint returned an error",
                error_code=payload.get("error"),
                error_description=payload.get("error_description"),
            )
        access_token = payload.get("access_token")
        if not access_token:
            raise ProtocolError("Token response is missing access_token", error_code="invalid_response")

        try:
            expires_in = int(payload.get("expires_in", 3600))
        except (TypeError, ValueError) as e:
            raise ProtocolError(f"Invalid expires_in: {e}", error_code="invalid_response") from e

        id_token = payload.get("id_token")
        claims = decode_id_token_claims(id_token) if id_token else {}
        user = UserInfo.from_id_token_claims(claims) if claims else None

        scope = payload.get("scope")
        known = {"access_token", "expires_in", "token_type", "id_token", "scope", "refresh_token"}
        return cls(
            result=AuthenticationResult(
                access_token=access_token,
                expires_on=datetime.now(timezone.utc) + timedelta(seconds=expires_in),
                token_type=payload.get("token_type", "Bearer"),
                id_token=id_token,
                tenant_id=claims.get("tid"),
                user=user,
            ),
            scope_in_response=scope_from_string(scope) if scope is not None else None,
            refresh_token=payload.get("refresh_token"),
            extra={k: v for k, v in payload.items() if k not in known},
        )


def decode_id_token_claims(id_token: str) -> dict[str, Any]:
    """Decode the claims segment of an id token without verifying it.

    The id token arrives over the authenticated token endpoint channel; it is
    read only to identify the user. Malformed tokens yield no claims.
    """
    parts = id_token.split(".")
    if len(parts) < 2:
        logger.warning("Ignoring malformed id_token")
        return {}
    segment = parts[1] + "=" * (-len(parts[1]) % 4)
    try:
        claims = json.loads(base64.urlsafe_b64decode(segment))
    except (ValueError, json.JSONDecodeError):
        logger.warning("Ignoring id_token with undecodable claims")
        return {}
    return claims if isinstance(claims, dict) else {}
