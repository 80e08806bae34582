"""Service bundle and per-request context."""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING, Optional

from credbind.binding.cache import BindingContext

if TYPE_CHECKING:
    from credbind.binding.keys import KeyContainer
    from credbind.cache import TokenCache
    from credbind.config import ApplicationConfig
    from credbind.transport import TokenEndpointClient

logger = logging.getLogger("credbind")


class ServiceBundle:
    """Everything a client application shares across its token requests.

    Args:
        config: Application configuration.
        token_endpoint: Transport used to reach the token endpoint.
        token_cache: Shared token cache, or ``None`` to disable caching.
        key_container: Platform key container for binding keys, if available.
        binding_context: Owner of the binding certificate; defaults to the
            process-wide context.
    """

    def __init__(
        self,
        config: ApplicationConfig,
        token_endpoint: Optional[TokenEndpointClient] = None,
        token_cache: Optional[TokenCache] = None,
        key_container: Optional[KeyContainer] = None,
        binding_context: Optional[BindingContext] = None,
    ) -> None:
        self.config = config
        self.token_endpoint = token_endpoint
        self.token_cache = token_cache
        self.key_container = key_container
        self.binding_context = binding_context or BindingContext.process_default()


class RequestContext:
    """State carried through a single token acquisition."""

    def __init__(
        self,
        service_bundle: ServiceBundle,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.service_bundle = service_bundle
        self.correlation_id = correlation_id or str(uuid.uuid4())
        self.logger = logging.LoggerAdapter(logger, {"correlation_id": self.correlation_id})
