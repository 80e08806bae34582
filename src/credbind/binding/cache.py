"""
Once-only binding state.

A process owns a single :class:`BindingContext`. It holds the binding
certificate cache and the credential binding service slot; both are filled at
most once, under a lock, no matter how many threads race on first access.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Callable, Generic, Optional, TypeVar

if TYPE_CHECKING:
    from credbind.binding.certificate import BindingCertificate
    from credbind.binding.service import CredentialBindingService

T = TypeVar("T")


class LazyValue(Generic[T]):
    """A value initialised at most once.

    Readers first check without the lock; only callers that find the value
    missing take the lock, check again and run the factory. A failing factory
    leaves the value unset.
    """

    def __init__(self) -> None:
        self._value: Optional[T] = None
        self._lock = threading.Lock()

    @property
    def value(self) -> Optional[T]:
        return self._value

    @property
    def is_set(self) -> bool:
        return self._value is not None

    def get_or_init(self, factory: Callable[[], T]) -> T:
        value = self._value
        if value is not None:
            return value

        with self._lock:
            if self._value is None:
                self._value = factory()
            return self._value


class CertificateCache:
    """Holds at most one binding certificate for the lifetime of its context."""

    def __init__(self) -> None:
        self._certificate: LazyValue[BindingCertificate] = LazyValue()

    @property
    def certificate(self) -> Optional[BindingCertificate]:
        """The cached certificate, or ``None`` before first generation."""
        return self._certificate.value

    def get_or_add(self, factory: Callable[[], BindingCertificate]) -> BindingCertificate:
        return self._certificate.get_or_init(factory)


class BindingContext:
    """Per-process owner of the certificate cache and binding service.

    Pass an explicit context through :class:`~credbind.context.ServiceBundle`
    to isolate callers (tests, multi-tenant hosts); otherwise the shared
    :meth:`process_default` instance is used.
    """

    _default: Optional[BindingContext] = None
    _default_lock = threading.Lock()

    def __init__(self) -> None:
        self.certificate_cache = CertificateCache()
        self.service: LazyValue[CredentialBindingService] = LazyValue()

    @classmethod
    def process_default(cls) -> BindingContext:
        with cls._default_lock:
            if cls._default is None:
                cls._default = cls()
            return cls._default
