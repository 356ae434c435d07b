"""
Abstract base class for secret providers.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from typing import Any, ClassVar

from layerconf.exceptions import ProviderError
from layerconf.utils.async_utils import call_maybe_async
from layerconf.utils.logging import get_logger

SecretValue = str | list[str]


class SecretProvider(ABC):
    """
    Recognizes and resolves provider-native secret reference strings.

    A provider holds nothing but a backend client handle; it keeps no state
    about the config tree. ``is_secret_reference`` is a pure syntactic check
    and ``resolve_secret`` performs a single backend round trip, surfacing
    backend errors unchanged (no retries).

    Subclasses set ``name`` (the provider type tag), ``pattern`` (the
    reference syntax) and ``required_methods`` (the client surface they call).
    ``detection_methods`` lists extra methods that only serve to tell the
    backend apart from others when no type tag is given.
    """

    name: ClassVar[str] = "custom"
    pattern: ClassVar[re.Pattern[str]]
    required_methods: ClassVar[tuple[str, ...]] = ()
    detection_methods: ClassVar[tuple[str, ...]] = ()

    def __init__(self, client: Any, logger: logging.Logger | None = None) -> None:
        """
        Initialize provider.

        Args:
            client: Backend SDK client (sync or asyncio flavour)
            logger: Optional logger (default: ``layerconf.providers.<name>``)
        """
        if client is None:
            raise ProviderError(f"{type(self).__name__} requires a backend client")
        self._client = client
        self.logger = logger or get_logger(f"layerconf.providers.{self.name}")

    @property
    def client(self) -> Any:
        """The wrapped backend client."""
        return self._client

    @classmethod
    def supports_client(cls, client: Any) -> bool:
        """Whether ``client`` exposes every method this provider calls."""
        return bool(cls.required_methods) and all(
            callable(getattr(client, method, None)) for method in cls.required_methods
        )

    @classmethod
    def matches_client(cls, client: Any) -> bool:
        """Whether ``client`` looks like this backend's SDK client (auto-detection probe)."""
        return cls.supports_client(client) and all(
            callable(getattr(client, method, None)) for method in cls.detection_methods
        )

    def is_secret_reference(self, value: str) -> bool:
        """
        Check whether ``value`` is a secret reference for this provider.

        Args:
            value: Candidate config value

        Returns:
            True if the value matches the provider's reference syntax
        """
        return isinstance(value, str) and self.pattern.match(value) is not None

    @abstractmethod
    async def resolve_secret(self, secret_ref: str) -> SecretValue:
        """
        Resolve a secret reference to its value.

        Args:
            secret_ref: Reference string accepted by ``is_secret_reference``

        Returns:
            The secret value, or a list of values for multi-value references

        Raises:
            SecretError: If the reference is malformed or the value is missing
            Exception: Backend errors propagate unchanged
        """

    async def _call_backend(self, method: str, *args: Any, **kwargs: Any) -> Any:
        """Invoke a client method, awaiting it or running it in a worker thread."""
        return await call_maybe_async(getattr(self._client, method), *args, **kwargs)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(client={type(self._client).__name__})"
