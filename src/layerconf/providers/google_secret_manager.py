"""
Google Cloud Secret Manager provider.
"""

from __future__ import annotations

import logging
import re

from layerconf.exceptions import ProviderError, SecretNotFoundError
from layerconf.providers.base import SecretProvider


class GoogleSecretManagerProvider(SecretProvider):
    """
    Secret Manager provider wrapping a ``SecretManagerServiceClient``.

    References are full version resource names:
    ``projects/<project>/secrets/<secret>/versions/<version|latest>``.
    """

    name = "GoogleSecretManagerProvider"
    pattern = re.compile(r"^projects/[^/]+/secrets/[^/]+/versions/[^/]+$")
    required_methods = ("access_secret_version",)

    @classmethod
    def from_defaults(cls, logger: logging.Logger | None = None) -> GoogleSecretManagerProvider:
        """Build a provider around a default ``SecretManagerServiceClient`` (ADC credentials)."""
        try:
            from google.cloud import secretmanager
        except ImportError as e:
            raise ProviderError(
                "google-cloud-secret-manager is required for Google Secret Manager. Install 'layerconf[gcp]'."
            ) from e

        return cls(secretmanager.SecretManagerServiceClient(), logger=logger)

    async def resolve_secret(self, secret_ref: str) -> str:
        """
        Resolve a secret version name to its payload as text.

        Raises:
            SecretNotFoundError: If the response carries no payload or no data
        """
        response = await self._call_backend("access_secret_version", request={"name": secret_ref})

        payload = getattr(response, "payload", None) if response is not None else None
        if payload is None:
            raise SecretNotFoundError("Secret payload is missing", reference=secret_ref)

        data = getattr(payload, "data", None)
        if not data:
            raise SecretNotFoundError("Secret payload data is missing", reference=secret_ref)

        if isinstance(data, (bytes, bytearray)):
            return bytes(data).decode("utf-8")
        return str(data)
