"""
Azure Key Vault provider.

References are secret identifier URLs:

- ``https://<vault-name>.vault.azure.net/secrets/<secret-name>``
- ``https://<vault-name>.vault.azure.net/secrets/<secret-name>/<version>``

The version segment is parsed but not passed to the lookup, so the latest
version is always returned.
"""

from __future__ import annotations

import logging
import re
from typing import NamedTuple

from layerconf.exceptions import ProviderError, SecretNotFoundError, SecretReferenceError
from layerconf.providers.base import SecretProvider


class KeyVaultReference(NamedTuple):
    vault_url: str
    name: str
    version: str | None


class AzureKeyVaultProvider(SecretProvider):
    """Key Vault provider wrapping an ``azure.keyvault.secrets.SecretClient``."""

    name = "AzureKeyVaultProvider"
    pattern = re.compile(r"^(https://[\w-]+\.vault\.azure\.net)/secrets/([^/\s]+)(?:/([^/\s]+))?$")
    required_methods = ("get_secret",)
    # Google's SecretManagerServiceClient also has get_secret
    detection_methods = ("list_properties_of_secrets",)

    @classmethod
    def from_defaults(cls, vault_url: str, logger: logging.Logger | None = None) -> AzureKeyVaultProvider:
        """Build a provider around a ``SecretClient`` using ``DefaultAzureCredential``."""
        try:
            from azure.identity import DefaultAzureCredential
            from azure.keyvault.secrets import SecretClient
        except ImportError as e:
            raise ProviderError(
                "azure-keyvault-secrets and azure-identity are required for Azure Key Vault. "
                "Install 'layerconf[azure]'."
            ) from e

        client = SecretClient(vault_url=vault_url, credential=DefaultAzureCredential())
        return cls(client, logger=logger)

    def parse_reference(self, secret_ref: str) -> KeyVaultReference:
        """
        Split a secret identifier URL into vault URL, secret name and version.

        Raises:
            SecretReferenceError: If the URL is not a Key Vault secret identifier
        """
        match = self.pattern.match(secret_ref)
        if not match:
            raise SecretReferenceError(
                secret_ref,
                f"Invalid Azure Key Vault secret reference: {secret_ref}. "
                f"Expected format: https://<vault-name>.vault.azure.net/secrets/<secret-name>[/<version>]",
            )

        reference = KeyVaultReference(vault_url=match.group(1), name=match.group(2), version=match.group(3))
        self.logger.debug(f"Parsed secret reference from vault: {reference.vault_url}, secret: {reference.name}")
        return reference

    async def resolve_secret(self, secret_ref: str) -> str:
        """
        Resolve a secret identifier URL to the secret's current value.

        Raises:
            SecretReferenceError: If the URL is malformed
            SecretNotFoundError: If the secret has no value
        """
        reference = self.parse_reference(secret_ref)

        # TODO: forward reference.version once pinned versions are wanted; today the latest is always fetched
        secret = await self._call_backend("get_secret", reference.name)

        value = getattr(secret, "value", None)
        if not value:
            raise SecretNotFoundError(
                f"Secret value is empty for '{reference.name}'",
                reference=secret_ref,
            )
        return value
