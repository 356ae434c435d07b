"""
Secret provider factory.

Turns the ``provider``/``client`` pair of a load into a SecretProvider:

- a SecretProvider instance is used as-is
- a type tag plus a client builds that provider around the client
- a client alone is matched against the registry by capability probe
  (which methods the client exposes), never by its class name
- nothing at all means no secret resolution

Anything that cannot be matched degrades to "no provider" with a warning
diagnostic rather than an error, so offline/local loads keep working.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from layerconf.diagnostics import Diagnostic, LoadStage
from layerconf.exceptions import UnsupportedProviderError
from layerconf.providers.aws_parameter_store import AwsParameterStoreProvider
from layerconf.providers.aws_secrets_manager import AwsSecretsManagerProvider
from layerconf.providers.azure_key_vault import AzureKeyVaultProvider
from layerconf.providers.base import SecretProvider
from layerconf.providers.google_secret_manager import GoogleSecretManagerProvider
from layerconf.utils.logging import get_logger


class ProviderType(str, Enum):
    """Known provider type tags."""

    AWS_PARAMETER_STORE = "AwsParameterStoreProvider"
    AWS_SECRETS_MANAGER = "AwsSecretsManagerProvider"
    AZURE_KEY_VAULT = "AzureKeyVaultProvider"
    GOOGLE_SECRET_MANAGER = "GoogleSecretManagerProvider"

    @classmethod
    def parse(cls, value: str | ProviderType) -> ProviderType:
        """
        Parse a tag or one of its short aliases (case-insensitive).

        Raises:
            UnsupportedProviderError: If the tag is not known
        """
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        provider_type = _ALIASES.get(key)
        if provider_type is None:
            raise UnsupportedProviderError(f"Unsupported secret provider: {value}", provider=str(value))
        return provider_type


_ALIASES: dict[str, ProviderType] = {
    "awsparameterstoreprovider": ProviderType.AWS_PARAMETER_STORE,
    "aws-parameter-store": ProviderType.AWS_PARAMETER_STORE,
    "ssm": ProviderType.AWS_PARAMETER_STORE,
    "awssecretsmanagerprovider": ProviderType.AWS_SECRETS_MANAGER,
    "aws-secrets-manager": ProviderType.AWS_SECRETS_MANAGER,
    "secretsmanager": ProviderType.AWS_SECRETS_MANAGER,
    "azurekeyvaultprovider": ProviderType.AZURE_KEY_VAULT,
    "azure-key-vault": ProviderType.AZURE_KEY_VAULT,
    "keyvault": ProviderType.AZURE_KEY_VAULT,
    "googlesecretmanagerprovider": ProviderType.GOOGLE_SECRET_MANAGER,
    "google-secret-manager": ProviderType.GOOGLE_SECRET_MANAGER,
    "gcp-secret-manager": ProviderType.GOOGLE_SECRET_MANAGER,
}

# Probe order matters: the first provider whose methods the client exposes wins
PROVIDER_REGISTRY: dict[ProviderType, type[SecretProvider]] = {
    ProviderType.AWS_PARAMETER_STORE: AwsParameterStoreProvider,
    ProviderType.AWS_SECRETS_MANAGER: AwsSecretsManagerProvider,
    ProviderType.AZURE_KEY_VAULT: AzureKeyVaultProvider,
    ProviderType.GOOGLE_SECRET_MANAGER: GoogleSecretManagerProvider,
}


def is_provider_instance(obj: Any) -> bool:
    """True for SecretProvider instances and objects with the same two methods."""
    if isinstance(obj, SecretProvider):
        return True
    if obj is None or isinstance(obj, (str, ProviderType)):
        return False
    return callable(getattr(obj, "is_secret_reference", None)) and callable(getattr(obj, "resolve_secret", None))


@dataclass
class ProviderResolution:
    """Outcome of resolving a provider; ``provider`` is None when resolution is skipped."""

    provider: SecretProvider | None = None
    diagnostics: list[Diagnostic] = field(default_factory=list)


class ProviderFactory:
    """Builds or passes through the secret provider for a load."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or get_logger("layerconf.providers.factory")

    def resolve(self, provider_spec: str | ProviderType | SecretProvider | None, client: Any = None) -> ProviderResolution:
        """
        Resolve the provider for a load.

        Args:
            provider_spec: Provider instance, type tag, or None
            client: Backend SDK client, or None

        Returns:
            ProviderResolution with the provider (or None) and diagnostics
        """
        result = ProviderResolution()

        if is_provider_instance(provider_spec):
            self.logger.debug(f"Using explicit secret provider {provider_spec!r}")
            result.provider = provider_spec
            return result

        if provider_spec is not None:
            try:
                provider_type = ProviderType.parse(provider_spec)
            except UnsupportedProviderError as e:
                self._warn(result, e.message, error=e)
                return result

            if client is None:
                self._warn(result, f"Secret provider '{provider_type.value}' requested without a client; skipping secret resolution")
                return result

            provider_cls = PROVIDER_REGISTRY[provider_type]
            if not provider_cls.supports_client(client):
                error = UnsupportedProviderError(
                    f"Client {type(client).__name__} does not support {provider_type.value} "
                    f"(requires: {', '.join(provider_cls.required_methods)})",
                    provider=provider_type.value,
                    client_type=type(client).__name__,
                )
                self._warn(result, error.message, error=error)
                return result

            result.provider = self._build(provider_cls, client)
            return result

        if client is None:
            self.logger.debug("No secret provider or client configured; secrets will not be resolved")
            return result

        provider_cls = self.detect(client)
        if provider_cls is None:
            error = UnsupportedProviderError(
                f"Unsupported secret provider: {type(client).__name__}",
                client_type=type(client).__name__,
            )
            self._warn(result, error.message, error=error)
            return result

        result.provider = self._build(provider_cls, client)
        return result

    @staticmethod
    def detect(client: Any) -> type[SecretProvider] | None:
        """Find the first provider class whose detection probe ``client`` passes."""
        for provider_cls in PROVIDER_REGISTRY.values():
            if provider_cls.matches_client(client):
                return provider_cls
        return None

    def _build(self, provider_cls: type[SecretProvider], client: Any) -> SecretProvider:
        self.logger.debug(f"Using {provider_cls.name} for client {type(client).__name__}")
        return provider_cls(client)

    def _warn(self, result: ProviderResolution, message: str, *, error: Exception | None = None) -> None:
        self.logger.warning(message)
        result.diagnostics.append(
            Diagnostic(stage=LoadStage.RESOLVE_PROVIDER, level=logging.WARNING, message=message, error=error)
        )
