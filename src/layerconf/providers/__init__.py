"""
Secret providers.

AWS Parameter Store, AWS Secrets Manager, Azure Key Vault and Google Secret
Manager, plus the factory that picks one for a load.
"""

from layerconf.providers.aws_parameter_store import AwsParameterStoreProvider
from layerconf.providers.aws_secrets_manager import AwsSecretsManagerProvider
from layerconf.providers.azure_key_vault import AzureKeyVaultProvider
from layerconf.providers.base import SecretProvider, SecretValue
from layerconf.providers.factory import PROVIDER_REGISTRY, ProviderFactory, ProviderResolution, ProviderType
from layerconf.providers.google_secret_manager import GoogleSecretManagerProvider

__all__ = [
    "SecretProvider",
    "SecretValue",
    "ProviderFactory",
    "ProviderResolution",
    "ProviderType",
    "PROVIDER_REGISTRY",
    "AwsParameterStoreProvider",
    "AwsSecretsManagerProvider",
    "AzureKeyVaultProvider",
    "GoogleSecretManagerProvider",
]
