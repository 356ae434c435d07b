"""
layerconf - layered YAML/JSON configuration with cloud secret resolution.
"""

__version__ = "0.1.0"

# Loading
from layerconf.config.loader import ConfigLoader, ResolvedConfig, load
from layerconf.config.options import LoadOptions

# Diagnostics
from layerconf.diagnostics import Diagnostic, LoadStage, ResolutionFailure

# Exceptions
from layerconf.exceptions import (
    BaseDirectoryError,
    ConfigFileError,
    ConfigurationError,
    LayerconfError,
    ProviderError,
    SecretError,
    SecretNotFoundError,
    SecretReferenceError,
    SecretResolutionError,
    UnsupportedProviderError,
)

# Providers
from layerconf.providers import (
    AwsParameterStoreProvider,
    AwsSecretsManagerProvider,
    AzureKeyVaultProvider,
    GoogleSecretManagerProvider,
    ProviderFactory,
    ProviderType,
    SecretProvider,
)
from layerconf.resolver import SecretResolver, find_secret_references

# Logging utilities
from layerconf.utils.logging import get_logger, setup_logging, setup_logging_from_config

__all__ = [
    # Loading
    "load",
    "ConfigLoader",
    "LoadOptions",
    "ResolvedConfig",
    # Resolution
    "SecretResolver",
    "find_secret_references",
    # Providers
    "SecretProvider",
    "ProviderFactory",
    "ProviderType",
    "AwsParameterStoreProvider",
    "AwsSecretsManagerProvider",
    "AzureKeyVaultProvider",
    "GoogleSecretManagerProvider",
    # Diagnostics
    "Diagnostic",
    "LoadStage",
    "ResolutionFailure",
    # Logging
    "setup_logging",
    "setup_logging_from_config",
    "get_logger",
    # Exceptions
    "LayerconfError",
    "ConfigurationError",
    "BaseDirectoryError",
    "ConfigFileError",
    "ProviderError",
    "UnsupportedProviderError",
    "SecretError",
    "SecretReferenceError",
    "SecretNotFoundError",
    "SecretResolutionError",
]
