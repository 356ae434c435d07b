"""
layerconf exception hierarchy.

All domain-specific exceptions inherit from LayerconfError, making it easy
to catch any library error with a single base class while still allowing
fine-grained handling when needed.

Hierarchy::

    LayerconfError
    ├── ConfigurationError          - config loading
    │   ├── BaseDirectoryError      - base directory cannot be computed (fatal)
    │   └── ConfigFileError         - a config file could not be read or parsed
    ├── ProviderError               - provider construction, SDK availability
    │   └── UnsupportedProviderError - unknown provider tag or client type
    └── SecretError                 - secret resolution
        ├── SecretReferenceError    - malformed secret reference
        ├── SecretNotFoundError     - backend returned no value / empty value
        └── SecretResolutionError   - one or more references left unresolved

Only BaseDirectoryError ever escapes ``load()``. Everything else is recorded
as a diagnostic on the result and logged.
"""

from __future__ import annotations

from collections.abc import Sequence


class LayerconfError(Exception):
    """Base exception for all layerconf errors."""

    def __init__(self, message: str, *, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


# --- Configuration -----------------------------------------------------------


class ConfigurationError(LayerconfError):
    """Raised when configuration loading fails."""


class BaseDirectoryError(ConfigurationError):
    """Raised when the configuration base directory cannot be computed.

    This is the only fatal condition of a load: without a base directory
    no file path can be built.
    """

    def __init__(self, message: str, *, root: str | None = None, cause: Exception | None = None) -> None:
        super().__init__(message, details={"root": root})
        self.root = root
        if cause is not None:
            self.__cause__ = cause


class ConfigFileError(ConfigurationError):
    """Raised when a config file exists but cannot be read or parsed."""

    def __init__(self, path: str, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(f"Failed to load config from {path}: {message}", details={"path": path})
        self.path = path
        if cause is not None:
            self.__cause__ = cause


# --- Providers ---------------------------------------------------------------


class ProviderError(LayerconfError):
    """Raised when a secret provider cannot be constructed."""


class UnsupportedProviderError(ProviderError):
    """Raised when a provider tag or backend client is not recognized."""

    def __init__(self, message: str, *, provider: str | None = None, client_type: str | None = None) -> None:
        super().__init__(message, details={"provider": provider, "client_type": client_type})
        self.provider = provider
        self.client_type = client_type


# --- Secrets -----------------------------------------------------------------


class SecretError(LayerconfError):
    """Raised when a secret reference cannot be resolved."""


class SecretReferenceError(SecretError):
    """Raised when a secret reference string is malformed."""

    def __init__(self, reference: str, message: str) -> None:
        super().__init__(message, details={"reference": reference})
        self.reference = reference


class SecretNotFoundError(SecretError):
    """Raised when the backend has no value (or an empty value) for a reference."""

    def __init__(self, message: str, *, reference: str | None = None) -> None:
        super().__init__(message, details={"reference": reference})
        self.reference = reference


class SecretResolutionError(SecretError):
    """Raised on demand when one or more secret references stayed unresolved.

    Never raised by ``load()`` itself; see ``ResolvedConfig.raise_for_failures``.
    """

    def __init__(self, paths: Sequence[str], errors: Sequence[Exception] = ()) -> None:
        joined = ", ".join(paths)
        super().__init__(
            f"Failed to resolve {len(paths)} secret reference(s): {joined}",
            details={"paths": list(paths)},
        )
        self.paths = list(paths)
        self.errors = list(errors)
