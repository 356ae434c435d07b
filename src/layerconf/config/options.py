"""
Load options.

The call surface of a load: which files, where they live, how to parse them
and which secret provider to resolve references with.
"""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal, Union

if TYPE_CHECKING:
    from layerconf.providers.base import SecretProvider
    from layerconf.providers.factory import ProviderType

FileType = Literal["yaml", "json"]
FILE_TYPES: tuple[str, ...] = ("yaml", "json")

ProviderSpec = Union[str, "ProviderType", "SecretProvider", None]

DEFAULT_MAX_CONCURRENCY = 8

# Keys accepted by LoadOptions.from_mapping, camelCase first
_MAPPING_KEYS = {
    "rootDirectory": "root",
    "root": "root",
    "directory": "root",
    "files": "files",
    "fileType": "file_type",
    "file_type": "file_type",
    "provider": "provider",
    "client": "client",
    "maxConcurrency": "max_concurrency",
    "max_concurrency": "max_concurrency",
}


@dataclass(frozen=True)
class LoadOptions:
    """
    Options for a single configuration load.

    Attributes:
        files: Config filenames in precedence order (later files win)
        root: Base directory; absolute, ``./``-relative to the working
            directory, or a bare name relative to the application root.
            Defaults to ``<app_root>/config``.
        file_type: Parse hint. ``"yaml"`` forces YAML for every file;
            otherwise the format follows each file's extension.
        provider: Provider type tag or an already-built SecretProvider
        client: Backend SDK client used to build (or detect) a provider
        max_concurrency: Upper bound on concurrent secret lookups
    """

    files: tuple[str, ...]
    root: str | os.PathLike[str] | None = None
    file_type: FileType | None = None
    provider: ProviderSpec = None
    client: Any = field(default=None, repr=False)
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY

    def __post_init__(self) -> None:
        if isinstance(self.files, (str, bytes)) or not isinstance(self.files, Sequence):
            raise TypeError(f"files must be a sequence of filenames, got {type(self.files).__name__}")
        object.__setattr__(self, "files", tuple(os.fspath(f) for f in self.files))

        if self.file_type is not None:
            normalized = str(self.file_type).lower()
            if normalized not in FILE_TYPES:
                raise ValueError(f"Unsupported file_type '{self.file_type}'. Must be one of: {', '.join(FILE_TYPES)}")
            object.__setattr__(self, "file_type", normalized)

        if self.max_concurrency < 1:
            raise ValueError(f"max_concurrency must be at least 1, got {self.max_concurrency}")

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> LoadOptions:
        """
        Build options from a plain mapping.

        Accepts camelCase keys (``rootDirectory``, ``fileType``) as well as
        the snake_case field names.

        Raises:
            ValueError: If an unknown key is present or ``files`` is missing
        """
        kwargs: dict[str, Any] = {}
        unknown = []
        for key, value in mapping.items():
            target = _MAPPING_KEYS.get(key)
            if target is None:
                unknown.append(key)
                continue
            kwargs[target] = value

        if unknown:
            raise ValueError(f"Unknown load option(s): {', '.join(sorted(unknown))}")
        if "files" not in kwargs:
            raise ValueError("Load options require 'files'")
        return cls(**kwargs)
