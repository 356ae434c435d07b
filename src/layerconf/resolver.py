"""
Secret reference resolution over a configuration tree.

Walks every mapping level of the tree and replaces each string value the
provider recognizes as a secret reference with the resolved secret. Lists
are not descended into: only string values held directly by a mapping are
candidates.

Each failing leaf is isolated: the error is logged with its dotted key path,
recorded as a ResolutionFailure and the original reference string stays in
place. Sibling leaves resolve regardless.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from layerconf.config.options import DEFAULT_MAX_CONCURRENCY
from layerconf.diagnostics import ResolutionFailure
from layerconf.providers.base import SecretProvider
from layerconf.utils.logging import get_logger


@dataclass(frozen=True, slots=True)
class _Leaf:
    """A string value slot: the mapping that owns it and its key."""

    parent: dict[str, Any]
    key: str
    path: str
    reference: str


def _join(prefix: str, key: Any) -> str:
    return f"{prefix}.{key}" if prefix else str(key)


def _iter_string_leaves(tree: dict[str, Any], prefix: str = "") -> Iterator[tuple[dict[str, Any], str, str, str]]:
    """Yield (parent, key, dotted path, value) for string values at mapping levels."""
    for key, value in tree.items():
        path = _join(prefix, key)
        if isinstance(value, str):
            yield tree, key, path, value
        elif isinstance(value, dict):
            yield from _iter_string_leaves(value, path)


def find_secret_references(tree: dict[str, Any], provider: SecretProvider) -> list[str]:
    """
    List dotted paths of values that still look like secret references.

    Useful for post-validating a load when unresolved secrets must be fatal.

    Args:
        tree: Configuration tree
        provider: Provider whose reference syntax to check

    Returns:
        Dotted key paths, in tree order
    """
    return [path for _, _, path, value in _iter_string_leaves(tree) if provider.is_secret_reference(value)]


class SecretResolver:
    """Resolves secret references in a configuration tree, in place."""

    def __init__(
        self,
        logger: logging.Logger | None = None,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ) -> None:
        """
        Initialize resolver.

        Args:
            logger: Optional logger (default: ``layerconf.resolver``)
            max_concurrency: Maximum concurrent backend lookups; 1 serializes
                them for clients that are not safe for concurrent use
        """
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be at least 1, got {max_concurrency}")
        self.logger = logger or get_logger("layerconf.resolver")
        self.max_concurrency = max_concurrency

    async def resolve_tree(self, tree: dict[str, Any], provider: SecretProvider) -> list[ResolutionFailure]:
        """
        Replace every secret reference in ``tree`` with its value.

        Args:
            tree: Configuration tree, mutated in place
            provider: Active secret provider

        Returns:
            Failures in tree order; empty when every reference resolved
        """
        leaves = [
            _Leaf(parent=parent, key=key, path=path, reference=value)
            for parent, key, path, value in _iter_string_leaves(tree)
            if provider.is_secret_reference(value)
        ]
        if not leaves:
            self.logger.debug("No secret references found")
            return []

        self.logger.debug(f"Resolving {len(leaves)} secret reference(s) with max_concurrency={self.max_concurrency}")
        semaphore = asyncio.Semaphore(self.max_concurrency)
        outcomes = await asyncio.gather(*(self._resolve_leaf(leaf, provider, semaphore) for leaf in leaves))
        return [failure for failure in outcomes if failure is not None]

    async def _resolve_leaf(
        self,
        leaf: _Leaf,
        provider: SecretProvider,
        semaphore: asyncio.Semaphore,
    ) -> ResolutionFailure | None:
        async with semaphore:
            try:
                value = provider.resolve_secret(leaf.reference)
                if inspect.isawaitable(value):
                    value = await value
            except Exception as e:
                self.logger.error(f"Failed to load secret [{leaf.path}]: {e}")
                return ResolutionFailure(path=leaf.path, reference=leaf.reference, error=e)

        leaf.parent[leaf.key] = list(value) if isinstance(value, (list, tuple)) else value
        self.logger.debug(f"Loaded secret from provider [{leaf.path}]")
        return None
