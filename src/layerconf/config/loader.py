"""
Configuration loading.

Runs the load pipeline: resolve the base directory, merge the config files,
pick the secret provider, resolve secret references. Only a base directory
that cannot be computed is fatal; every other problem is logged, recorded as
a diagnostic and the pipeline carries on with what it has.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from layerconf.config.merger import FileMerger
from layerconf.config.options import LoadOptions
from layerconf.config.paths import resolve_base_directory
from layerconf.diagnostics import Diagnostic, LoadStage
from layerconf.exceptions import SecretResolutionError
from layerconf.providers.base import SecretProvider
from layerconf.providers.factory import ProviderFactory
from layerconf.resolver import SecretResolver, find_secret_references
from layerconf.utils.async_utils import dual
from layerconf.utils.logging import get_logger


@dataclass(frozen=True)
class ResolvedConfig:
    """
    Result of a load.

    ``data`` is the merged tree with secrets substituted. Ownership passes to
    the caller; the loader keeps no reference to it.
    """

    data: dict[str, Any]
    diagnostics: tuple[Diagnostic, ...] = ()
    base_directory: Path | None = None
    loaded_files: tuple[Path, ...] = ()
    provider: SecretProvider | None = field(default=None, repr=False)

    @property
    def failures(self) -> list[Diagnostic]:
        """Secret references that could not be resolved."""
        return [d for d in self.diagnostics if d.stage is LoadStage.RESOLVE_SECRETS and d.is_problem]

    @property
    def ok(self) -> bool:
        """True when nothing at warning level or above was recorded."""
        return not any(d.is_problem for d in self.diagnostics)

    def unresolved_references(self) -> list[str]:
        """Dotted paths whose values still match the active provider's reference syntax."""
        if self.provider is None:
            return []
        return find_secret_references(self.data, self.provider)

    def raise_for_failures(self) -> None:
        """
        Raise if any secret reference failed to resolve.

        Raises:
            SecretResolutionError: Listing every failed dotted path
        """
        failures = self.failures
        if failures:
            raise SecretResolutionError(
                [d.path or "" for d in failures],
                [d.error for d in failures if d.error is not None],
            )


class ConfigLoader:
    """
    Orchestrates a configuration load.

    Components can be injected (for tests or custom behaviour); by default
    each gets a fresh instance sharing the loader's logger hierarchy.
    """

    def __init__(
        self,
        logger: logging.Logger | None = None,
        merger: FileMerger | None = None,
        factory: ProviderFactory | None = None,
        resolver: SecretResolver | None = None,
    ) -> None:
        self.logger = logger or get_logger("layerconf.loader")
        self.merger = merger or FileMerger()
        self.factory = factory or ProviderFactory()
        self._resolver = resolver

    async def load(self, options: LoadOptions) -> ResolvedConfig:
        """
        Load, merge and resolve configuration.

        Args:
            options: Load options

        Returns:
            ResolvedConfig; ``data`` is an empty dict in the worst case

        Raises:
            BaseDirectoryError: If the base directory cannot be computed
        """
        diagnostics: list[Diagnostic] = []
        self._enter(LoadStage.START)

        self._enter(LoadStage.RESOLVE_BASE_DIR)
        base_directory = resolve_base_directory(options.root)
        if options.root is None:
            self.logger.debug(f"No base directory specified, using: {base_directory}")

        self._enter(LoadStage.MERGE_FILES)
        merged = self.merger.merge(base_directory, options.files, options.file_type)
        diagnostics.extend(merged.diagnostics)
        tree = merged.tree

        self._enter(LoadStage.RESOLVE_PROVIDER)
        resolution = self.factory.resolve(options.provider, options.client)
        diagnostics.extend(resolution.diagnostics)
        provider = resolution.provider

        if provider is not None:
            self._enter(LoadStage.RESOLVE_SECRETS)
            resolver = self._resolver or SecretResolver(max_concurrency=options.max_concurrency)
            failures = await resolver.resolve_tree(tree, provider)
            diagnostics.extend(failure.to_diagnostic() for failure in failures)

        self._enter(LoadStage.DONE)
        problems = sum(1 for d in diagnostics if d.is_problem)
        self.logger.info(
            f"Loaded configuration from {len(merged.loaded_files)}/{len(options.files)} file(s) "
            f"in {base_directory} ({problems} problem(s))"
        )

        return ResolvedConfig(
            data=tree,
            diagnostics=tuple(diagnostics),
            base_directory=base_directory,
            loaded_files=tuple(merged.loaded_files),
            provider=provider,
        )

    async def load_provider(self, options: LoadOptions) -> SecretProvider | None:
        """Resolve just the secret provider the options describe."""
        return self.factory.resolve(options.provider, options.client).provider

    def create_config_factory(self, options: LoadOptions) -> Callable[[], Awaitable[dict[str, Any]]]:
        """
        Create a config factory for hosts that accept async config callables.

        Each call runs a fresh load and returns the resolved data dict.
        """

        async def config_factory() -> dict[str, Any]:
            return (await self.load(options)).data

        return config_factory

    def _enter(self, stage: LoadStage) -> None:
        self.logger.debug(f"Load stage: {stage.value}")


@dual
async def load(options: LoadOptions | None = None, **kwargs: Any) -> ResolvedConfig:
    """
    Load layered configuration and resolve secret references.

    Blocks when called from synchronous code; returns an awaitable inside a
    running event loop.

    Args:
        options: Load options; alternatively pass LoadOptions fields as keywords
        **kwargs: LoadOptions fields (``files``, ``root``, ``file_type``,
            ``provider``, ``client``, ``max_concurrency``)

    Returns:
        ResolvedConfig

    Example:
        config = load(files=["settings.yaml", "settings.local.yaml"], root="./config",
                      provider="AwsParameterStoreProvider", client=boto3.client("ssm"))
        config.data["db"]["password"]
    """
    if options is None:
        options = LoadOptions(**kwargs)
    elif kwargs:
        raise TypeError("Pass either a LoadOptions instance or keyword arguments, not both")
    return await ConfigLoader().load(options)
