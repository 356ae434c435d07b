"""
Configuration file loading and deep merge.

Reads an ordered list of YAML/JSON files from a base directory and deep-merges
them, later files taking precedence. Loading is best effort: a missing file
is skipped and a file that fails to parse contributes nothing, so one bad
file never aborts application startup.
"""

from __future__ import annotations

import copy
import json
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from layerconf.config.options import FileType
from layerconf.diagnostics import Diagnostic, LoadStage
from layerconf.exceptions import ConfigFileError
from layerconf.utils.logging import get_logger

YAML_SUFFIXES = (".yml", ".yaml")


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """
    Recursively merge ``override`` on top of ``base``.

    Mappings merge key by key. Anything else in ``override`` (scalars and
    lists alike) replaces the ``base`` value wholesale; lists are never
    concatenated or merged by index. Neither input is modified and the
    result shares no mutable values with them.

    Args:
        base: Lower-precedence tree
        override: Higher-precedence tree

    Returns:
        New merged tree
    """
    merged: dict[str, Any] = copy.deepcopy(dict(base))
    _merge_into(merged, override)
    return merged


def _merge_into(base: dict[str, Any], override: Mapping[str, Any]) -> None:
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, Mapping):
            _merge_into(base[key], value)
        else:
            base[key] = copy.deepcopy(value)


def select_format(filename: str, file_type: FileType | None = None) -> FileType:
    """
    Pick the parser for a config file.

    An explicit ``"yaml"`` hint forces YAML for any filename, and a
    ``.yml``/``.yaml`` file is always YAML. Everything else is JSON.
    """
    if file_type == "yaml" or filename.lower().endswith(YAML_SUFFIXES):
        return "yaml"
    return "json"


def parse_config_text(text: str, fmt: FileType, source: str = "<string>") -> dict[str, Any]:
    """
    Parse config text into a tree.

    Args:
        text: File contents
        fmt: "yaml" or "json"
        source: Name used in error messages

    Returns:
        Parsed tree; empty for an empty document

    Raises:
        ConfigFileError: If the text is malformed or its top level is not a mapping
    """
    try:
        if fmt == "yaml":
            data = yaml.safe_load(text)
        else:
            data = json.loads(text) if text.strip() else None
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        if mark is not None:
            raise ConfigFileError(
                source,
                f"YAML error at line {mark.line + 1}, column {mark.column + 1}: {getattr(e, 'problem', e)}",
                cause=e,
            ) from e
        raise ConfigFileError(source, f"YAML error: {e}", cause=e) from e
    except json.JSONDecodeError as e:
        raise ConfigFileError(source, f"JSON error at line {e.lineno}, column {e.colno}: {e.msg}", cause=e) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigFileError(source, f"Top-level value must be a mapping, got {type(data).__name__}")
    return data


@dataclass
class MergeResult:
    """Outcome of merging a file list."""

    tree: dict[str, Any] = field(default_factory=dict)
    loaded_files: list[Path] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)


class FileMerger:
    """Loads config files in order and deep-merges them into one tree."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or get_logger("layerconf.merger")

    def merge(
        self,
        base_dir: str | Path,
        files: Sequence[str],
        file_type: FileType | None = None,
    ) -> MergeResult:
        """
        Load and merge ``files`` from ``base_dir``.

        Args:
            base_dir: Directory the filenames are relative to
            files: Filenames in precedence order (later files win)
            file_type: Optional parse hint, see ``select_format``

        Returns:
            MergeResult with the merged tree, the files that contributed and
            any diagnostics
        """
        result = MergeResult()
        base_dir = Path(base_dir)

        if not files:
            self._record(result, logging.WARNING, "No configuration files specified")
            return result

        if not base_dir.is_dir():
            self._record(
                result,
                logging.WARNING,
                f"Config directory does not exist: {base_dir}",
                source=str(base_dir),
            )

        for filename in files:
            path = base_dir / filename
            if not path.is_file():
                self._record(result, logging.DEBUG, f"Config file not found: {path}", source=str(path))
                continue

            try:
                self.logger.debug(f"Loading config from {path}")
                file_tree = self.load_file(path, file_type)
            except ConfigFileError as e:
                self._record(result, logging.ERROR, e.message, source=str(path), error=e)
                continue

            result.tree = deep_merge(result.tree, file_tree)
            result.loaded_files.append(path)

        return result

    def load_file(self, path: Path, file_type: FileType | None = None) -> dict[str, Any]:
        """
        Read and parse a single config file.

        Raises:
            ConfigFileError: If the file cannot be read or parsed
        """
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigFileError(str(path), str(e), cause=e) from e
        return parse_config_text(text, select_format(path.name, file_type), source=str(path))

    def _record(
        self,
        result: MergeResult,
        level: int,
        message: str,
        *,
        source: str | None = None,
        error: Exception | None = None,
    ) -> None:
        self.logger.log(level, message)
        result.diagnostics.append(
            Diagnostic(stage=LoadStage.MERGE_FILES, level=level, message=message, source=source, error=error)
        )
