"""
Base directory resolution.

Config filenames are resolved relative to a base directory, computed from an
optional ``root`` and the application root:

- no root          -> <app_root>/config
- absolute path    -> used as-is
- ./x, ../x, ., .. -> relative to the current working directory
- bare name        -> relative to the application root
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from layerconf.exceptions import BaseDirectoryError

DEFAULT_CONFIG_DIR = "config"

# Trailing build/source segments stripped from the start directory
_BUILD_DIRS = ("dist",)
_SOURCE_DIRS = ("src", "lib")

# Install locations; the application root is whatever contains them
_INSTALL_DIRS = ("node_modules", "site-packages", "dist-packages")

_CWD_PREFIXES = ("./", "../", ".\\", "..\\")


def _entry_point_dir() -> Path:
    """Directory of the running ``__main__`` script, or the working directory."""
    main = sys.modules.get("__main__")
    main_file = getattr(main, "__file__", None)
    if main_file:
        return Path(main_file).resolve().parent
    return Path.cwd()


def find_app_root(start: str | os.PathLike[str] | None = None) -> Path:
    """
    Find the application root directory.

    Starting from ``start`` (default: the entry script's directory), step up
    past a trailing ``dist`` segment, then past a trailing ``src`` or ``lib``
    segment, then cut the path before any package install directory
    (``node_modules``, ``site-packages``, ``dist-packages``).

    Args:
        start: Directory to start from

    Returns:
        Application root path

    Raises:
        BaseDirectoryError: If the start directory cannot be computed
    """
    try:
        current = Path(start) if start is not None else _entry_point_dir()
    except OSError as e:
        raise BaseDirectoryError(f"Cannot determine application root: {e}", cause=e) from e

    if current.name in _BUILD_DIRS:
        current = current.parent
    if current.name in _SOURCE_DIRS:
        current = current.parent

    parts = current.parts
    for index, part in enumerate(parts):
        if part in _INSTALL_DIRS:
            current = Path(*parts[:index]) if index else Path(parts[0])
            break

    return current


def _is_cwd_relative(root: str) -> bool:
    return root in (".", "..") or root.startswith(_CWD_PREFIXES)


def resolve_base_directory(
    root: str | os.PathLike[str] | None = None,
    *,
    app_root: str | os.PathLike[str] | None = None,
) -> Path:
    """
    Resolve the base directory for configuration files.

    Args:
        root: Optional base directory (absolute, ./-relative, or bare name)
        app_root: Application root override (default: ``find_app_root()``)

    Returns:
        Base directory path. Existence is not checked.

    Raises:
        BaseDirectoryError: If the working directory or application root
            cannot be computed
    """
    if root is not None and not isinstance(root, (str, os.PathLike)):
        raise BaseDirectoryError(
            f"Config root must be a path or string, got {type(root).__name__}",
            root=repr(root),
        )

    root_str = os.fspath(root) if root is not None else ""

    if root_str and Path(root_str).is_absolute():
        return Path(root_str)

    if root_str and _is_cwd_relative(root_str):
        try:
            return (Path.cwd() / root_str).resolve()
        except OSError as e:
            raise BaseDirectoryError(
                f"Cannot resolve config root '{root_str}' against the working directory: {e}",
                root=root_str,
                cause=e,
            ) from e

    base = Path(app_root) if app_root is not None else find_app_root()
    return base / (root_str or DEFAULT_CONFIG_DIR)
