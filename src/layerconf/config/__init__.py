"""
Configuration management.

Base directory resolution, layered file merge, and the load pipeline.
"""

from layerconf.config.loader import ConfigLoader, ResolvedConfig, load
from layerconf.config.merger import FileMerger, MergeResult, deep_merge
from layerconf.config.options import LoadOptions
from layerconf.config.paths import find_app_root, resolve_base_directory

__all__ = [
    "load",
    "ConfigLoader",
    "ResolvedConfig",
    "LoadOptions",
    "FileMerger",
    "MergeResult",
    "deep_merge",
    "find_app_root",
    "resolve_base_directory",
]
