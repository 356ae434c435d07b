"""
Structured diagnostics recorded while loading configuration.

Every non-fatal problem (missing file, parse failure, unrecognized backend
client, failed secret lookup) is logged by the component that detects it and
also recorded as a Diagnostic, so callers can inspect what happened without
scraping logs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum


class LoadStage(Enum):
    """Stages of the linear load pipeline."""

    START = "start"
    RESOLVE_BASE_DIR = "resolve_base_dir"
    MERGE_FILES = "merge_files"
    RESOLVE_PROVIDER = "resolve_provider"
    RESOLVE_SECRETS = "resolve_secrets"
    DONE = "done"


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A single non-fatal event recorded during a load."""

    stage: LoadStage
    level: int
    message: str
    path: str | None = None
    source: str | None = None
    error: Exception | None = None

    @property
    def is_problem(self) -> bool:
        """True for warnings and errors; debug/info events are informational."""
        return self.level >= logging.WARNING

    def __str__(self) -> str:
        where = f" [{self.path}]" if self.path else ""
        return f"{logging.getLevelName(self.level)} {self.stage.value}{where}: {self.message}"


@dataclass(frozen=True, slots=True)
class ResolutionFailure:
    """A secret reference that could not be resolved; the original string stays in the tree."""

    path: str
    reference: str
    error: Exception

    def to_diagnostic(self) -> Diagnostic:
        return Diagnostic(
            stage=LoadStage.RESOLVE_SECRETS,
            level=logging.ERROR,
            message=f"Failed to load secret [{self.path}]: {self.error}",
            path=self.path,
            error=self.error,
        )
