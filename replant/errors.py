"""Custom exception hierarchy for replant.

All replant-specific exceptions derive from ReplantError. Each exception
carries an optional ``context`` dict with structured metadata
(project path, manifest path, module id, etc.) that the CLI error
handler can render.

Exceptions are reserved for programmer errors and for conditions the
pipeline cannot recover from. Acquisition failures (clone, missing
export file) are reported as structured results at the public boundary.

Exception hierarchy::

    ReplantError
    ├── ManifestNotFoundError
    ├── ExportNotFoundError
    ├── ProjectPathError
    ├── ProjectNotFoundError
    ├── RebuildError
    └── ConfigError
"""
from __future__ import annotations

from typing import Optional


class ReplantError(Exception):
    """Base class for all replant exceptions.

    Args:
        message: Human-readable error description.
        context: Optional dict of structured metadata.
    """

    exit_code: int = 1

    def __init__(self, message: str, context: Optional[dict] = None):
        self.context = context or {}
        super().__init__(message)


# ── Acquisition ────────────────────────────────────────────────────

class ManifestNotFoundError(ReplantError):
    """Raised when a project has no pubspec.yaml."""

    def __init__(self, manifest_path: str):
        super().__init__(
            f"pubspec.yaml not found at {manifest_path}",
            context={"manifest": manifest_path},
        )


class ExportNotFoundError(ReplantError):
    """Raised when a flattened export file does not exist."""

    def __init__(self, file_path: str):
        super().__init__(
            f"Export file not found: {file_path}",
            context={"file": file_path},
        )


class ProjectPathError(ReplantError):
    """Raised when a project directory or its lib/ folder is missing."""

    def __init__(self, message: str, project_path: str = ""):
        super().__init__(message, context={"project": project_path})


class AnalysisDepthError(ReplantError):
    """Raised when an analysis depth is not shallow, medium or deep."""

    def __init__(self, depth: str, expected: tuple[str, ...]):
        super().__init__(
            f"Unknown analysis depth: {depth} (expected one of {', '.join(expected)})",
            context={"depth": depth},
        )


# ── Rebuild ────────────────────────────────────────────────────────

class ProjectNotFoundError(ReplantError):
    """Raised when a project id is unknown to the project engine."""

    def __init__(self, project_id: str):
        super().__init__(
            f"Project not found: {project_id}",
            context={"project_id": project_id},
        )


class RebuildError(ReplantError):
    """Raised for unrecoverable rebuild conditions."""

    def __init__(self, message: str, output_path: str = "", module_id: str = ""):
        super().__init__(
            message,
            context={"output": output_path, "module": module_id},
        )


class ConfigError(ReplantError):
    """Raised when configuration is invalid or missing."""
    pass
