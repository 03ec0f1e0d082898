"""Shallow git clones into temporary directories.

``clone_repository`` never raises for clone failures; it returns a
CloneResult with ``success=False``. A successful clone owns a temporary
directory that the caller must release with ``cleanup_clone`` on every
terminal path.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import tempfile
from pathlib import Path

from replant.core import CloneResult

logger = logging.getLogger(__name__)

TEMP_PREFIX = "replant-git-"
DEFAULT_TIMEOUT = 300


def repo_name_from_url(url: str) -> str:
    """``https://github.com/acme/my-app.git`` -> ``my-app``."""
    tail = url.rstrip("/").replace(":", "/").split("/")[-1]
    if tail.endswith(".git"):
        tail = tail[: -len(".git")]
    return tail or "repo"


def directory_size(path: Path) -> int:
    """Total byte size of regular files under ``path``, excluding .git."""
    total = 0
    for dirpath, dirnames, filenames in os.walk(path):
        dirnames[:] = [d for d in dirnames if d != ".git"]
        for name in filenames:
            try:
                total += (Path(dirpath) / name).lstat().st_size
            except OSError:
                continue
    return total


def format_bytes(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


def _resolve_commit(repo_path: Path) -> str:
    try:
        proc = subprocess.run(
            ["git", "rev-parse", "HEAD"],
            cwd=repo_path,
            capture_output=True,
            text=True,
            timeout=30,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.warning("Could not resolve commit for %s: %s", repo_path, e)
        return "unknown"
    if proc.returncode != 0:
        return "unknown"
    return proc.stdout.strip() or "unknown"


def clone_repository(
    url: str,
    branch: str = "main",
    depth: int = 1,
    timeout: int = DEFAULT_TIMEOUT,
) -> CloneResult:
    """Shallow-clone ``url`` into a fresh temporary directory.

    Args:
        url: Repository URL (https or ssh).
        branch: Branch to check out.
        depth: History depth passed to ``git clone --depth``.
        timeout: Seconds before the clone is abandoned.

    Returns:
        CloneResult; on failure the temporary directory is already removed.
    """
    repo_name = repo_name_from_url(url)
    temp_root = tempfile.mkdtemp(prefix=TEMP_PREFIX)
    local_path = Path(temp_root) / repo_name
    logger.info("Cloning %s (branch: %s, depth: %d) to %s", url, branch, depth, local_path)

    def failed(message: str) -> CloneResult:
        logger.warning("Clone of %s failed: %s", url, message)
        shutil.rmtree(temp_root, ignore_errors=True)
        return CloneResult(
            success=False, repo_name=repo_name, branch=branch, error=message,
        )

    try:
        proc = subprocess.run(
            [
                "git", "clone",
                "--branch", branch,
                "--depth", str(depth),
                "--single-branch",
                "--", url, str(local_path),
            ],
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        return failed(f"git clone timed out ({timeout}s limit)")
    except FileNotFoundError:
        return failed("git is not installed or not in PATH")

    if proc.returncode != 0:
        return failed(proc.stderr.strip() or f"git clone failed with code {proc.returncode}")

    return CloneResult(
        success=True,
        local_path=str(local_path),
        repo_name=repo_name,
        branch=branch,
        commit=_resolve_commit(local_path),
        size=directory_size(local_path),
    )


def cleanup_clone(local_path: str | Path) -> None:
    """Remove a clone and its temporary root. Safe to call more than once."""
    if not local_path:
        return
    path = Path(local_path)
    # Remove the mkdtemp root, not just the checkout inside it
    target = path.parent if path.parent.name.startswith(TEMP_PREFIX) else path
    if not target.exists():
        return
    try:
        shutil.rmtree(target)
        logger.debug("Removed clone directory %s", target)
    except OSError as e:
        logger.warning("Failed to clean up %s: %s", target, e)
