"""Read a project directory into SourceFile records."""

from __future__ import annotations

import logging
from pathlib import Path

from replant.analyzers import dart_source
from replant.analyzers.models import SourceFile

logger = logging.getLogger(__name__)

MANIFEST_NAME = "pubspec.yaml"


def read_source_tree(root: Path) -> list[SourceFile]:
    """Collect Dart sources and pubspec.yaml under ``root``.

    Paths are POSIX and relative to ``root``. Hidden and build
    directories are skipped; unreadable files are logged and skipped.
    """
    root = Path(root)
    rel_paths = dart_source.discover_dart_files(root)
    if (root / MANIFEST_NAME).is_file():
        rel_paths.insert(0, MANIFEST_NAME)
    files = dart_source.load_files(root, rel_paths)
    logger.debug("Read %d files from %s", len(files), root)
    return files
