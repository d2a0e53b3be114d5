"""Classification of old metadata files in a repodata directory.

Old metadata is not referenced by repomd.xml, so it can only be recognized
by filename. Only primary, filelists and other metadata (XML and sqlite)
take part in retention. Anything else in the directory is ignored.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .diagnostics import DiagnosticSink, Reporter
from .fsutil import list_dir

# Timestamp used for files whose mtime cannot be read (sorts as oldest)
MISSING_MTIME = 1


class Category(Enum):
    """Metadata kinds subject to retention, in matching priority order."""

    PRIMARY_XML = "primary.xml"
    PRIMARY_DB = "primary.sqlite"
    FILELISTS_XML = "filelists.xml"
    FILELISTS_DB = "filelists.sqlite"
    OTHER_XML = "other.xml"
    OTHER_DB = "other.sqlite"

    @property
    def pattern(self) -> str:
        """Suffix the extension-stripped filename must end with."""
        return self.value

    @property
    def label(self) -> str:
        return self.name.lower().replace("_", "-")


@dataclass(frozen=True)
class ClassifiedFile:
    """An old metadata file with its modification time."""

    path: Path
    mtime: int

    @property
    def name(self) -> str:
        return self.path.name


def classify_filename(filename: str) -> Category | None:
    """Return the category of a metadata filename, or None.

    The last extension is stripped first, so ``abc-primary.xml.gz`` and
    ``abc-primary.sqlite.bz2`` are matched as ``abc-primary.xml`` and
    ``abc-primary.sqlite``. Names without any ``.`` are never classified.
    """
    stem, dot, _ = filename.rpartition(".")
    if not dot:
        return None

    for category in Category:
        if stem.endswith(category.pattern):
            return category

    return None


def resolve_mtime(path: Path, sink: DiagnosticSink | None = None) -> int:
    """Return the integer mtime of path, or MISSING_MTIME if unreadable."""
    try:
        return int(os.stat(path).st_mtime)
    except OSError as e:
        Reporter(sink).debug(
            f"Cannot stat {path}: {e.strerror or e}; treating it as oldest",
            path,
        )
        return MISSING_MTIME


def scan_old_metadata(
    repodata_dir: Path,
    sink: DiagnosticSink | None = None,
) -> dict[Category, list[ClassifiedFile]]:
    """Group the metadata files of a directory by category.

    Every category is present in the result. Each list is ordered by mtime,
    most recent first. Files with equal mtimes keep the order in which the
    directory listing returned them, which the OS does not define.

    Args:
        repodata_dir: Directory to scan (not recursive)
        sink: Receives a debug diagnostic for each unreadable file

    Returns:
        Dict mapping every Category to its list of ClassifiedFile

    Raises:
        OSError: If the directory cannot be listed
    """
    repodata_dir = Path(repodata_dir)
    sequences: dict[Category, list[ClassifiedFile]] = {c: [] for c in Category}

    for filename in list_dir(repodata_dir):
        category = classify_filename(filename)
        if category is None:
            continue

        path = repodata_dir / filename
        sequences[category].append(
            ClassifiedFile(path=path, mtime=resolve_mtime(path, sink))
        )

    for files in sequences.values():
        # list.sort is stable: ties keep discovery order
        files.sort(key=lambda f: f.mtime, reverse=True)

    return sequences
