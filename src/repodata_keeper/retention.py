"""Old metadata retention - decides which old repodata files survive.

A blacklist of basenames is computed by one of two strategies and then
either purged from a repository in place, or used to filter the files
copied from an old repodata directory into a freshly generated one.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from .diagnostics import Diagnostic, DiagnosticSink, Reporter
from .fsutil import copy_preserving, list_dir, remove_path
from .metadata import scan_old_metadata
from .repomd import REPOMD_FILENAME, Repomd, RepomdError, parse_repomd

REPODATA_DIRNAME = "repodata"

# -1 keeps everything, 0 keeps nothing
RETAIN_ALL = -1

Strategy = Literal["classic", "manifest"]


class RetentionError(Exception):
    """Error applying the retention policy."""


class InvalidRetainError(RetentionError, ValueError):
    """Retain count below -1."""


class RepodataIOError(RetentionError):
    """A repodata directory cannot be opened."""


@dataclass
class PurgeResult:
    """Result of purging old metadata from a repository."""

    repodata_dir: Path
    removed: list[str] = field(default_factory=list)
    failed: list[tuple[str, str]] = field(default_factory=list)  # (name, error)
    diagnostics: list[Diagnostic] = field(default_factory=list)
    dry_run: bool = False


@dataclass
class RetentionResult:
    """Result of carrying old metadata over into a new repodata directory."""

    old_dir: Path
    new_dir: Path
    copied: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)  # destination exists
    excluded: list[str] = field(default_factory=list)  # blacklisted
    failed: list[tuple[str, str]] = field(default_factory=list)  # (name, error)
    diagnostics: list[Diagnostic] = field(default_factory=list)
    source_missing: bool = False
    dry_run: bool = False


def _check_retain(retain: int) -> None:
    if retain < RETAIN_ALL:
        raise InvalidRetainError(
            f"Number of retained old metadata must be an integer >= -1, got {retain}"
        )


def select_classic(
    repodata_dir: Path,
    retain: int,
    sink: DiagnosticSink | None = None,
) -> set[str]:
    """Blacklist all but the ``retain`` newest files of every category.

    This mimics createrepo: old metadata lingers in repodata/ without being
    referenced by repomd.xml, so it is found by filename. Only primary,
    filelists and other metadata (and their sqlite databases) are counted;
    every other file is left alone.

    Args:
        repodata_dir: Directory holding the old metadata
        retain: -1 to keep everything, otherwise files to keep per category
        sink: Receives diagnostics

    Returns:
        Set of basenames to remove or not to copy

    Raises:
        InvalidRetainError: If retain < -1
        RepodataIOError: If repodata_dir cannot be listed
    """
    _check_retain(retain)
    if retain == RETAIN_ALL:
        return set()

    try:
        sequences = scan_old_metadata(Path(repodata_dir), sink)
    except OSError as e:
        raise RepodataIOError(
            f"Cannot open directory: {repodata_dir}: {e.strerror or e}"
        ) from e

    blacklist: set[str] = set()
    for files in sequences.values():
        blacklist.update(f.name for f in files[retain:])

    return blacklist


def select_manifest(
    repodata_dir: Path,
    retain: int,
    sink: DiagnosticSink | None = None,
) -> set[str]:
    """Blacklist every file referenced by the old repomd.xml.

    Only ``retain == 0`` blacklists anything; any other valid count keeps
    everything. Records with an ``xml:base`` live outside the local tree
    and are never touched. A missing or broken repomd.xml counts as an
    empty one.

    Raises:
        InvalidRetainError: If retain < -1
    """
    _check_retain(retain)
    if retain != 0:
        return set()

    reporter = Reporter(sink)
    repomd_path = Path(repodata_dir) / REPOMD_FILENAME
    try:
        repomd = parse_repomd(repomd_path)
    except RepomdError as e:
        reporter.warning(str(e), repomd_path)
        repomd = Repomd()

    blacklist: set[str] = set()
    for record in repomd.records:
        if not record.location_href:
            reporter.warning("Record without location href in old repo", repomd_path)
            continue

        if record.location_base:
            reporter.debug(
                "Old repomd record with base location is ignored: "
                f"{record.location_base} - {record.location_href}",
                repomd_path,
            )
            continue

        blacklist.add(os.path.basename(record.location_href))

    return blacklist


_SELECTORS: dict[str, Callable[[Path, int, DiagnosticSink | None], set[str]]] = {
    "classic": select_classic,
    "manifest": select_manifest,
}

STRATEGIES: tuple[str, ...] = tuple(_SELECTORS)


def select_blacklist(
    repodata_dir: Path,
    retain: int,
    strategy: Strategy = "classic",
    sink: DiagnosticSink | None = None,
) -> set[str]:
    """Compute the blacklist with the named strategy.

    Raises:
        ValueError: If the strategy is unknown
        InvalidRetainError: If retain < -1
        RepodataIOError: If the classic strategy cannot list repodata_dir
    """
    try:
        selector = _SELECTORS[strategy]
    except KeyError:
        raise ValueError(
            f"Unknown retention strategy '{strategy}' "
            f"(expected one of: {', '.join(STRATEGIES)})"
        ) from None

    return selector(repodata_dir, retain, sink)


def purge(
    repo_root: Path,
    retain: int,
    *,
    strategy: Strategy = "classic",
    dry_run: bool = False,
    sink: DiagnosticSink | None = None,
) -> PurgeResult:
    """Remove old metadata and repomd.xml from ``<repo_root>/repodata``.

    Removal is best effort: a file that cannot be removed is reported and
    the rest are still processed.

    Args:
        repo_root: Repository root containing repodata/
        retain: Retain count, see select_classic
        strategy: Blacklist strategy, "classic" by default
        dry_run: Only report what would be removed
        sink: Receives diagnostics

    Returns:
        PurgeResult listing removed and failed entries

    Raises:
        InvalidRetainError: If retain < -1 (nothing is removed)
        RepodataIOError: If the repodata directory cannot be opened
    """
    repodata_dir = Path(repo_root) / REPODATA_DIRNAME
    reporter = Reporter(sink)
    result = PurgeResult(repodata_dir=repodata_dir, dry_run=dry_run)

    blacklist = select_blacklist(repodata_dir, retain, strategy, reporter)
    # repomd.xml always goes
    blacklist.add(REPOMD_FILENAME)

    try:
        names = list_dir(repodata_dir)
    except OSError as e:
        reporter.debug(f"Cannot list {repodata_dir}: {e.strerror or e}", repodata_dir)
        raise RepodataIOError(
            f"Cannot open a dir: {repodata_dir}: {e.strerror or e}"
        ) from e

    for name in names:
        if name not in blacklist:
            continue

        path = repodata_dir / name
        if dry_run:
            reporter.debug(f"Would remove {path}", path)
            result.removed.append(name)
            continue

        try:
            remove_path(path)
        except OSError as e:
            reporter.warning(f"Cannot remove {path}: {e.strerror or e}", path)
            result.failed.append((name, str(e)))
        else:
            reporter.debug(f"Removed {path}", path)
            result.removed.append(name)

    result.diagnostics = reporter.diagnostics
    return result


def retain_copy(
    old_dir: Path,
    new_dir: Path,
    retain: int,
    *,
    strategy: Strategy = "classic",
    dry_run: bool = False,
    sink: DiagnosticSink | None = None,
) -> RetentionResult:
    """Copy old metadata worth keeping from ``old_dir`` into ``new_dir``.

    Everything in the old repodata directory is carried over except
    blacklisted files and the old repomd.xml. Files the new generation
    already produced are never overwritten. A failed copy is reported and
    does not stop the others.

    Args:
        old_dir: Old repodata directory
        new_dir: New repodata directory
        retain: Retain count, see select_classic
        strategy: Blacklist strategy, "classic" by default
        dry_run: Only report what would be copied
        sink: Receives diagnostics

    Returns:
        RetentionResult; ``source_missing`` is set when old_dir doesn't exist

    Raises:
        InvalidRetainError: If retain < -1
        RepodataIOError: If old_dir cannot be opened
    """
    old_dir = Path(old_dir)
    new_dir = Path(new_dir)
    reporter = Reporter(sink)
    result = RetentionResult(old_dir=old_dir, new_dir=new_dir, dry_run=dry_run)

    if not old_dir.exists():
        result.source_missing = True
        return result

    reporter.debug("Copying files from old repository to the new one", old_dir)

    blacklist = select_blacklist(old_dir, retain, strategy, reporter)
    # Never copy the old repomd.xml
    blacklist.add(REPOMD_FILENAME)

    try:
        names = list_dir(old_dir)
    except OSError as e:
        message = f"Cannot open directory: {old_dir}: {e.strerror or e}"
        reporter.warning(message, old_dir)
        raise RepodataIOError(message) from e

    for name in names:
        src = old_dir / name
        if name in blacklist:
            reporter.debug(f"Blacklisted: {name}", src)
            result.excluded.append(name)
            continue

        dst = new_dir / name
        if os.path.lexists(dst):
            reporter.debug(f"Skipped copy: {src} -> {dst} (file already exists)", dst)
            result.skipped.append(name)
            continue

        if dry_run:
            reporter.debug(f"Would copy {src} -> {dst}", src)
            result.copied.append(name)
            continue

        try:
            copy_preserving(src, dst)
        except OSError as e:
            reporter.warning(f"Cannot copy {src} -> {dst}: {e}", src)
            result.failed.append((name, str(e)))
        else:
            reporter.debug(f"Copied {src} -> {dst}", dst)
            result.copied.append(name)

    result.diagnostics = reporter.diagnostics
    return result
