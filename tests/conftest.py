"""Pytest fixtures for repodata-keeper tests."""

import os
from pathlib import Path

import pytest

from repodata_keeper.diagnostics import CollectingSink


@pytest.fixture
def make_repodata(tmp_path: Path):
    """Factory fixture to create repodata directories with known mtimes."""

    def _create_repodata(
        files: dict[str, int | None],
        directory: Path | None = None,
    ) -> Path:
        """Create files in a repodata directory.

        Args:
            files: Mapping of filename to mtime (None keeps the current time)
            directory: Target directory (default: tmp_path / "repodata")
        """
        repodata_dir = directory or tmp_path / "repodata"
        repodata_dir.mkdir(parents=True, exist_ok=True)

        for name, mtime in files.items():
            path = repodata_dir / name
            path.write_text(f"contents of {name}\n")
            if mtime is not None:
                os.utime(path, (mtime, mtime))

        return repodata_dir

    return _create_repodata


@pytest.fixture
def write_repomd():
    """Factory fixture to write a repomd.xml from (type, href, base) tuples."""

    def _write_repomd(
        repodata_dir: Path,
        records: list[tuple[str, str | None, str | None]],
        namespaced: bool = True,
    ) -> Path:
        xmlns = ' xmlns="http://linux.duke.edu/metadata/repo"' if namespaced else ""
        lines = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            f"<repomd{xmlns}>",
            "  <revision>1700000000</revision>",
        ]
        for type_, href, base in records:
            lines.append(f'  <data type="{type_}">')
            lines.append('    <checksum type="sha256">0123abcd</checksum>')
            if href is not None:
                base_attr = f' xml:base="{base}"' if base else ""
                lines.append(f'    <location href="{href}"{base_attr}/>')
            lines.append("    <timestamp>1700000000</timestamp>")
            lines.append("    <size>1234</size>")
            lines.append("  </data>")
        lines.append("</repomd>")

        repodata_dir.mkdir(parents=True, exist_ok=True)
        path = repodata_dir / "repomd.xml"
        path.write_text("\n".join(lines) + "\n")
        return path

    return _write_repomd


@pytest.fixture
def sink() -> CollectingSink:
    """Diagnostics sink that records everything."""
    return CollectingSink()
