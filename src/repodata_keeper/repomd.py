"""Reader for repomd.xml, the repository metadata index."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path

REPOMD_FILENAME = "repomd.xml"

REPO_NS = "http://linux.duke.edu/metadata/repo"
XML_BASE = "{http://www.w3.org/XML/1998/namespace}base"


@dataclass(frozen=True)
class RepomdRecord:
    """One ``<data>`` entry of repomd.xml."""

    type: str | None
    location_href: str | None
    location_base: str | None = None
    checksum: str | None = None
    checksum_type: str | None = None
    timestamp: int | None = None
    size: int | None = None


@dataclass
class Repomd:
    """Parsed repomd.xml."""

    revision: str | None = None
    records: list[RepomdRecord] = field(default_factory=list)


class RepomdError(Exception):
    """repomd.xml cannot be read or is malformed."""


def _tag(elem: ET.Element) -> str:
    """Element tag without the repo namespace."""
    prefix = f"{{{REPO_NS}}}"
    if elem.tag.startswith(prefix):
        return elem.tag[len(prefix) :]
    return elem.tag


def _find(parent: ET.Element, name: str) -> ET.Element | None:
    """Find a child element with or without the repo namespace."""
    elem = parent.find(f"{{{REPO_NS}}}{name}")
    if elem is None:
        elem = parent.find(name)
    return elem


def _int_text(elem: ET.Element | None) -> int | None:
    if elem is None or not elem.text:
        return None
    try:
        return int(elem.text.strip())
    except ValueError:
        return None


def _parse_record(data: ET.Element) -> RepomdRecord:
    location = _find(data, "location")
    checksum = _find(data, "checksum")

    return RepomdRecord(
        type=data.get("type"),
        location_href=location.get("href") if location is not None else None,
        location_base=location.get(XML_BASE) if location is not None else None,
        checksum=checksum.text.strip() if checksum is not None and checksum.text else None,
        checksum_type=checksum.get("type") if checksum is not None else None,
        timestamp=_int_text(_find(data, "timestamp")),
        size=_int_text(_find(data, "size")),
    )


def parse_repomd(path: Path) -> Repomd:
    """Parse a repomd.xml file.

    Both the namespaced (``http://linux.duke.edu/metadata/repo``) and the
    plain form are accepted. Records keep their document order.

    Args:
        path: Path to repomd.xml

    Returns:
        Repomd with revision and records

    Raises:
        RepomdError: If the file cannot be read or is not a repomd document
    """
    try:
        root = ET.parse(path).getroot()
    except (OSError, ET.ParseError) as e:
        raise RepomdError(f"Cannot parse repomd {path}: {e}") from e

    if _tag(root) != "repomd":
        raise RepomdError(f"Cannot parse repomd {path}: unexpected root <{_tag(root)}>")

    revision = _find(root, "revision")
    records = [_parse_record(child) for child in root if _tag(child) == "data"]

    return Repomd(
        revision=revision.text.strip() if revision is not None and revision.text else None,
        records=records,
    )
