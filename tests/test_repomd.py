"""Tests for repomd.xml reader."""

from __future__ import annotations

from pathlib import Path

import pytest

from repodata_keeper.repomd import RepomdError, parse_repomd


def test_parse_repomd_records(tmp_path: Path, write_repomd):
    """Should parse every data record in document order."""
    path = write_repomd(
        tmp_path,
        [
            ("primary", "repodata/aaa-primary.xml.gz", None),
            ("filelists", "repodata/bbb-filelists.xml.gz", None),
        ],
    )

    repomd = parse_repomd(path)

    assert repomd.revision == "1700000000"
    assert [r.type for r in repomd.records] == ["primary", "filelists"]
    primary = repomd.records[0]
    assert primary.location_href == "repodata/aaa-primary.xml.gz"
    assert primary.location_base is None
    assert primary.checksum == "0123abcd"
    assert primary.checksum_type == "sha256"
    assert primary.timestamp == 1700000000
    assert primary.size == 1234


def test_parse_repomd_location_base(tmp_path: Path, write_repomd):
    """xml:base on location is exposed as location_base."""
    path = write_repomd(
        tmp_path,
        [("primary", "repodata/aaa-primary.xml.gz", "http://mirror.example.com/repo/")],
    )

    record = parse_repomd(path).records[0]

    assert record.location_base == "http://mirror.example.com/repo/"


def test_parse_repomd_without_location(tmp_path: Path, write_repomd):
    """A record without location has no href."""
    path = write_repomd(tmp_path, [("primary", None, None)])

    record = parse_repomd(path).records[0]

    assert record.location_href is None
    assert record.location_base is None


def test_parse_repomd_without_namespace(tmp_path: Path, write_repomd):
    """Documents without the repo namespace are accepted."""
    path = write_repomd(
        tmp_path,
        [("other", "repodata/ccc-other.xml.gz", None)],
        namespaced=False,
    )

    repomd = parse_repomd(path)

    assert [(r.type, r.location_href) for r in repomd.records] == [
        ("other", "repodata/ccc-other.xml.gz")
    ]


def test_parse_repomd_missing_file(tmp_path: Path):
    """A missing file raises RepomdError."""
    with pytest.raises(RepomdError, match="Cannot parse repomd"):
        parse_repomd(tmp_path / "repomd.xml")


def test_parse_repomd_malformed(tmp_path: Path):
    """Broken XML raises RepomdError."""
    path = tmp_path / "repomd.xml"
    path.write_text("<repomd><data type='primary'>")

    with pytest.raises(RepomdError):
        parse_repomd(path)


def test_parse_repomd_wrong_root(tmp_path: Path):
    """A well-formed document that isn't repomd raises RepomdError."""
    path = tmp_path / "repomd.xml"
    path.write_text("<metadata/>")

    with pytest.raises(RepomdError, match="unexpected root"):
        parse_repomd(path)
