"""Tests for the checksum manifest builder."""

import hashlib
import os

import pytest

from aptsync.repos.checksums import (
    HASH_ALGORITHMS,
    ChecksumManifestBuilder,
    file_digest,
)


@pytest.fixture
def suite_dir(tmp_path):
    """Suite metadata tree with a few index files."""
    suite = tmp_path / "dists" / "stable"
    amd64 = suite / "main" / "binary-amd64"
    arm64 = suite / "main" / "binary-arm64"
    amd64.mkdir(parents=True)
    arm64.mkdir(parents=True)
    (amd64 / "Packages").write_text("Package: a\n")
    (amd64 / "Packages.gz").write_bytes(b"\x1f\x8b gz")
    (arm64 / "Packages").write_text("Package: b\n")
    (suite / "Release").write_text("Origin: x\n")
    return suite


class TestFileDigest:
    """Tests for chunked file hashing."""

    def test_matches_hashlib(self, tmp_path):
        """Test digest equals hashlib over the whole content."""
        path = tmp_path / "blob"
        data = os.urandom(200000)
        path.write_bytes(data)

        assert file_digest(path, hashlib.sha256) == hashlib.sha256(data).hexdigest()


class TestChecksumManifestBuilder:
    """Tests for ChecksumManifestBuilder."""

    def test_entries_exclude_release(self, suite_dir):
        """Test one entry per file, without the Release file itself."""
        entries = ChecksumManifestBuilder(suite_dir).entries()

        paths = [relative for relative, _, _ in entries]
        assert paths == [
            "main/binary-amd64/Packages",
            "main/binary-amd64/Packages.gz",
            "main/binary-arm64/Packages",
        ]

    def test_line_format(self, suite_dir):
        """Test lines are '<digest> <size> <path>'."""
        lines = ChecksumManifestBuilder(suite_dir).lines("SHA256", hashlib.sha256)

        expected_digest = hashlib.sha256(b"Package: a\n").hexdigest()
        assert lines[0] == f"{expected_digest} 11 main/binary-amd64/Packages"

    def test_paths_are_relative(self, suite_dir):
        """Test no absolute or ./ prefixes in emitted paths."""
        lines = ChecksumManifestBuilder(suite_dir).lines("MD5Sum", hashlib.md5)

        for line in lines:
            path = line.split(" ", 2)[2]
            assert not path.startswith("/")
            assert not path.startswith("./")
            assert str(suite_dir) not in path

    def test_blocks_per_algorithm(self, suite_dir):
        """Test one block per configured algorithm, in order."""
        algorithms = ("MD5Sum", "SHA1", "SHA256", "SHA512")

        blocks = list(ChecksumManifestBuilder(suite_dir).blocks(algorithms))

        assert [label for label, _ in blocks] == list(algorithms)
        digest_lengths = [len(lines[0].split()[0]) for _, lines in blocks]
        assert digest_lengths == [32, 40, 64, 128]
        assert all(len(lines) == 3 for _, lines in blocks)

    def test_deterministic(self, suite_dir):
        """Test repeated runs produce identical output."""
        builder = ChecksumManifestBuilder(suite_dir)

        first = list(builder.blocks(tuple(HASH_ALGORITHMS)))
        second = list(builder.blocks(tuple(HASH_ALGORITHMS)))

        assert first == second

    def test_touching_one_file_changes_one_entry(self, suite_dir):
        """Test only the modified file's entry changes."""
        builder = ChecksumManifestBuilder(suite_dir)
        before = builder.lines("SHA256", hashlib.sha256)

        (suite_dir / "main" / "binary-arm64" / "Packages").write_text("Package: c\n")
        after = builder.lines("SHA256", hashlib.sha256)

        changed = [(b, a) for b, a in zip(before, after) if b != a]
        assert len(before) == len(after)
        assert len(changed) == 1
        assert changed[0][1].endswith("main/binary-arm64/Packages")

    def test_skips_signatures_and_temp_files(self, suite_dir):
        """Test signatures and in-flight temp files are not listed."""
        (suite_dir / "Release.gpg").write_text("sig")
        (suite_dir / "InRelease").write_text("signed")
        (suite_dir / "main" / "binary-amd64" / ".Packages.abc123").write_text("tmp")

        paths = [r for r, _, _ in ChecksumManifestBuilder(suite_dir).entries()]

        assert "Release.gpg" not in paths
        assert "InRelease" not in paths
        assert len(paths) == 3

    def test_unknown_algorithm(self, suite_dir):
        """Test unknown algorithm label raises KeyError."""
        with pytest.raises(KeyError):
            list(ChecksumManifestBuilder(suite_dir).blocks(["CRC32"]))
