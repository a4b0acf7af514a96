"""Tests for the nixipfs.hashcache module."""

from pathlib import Path

import pytest

from nixipfs.hashcache import HashCache


class TestHashCacheLoad:
    """Tests for HashCache.load."""

    def test_missing_file_is_empty(self, tmp_path: Path):
        cache = HashCache.load(tmp_path / "ipfs_hashes")
        assert len(cache) == 0
        assert cache.get("nixos.iso") is None

    def test_loads_colon_delimited_records(self, tmp_path: Path):
        path = tmp_path / "ipfs_hashes"
        path.write_text("nixos.iso:QmAAA\nabc.nar.xz:QmBBB\n")

        cache = HashCache.load(path)

        assert len(cache) == 2
        assert cache.get("nixos.iso") == "QmAAA"
        assert cache.get("abc.nar.xz") == "QmBBB"
        assert "nixos.iso" in cache

    def test_skips_blank_lines(self, tmp_path: Path):
        path = tmp_path / "ipfs_hashes"
        path.write_text("nixos.iso:QmAAA\n\n")
        assert len(HashCache.load(path)) == 1

    def test_rejects_malformed_record(self, tmp_path: Path):
        path = tmp_path / "ipfs_hashes"
        path.write_text("nixos.iso:QmAAA:extra\n")
        with pytest.raises(ValueError, match="expected 2 fields"):
            HashCache.load(path)


class TestHashCachePersist:
    """Tests for HashCache.persist."""

    def test_roundtrip(self, tmp_path: Path):
        path = tmp_path / "ipfs_hashes"
        cache = HashCache(path)
        cache.set("b.nar.xz", "QmB")
        cache.set("a.iso", "QmA")
        cache.persist()

        assert path.read_text() == "a.iso:QmA\nb.nar.xz:QmB\n"
        assert HashCache.load(path).items() == [("a.iso", "QmA"), ("b.nar.xz", "QmB")]

    def test_overwrites_wholesale(self, tmp_path: Path):
        path = tmp_path / "ipfs_hashes"
        path.write_text("stale.iso:QmOld\n")
        HashCache(path, {"fresh.iso": "QmNew"}).persist()
        assert path.read_text() == "fresh.iso:QmNew\n"

    def test_set_replaces_existing_entry(self, tmp_path: Path):
        cache = HashCache(tmp_path / "ipfs_hashes", {"a.iso": "Qm1"})
        cache.set("a.iso", "Qm2")
        assert cache.get("a.iso") == "Qm2"
        assert len(cache) == 1

    def test_no_leftover_temporary_files(self, tmp_path: Path):
        HashCache(tmp_path / "ipfs_hashes", {"a.iso": "QmA"}).persist()
        assert [p.name for p in tmp_path.iterdir()] == ["ipfs_hashes"]
