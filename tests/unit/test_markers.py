"""Tests for version markers and staleness comparison."""

import pytest

from botbox.bundles import DOCS, SCRIPTS
from botbox.errors import BundleIOError
from botbox.markers import MarkerStore, Staleness, compare


class TestCompare:
    """Tests for compare()."""

    def test_missing_marker(self):
        assert compare("abc123", None) == Staleness.MISSING

    def test_matching_marker(self):
        assert compare("abc123", "abc123") == Staleness.UP_TO_DATE

    def test_different_marker(self):
        assert compare("abc123", "def456") == Staleness.STALE

    def test_empty_marker_is_stale(self):
        assert compare("abc123", "") == Staleness.STALE


class TestMarkerStore:
    """Tests for reading and writing markers."""

    def test_read_missing_returns_none(self, tmp_path):
        assert MarkerStore(tmp_path / "managed").read(DOCS) is None

    def test_write_then_read(self, tmp_path):
        store = MarkerStore(tmp_path / "managed")
        store.write(DOCS, "abc123")

        assert store.read(DOCS) == "abc123"
        assert (tmp_path / "managed" / ".version").read_text() == "abc123\n"

    def test_markers_are_per_bundle(self, tmp_path):
        store = MarkerStore(tmp_path)
        store.write(DOCS, "docs-hash")
        store.write(SCRIPTS, "scripts-hash")

        assert store.read(DOCS) == "docs-hash"
        assert store.read(SCRIPTS) == "scripts-hash"
        assert store.path_for(SCRIPTS).name == ".scripts-version"

    def test_read_strips_whitespace(self, tmp_path):
        (tmp_path / ".version").write_text("  abc123\r\n")
        assert MarkerStore(tmp_path).read(DOCS) == "abc123"

    def test_write_leaves_no_temp_file(self, tmp_path):
        MarkerStore(tmp_path).write(DOCS, "abc123")
        assert sorted(p.name for p in tmp_path.iterdir()) == [".version"]

    def test_unreadable_marker_raises(self, tmp_path):
        (tmp_path / ".version").mkdir()
        with pytest.raises(BundleIOError, match="read marker"):
            MarkerStore(tmp_path).read(DOCS)
