"""Tests for bundle fingerprints."""

import hashlib

import pytest

from botbox.bundles import DOCS, Bundle, BundleFile
from botbox.config_manager import ProjectConfig
from botbox.fingerprint import FINGERPRINT_LENGTH, fingerprint, fingerprint_bundle


@pytest.fixture
def files():
    return [
        BundleFile("a.md", b"alpha\n"),
        BundleFile("b.md", b"bravo\n"),
        BundleFile("c.md", b"charlie\n"),
    ]


class TestFingerprint:
    """Tests for fingerprint()."""

    def test_is_short_hex(self, files):
        value = fingerprint(files)
        assert len(value) == FINGERPRINT_LENGTH
        int(value, 16)

    def test_deterministic(self, files):
        assert fingerprint(files) == fingerprint(list(files))

    def test_independent_of_input_order(self, files):
        assert fingerprint(files) == fingerprint(list(reversed(files)))

    def test_single_byte_change_changes_hash(self, files):
        changed = [files[0], BundleFile("b.md", b"bravO\n"), files[2]]
        assert fingerprint(changed) != fingerprint(files)

    def test_rename_changes_hash(self, files):
        renamed = [BundleFile("z.md", files[0].content), files[1], files[2]]
        assert fingerprint(renamed) != fingerprint(files)

    def test_adding_a_file_changes_hash(self, files):
        assert fingerprint([*files, BundleFile("d.md", b"")]) != fingerprint(files)

    def test_path_content_boundary_does_not_collide(self):
        assert fingerprint([BundleFile("ab", b"c")]) != fingerprint([BundleFile("a", b"bc")])

    def test_empty_bundle(self):
        assert fingerprint([]) == hashlib.sha256(b"").hexdigest()[:FINGERPRINT_LENGTH]

    def test_duplicate_paths_rejected(self):
        with pytest.raises(ValueError, match="Duplicate"):
            fingerprint([BundleFile("a.md", b"1"), BundleFile("a.md", b"2")])


class TestFingerprintBundle:
    """Tests for fingerprint_bundle()."""

    def test_matches_fingerprint_of_loaded_files(self):
        assert fingerprint_bundle(DOCS) == fingerprint(DOCS.load())

    def test_changes_when_bundled_file_changes(self, tmp_path):
        (tmp_path / "one.md").write_text("one")
        bundle = Bundle(name="test", source_dir=tmp_path, marker_name=".test-version")
        before = fingerprint_bundle(bundle)

        (tmp_path / "one.md").write_text("one!")
        assert fingerprint_bundle(bundle) != before

    def test_follows_project_selection(self, tmp_path):
        (tmp_path / "keep.md").write_text("keep")
        (tmp_path / "drop.md").write_text("drop")
        bundle = Bundle(
            name="test",
            source_dir=tmp_path,
            marker_name=".test-version",
            eligible=lambda name, config: name == "keep.md",
        )

        selected = fingerprint_bundle(bundle, ProjectConfig({}))
        assert selected == fingerprint([BundleFile("keep.md", b"keep")])
        assert fingerprint_bundle(bundle) != selected
