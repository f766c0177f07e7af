"""Content fingerprints for bundles.

A fingerprint is a short SHA-256 digest over every (relative path, content)
pair of a bundle. Files are hashed in sorted path order, so the directory
listing order of the file system never changes the result, and the path is
part of the hashed material, so a rename changes the fingerprint even when
the bytes do not.

Each path and content is length-prefixed before hashing, which keeps
("ab", "c") and ("a", "bc") from colliding.
"""

import hashlib
from collections.abc import Iterable

from botbox.bundles import Bundle, BundleFile
from botbox.config_manager import ProjectConfig

FINGERPRINT_LENGTH = 32

__all__ = ["FINGERPRINT_LENGTH", "fingerprint", "fingerprint_bundle"]


def _length_prefix(data: bytes) -> bytes:
    return len(data).to_bytes(8, "big")


def fingerprint(files: Iterable[BundleFile]) -> str:
    """Compute the fingerprint of a set of bundle files.

    Args:
        files: Bundle files in any order

    Returns:
        Hex digest prefix of FINGERPRINT_LENGTH characters

    Raises:
        ValueError: If two files share a relative path

    Example:
        >>> fingerprint([BundleFile("a.md", b"hello")]) == fingerprint(
        ...     [BundleFile("a.md", b"hello")]
        ... )
        True
    """
    ordered = sorted(files, key=lambda f: f.relative_path)

    digest = hashlib.sha256()
    seen: set[str] = set()
    for bundle_file in ordered:
        if bundle_file.relative_path in seen:
            raise ValueError(f"Duplicate bundle path: {bundle_file.relative_path}")
        seen.add(bundle_file.relative_path)

        path_bytes = bundle_file.relative_path.encode("utf-8")
        digest.update(_length_prefix(path_bytes))
        digest.update(path_bytes)
        digest.update(_length_prefix(bundle_file.content))
        digest.update(bundle_file.content)

    return digest.hexdigest()[:FINGERPRINT_LENGTH]


def fingerprint_bundle(bundle: Bundle, config: ProjectConfig | None = None) -> str:
    """Fingerprint the files of a bundle selected for a project.

    Raises:
        BundleIOError: If a selected file cannot be read
    """
    return fingerprint(bundle.load(config))
