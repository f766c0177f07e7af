"""File reconciler - copies bundle files into a target directory.

Only files whose bytes differ are rewritten and reported. Files in the
target directory that the bundle does not ship are never deleted; they are
reported as orphans instead so the user can decide.
"""

import logging
import os
from collections.abc import Iterable
from pathlib import Path, PurePosixPath

from botbox.bundles import BundleFile
from botbox.errors import BundleIOError

logger = logging.getLogger(__name__)

EXECUTABLE_MODE = 0o755

__all__ = ["find_orphans", "reconcile", "write_file"]


def _destination(target_dir: Path, relative_path: str) -> Path:
    pure = PurePosixPath(relative_path)
    if pure.is_absolute() or ".." in pure.parts:
        raise ValueError(f"Bundle path escapes target directory: {relative_path}")
    return target_dir.joinpath(*pure.parts)


def _read_existing(path: Path) -> bytes | None:
    try:
        return path.read_bytes()
    except FileNotFoundError:
        return None
    except IsADirectoryError as e:
        raise BundleIOError("overwrite directory", path, e) from e
    except OSError as e:
        raise BundleIOError("read managed file", path, e) from e


def write_file(path: Path, content: bytes, operation: str = "write managed file") -> None:
    """Write a file atomically (temp file beside it, then rename).

    Raises:
        BundleIOError: If the file cannot be written
    """
    temp_path = path.parent / f".{path.name}.tmp"
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        temp_path.write_bytes(content)
        os.replace(temp_path, path)
    except OSError as e:
        if temp_path.exists():
            temp_path.unlink()
        raise BundleIOError(operation, path, e) from e


def reconcile(
    files: Iterable[BundleFile],
    target_dir: Path,
    executable: bool = False,
) -> list[str]:
    """Write bundle files into a target directory.

    Creates intermediate directories as needed. A file is rewritten only if
    its content differs from the bundled bytes.

    Args:
        files: Bundle files to install
        target_dir: Directory receiving the files
        executable: Make installed files executable (0755)

    Returns:
        Sorted relative paths of files that were created or changed

    Raises:
        BundleIOError: If a target file cannot be read or written
    """
    changed = []
    for bundle_file in sorted(files, key=lambda f: f.relative_path):
        dest = _destination(target_dir, bundle_file.relative_path)

        if _read_existing(dest) != bundle_file.content:
            write_file(dest, bundle_file.content)
            changed.append(bundle_file.relative_path)

        if executable:
            try:
                os.chmod(dest, EXECUTABLE_MODE)
            except OSError as e:
                raise BundleIOError("make executable", dest, e) from e

    if changed:
        logger.debug(f"Updated in {target_dir}: {', '.join(changed)}")
    return changed


def find_orphans(
    files: Iterable[BundleFile],
    target_dir: Path,
    suffixes: tuple[str, ...],
) -> list[str]:
    """List files in the target directory that the bundle no longer ships.

    Only regular, non-hidden files with one of the bundle's suffixes are
    considered. Nothing is removed.

    Returns:
        Sorted file names of orphaned files
    """
    if not target_dir.is_dir():
        return []

    shipped = {PurePosixPath(f.relative_path).name for f in files}
    return sorted(
        path.name
        for path in target_dir.iterdir()
        if path.is_file()
        and not path.name.startswith(".")
        and path.suffix in suffixes
        and path.name not in shipped
    )
