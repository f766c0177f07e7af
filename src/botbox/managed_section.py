"""Managed section splicing for user-owned documents.

AGENTS.md belongs to the user except for one region between two sentinel
comments, which botbox owns and rewrites on every sync:

    <!-- botbox:managed-start -->
    ...generated...
    <!-- botbox:managed-end -->

Everything before the start marker and after the end marker is kept byte
for byte. When the markers are missing, duplicated or out of order the
splice refuses to guess and raises ManagedSectionError.
"""

from pathlib import Path

from botbox.errors import ManagedSectionError

MANAGED_START = "<!-- botbox:managed-start -->"
MANAGED_END = "<!-- botbox:managed-end -->"

__all__ = [
    "MANAGED_END",
    "MANAGED_START",
    "locate",
    "splice",
    "validate",
]


def locate(content: str, path: Path | None = None) -> tuple[int, int]:
    """Find the managed section in a document.

    Returns:
        (start, end): index of the start marker and index of the end marker

    Raises:
        ManagedSectionError: If either marker is missing or duplicated, or
            the end marker comes first
    """
    start_count = content.count(MANAGED_START)
    end_count = content.count(MANAGED_END)

    if start_count == 0 and end_count == 0:
        raise ManagedSectionError(path, "markers are missing")
    if start_count != 1:
        problem = "start marker is missing" if start_count == 0 else "start marker is duplicated"
        raise ManagedSectionError(path, problem)
    if end_count != 1:
        problem = "end marker is missing" if end_count == 0 else "end marker is duplicated"
        raise ManagedSectionError(path, problem)

    start = content.index(MANAGED_START)
    end = content.index(MANAGED_END)
    if end < start:
        raise ManagedSectionError(path, "end marker comes before the start marker")
    return start, end


def validate(content: str, path: Path | None = None) -> None:
    """Raise ManagedSectionError unless the document has exactly one well-formed section."""
    locate(content, path)


def extract_interior(content: str, path: Path | None = None) -> str:
    """Return the text between the markers, without the marker lines' newlines."""
    start, end = locate(content, path)
    interior = content[start + len(MANAGED_START) : end]
    if interior.startswith("\n"):
        interior = interior[1:]
    if interior.endswith("\n"):
        interior = interior[:-1]
    return interior


def splice(
    existing: str | None,
    interior: str,
    scaffold: str = "",
    path: Path | None = None,
) -> str:
    """Put `interior` inside the managed section of a document.

    Args:
        existing: Current document content, or None if the file does not exist
        interior: New managed content (without markers)
        scaffold: Text placed before the section when creating a new document
        path: Document path, for error messages

    Returns:
        The new document content. Splicing the result again with the same
        interior returns it unchanged.

    Raises:
        ManagedSectionError: If `existing` has unusable markers
        ValueError: If `interior` itself contains a marker
    """
    if MANAGED_START in interior or MANAGED_END in interior:
        raise ValueError("Managed section content must not contain the section markers")

    block = f"{MANAGED_START}\n{interior}\n"
    if existing is None:
        return f"{scaffold}{block}{MANAGED_END}\n"

    start, end = locate(existing, path)
    return existing[:start] + block + existing[end:]
