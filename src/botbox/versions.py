"""Version parsing and ordering for migration ids.

Versions are dot-separated non-negative integers of any length. Missing
trailing components count as zero, so "1.0" == "1.0.0" < "1.0.1", and
components compare numerically, so "1.0.2" < "1.0.10".
"""

import re
from functools import cmp_to_key

from botbox.errors import VersionParseError

_VERSION_PATTERN = re.compile(r"^[0-9]+(\.[0-9]+)*$")

__all__ = ["compare_versions", "parse_version", "version_key"]


def parse_version(version: object, source: str | None = None) -> tuple[int, ...]:
    """Parse a version string into integer components.

    Args:
        version: Value to parse (must be a str)
        source: Where the value came from, for the error message

    Returns:
        Tuple of integer components

    Raises:
        VersionParseError: If the value is not dot-separated numbers
    """
    if not isinstance(version, str) or not _VERSION_PATTERN.match(version):
        raise VersionParseError(version, source)
    return tuple(int(part) for part in version.split("."))


def compare_versions(left: str, right: str) -> int:
    """Compare two versions component by component.

    Returns:
        -1 if left < right, 0 if equal, 1 if left > right
    """
    left_parts = parse_version(left)
    right_parts = parse_version(right)
    length = max(len(left_parts), len(right_parts))

    for i in range(length):
        left_value = left_parts[i] if i < len(left_parts) else 0
        right_value = right_parts[i] if i < len(right_parts) else 0
        if left_value > right_value:
            return 1
        if left_value < right_value:
            return -1

    return 0


version_key = cmp_to_key(compare_versions)
