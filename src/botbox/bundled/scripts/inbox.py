#!/usr/bin/env python3
"""Print unread messages for an agent on the project channel.

Usage: inbox.py AGENT CHANNEL
"""

import subprocess
import sys


def main() -> int:
    if len(sys.argv) != 3:
        print(__doc__.strip(), file=sys.stderr)
        return 2
    agent, channel = sys.argv[1], sys.argv[2]

    try:
        result = subprocess.run(
            ["bus", "inbox", "--agent", agent, "--channels", channel],
            capture_output=True,
            text=True,
            check=True,
            timeout=30,
        )
    except (OSError, subprocess.SubprocessError) as e:
        print(f"bus inbox failed: {e}", file=sys.stderr)
        return 1

    print(result.stdout.strip() or "No unread messages.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
