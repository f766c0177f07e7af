#!/usr/bin/env python3
"""Combined status at the start of an agent iteration: inbox, ready beads, reviews.

Usage: iteration-start.py AGENT PROJECT
"""

import subprocess
import sys


def section(title: str, cmd: list[str]) -> None:
    print(f"## {title}")
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=30)
    except (OSError, subprocess.SubprocessError) as e:
        print(f"(unavailable: {e})\n")
        return
    output = result.stdout.strip() if result.returncode == 0 else result.stderr.strip()
    print(f"{output or '(none)'}\n")


def main() -> int:
    if len(sys.argv) != 3:
        print(__doc__.strip(), file=sys.stderr)
        return 2
    agent, project = sys.argv[1], sys.argv[2]

    section("Inbox", ["bus", "inbox", "--agent", agent, "--channels", project])
    section("Ready beads", ["br", "ready"])
    section("Reviews", ["crit", "inbox", "--agent", agent])
    return 0


if __name__ == "__main__":
    sys.exit(main())
