#!/usr/bin/env python3
"""Print a short triage summary of ready beads.

Usage: triage.py [--limit N]
"""

import argparse
import json
import subprocess
import sys


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--limit", type=int, default=10)
    args = parser.parse_args()

    try:
        result = subprocess.run(
            ["br", "ready", "--json"], capture_output=True, text=True, check=True, timeout=30
        )
    except (OSError, subprocess.SubprocessError) as e:
        print(f"br ready failed: {e}", file=sys.stderr)
        return 1

    beads = json.loads(result.stdout or "[]")
    if not beads:
        print("No ready beads.")
        return 0

    beads.sort(key=lambda bead: (bead.get("priority", 9), bead.get("id", "")))
    for bead in beads[: args.limit]:
        print(f"P{bead.get('priority', '?')} {bead.get('id')}  {bead.get('title', '')}")
    if len(beads) > args.limit:
        print(f"... {len(beads) - args.limit} more")
    return 0


if __name__ == "__main__":
    sys.exit(main())
