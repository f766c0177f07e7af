"""Message bus hook boundary.

The companion message bus (`bus`) can run commands when something happens
on a channel ("hooks"). Migrations that rewrite hooks talk to it only
through the HookBus protocol, so they can be tested against an in-memory
fake. BusCli is the real implementation and shells out to `bus hooks ...`.

Every BusCli failure (missing binary, timeout, non-zero exit, unparsable
output) is raised as ExternalToolError; callers treat the bus as best-effort.
"""

import json
import logging
import subprocess
from dataclasses import dataclass, field
from typing import Any, Protocol

from botbox.errors import ExternalToolError

logger = logging.getLogger(__name__)

BUS_COMMAND = "bus"
DEFAULT_TIMEOUT = 30
CLAIM_TTL_SECONDS = 600

__all__ = ["CLAIM_TTL_SECONDS", "BusCli", "Hook", "HookBus", "HookSpec"]


@dataclass
class Hook:
    """A hook as reported by `bus hooks list --format json`."""

    id: str
    command: list[str]
    cwd: str | None = None
    channel: str | None = None
    active: bool = True
    condition: dict[str, Any] = field(default_factory=dict)
    claim_owner: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Hook":
        """Build a Hook from bus JSON.

        Raises:
            ValueError: If the entry lacks an id or a command list
        """
        hook_id = data.get("id")
        command = data.get("command")
        if hook_id is None or not isinstance(command, list):
            raise ValueError(f"Hook entry without id or command: {data!r}")
        condition = data.get("condition")
        return cls(
            id=str(hook_id),
            command=[str(part) for part in command],
            cwd=data.get("cwd"),
            channel=data.get("channel"),
            active=bool(data.get("active", True)),
            condition=condition if isinstance(condition, dict) else {},
            claim_owner=data.get("claim_owner"),
        )


@dataclass
class HookSpec:
    """Arguments for registering a hook."""

    command: list[str]
    agent: str | None = None
    channel: str | None = None
    cwd: str | None = None
    claim: str | None = None
    claim_owner: str | None = None
    ttl: int | None = None
    mention: str | None = None

    def to_args(self) -> list[str]:
        """Render as `bus hooks add` arguments (without the leading command)."""
        args: list[str] = []
        for flag, value in (
            ("--agent", self.agent),
            ("--channel", self.channel),
            ("--cwd", self.cwd),
            ("--claim", self.claim),
            ("--claim-owner", self.claim_owner),
            ("--ttl", str(self.ttl) if self.ttl is not None else None),
            ("--mention", self.mention),
        ):
            if value:
                args += [flag, value]
        return [*args, "--", *self.command]


class HookBus(Protocol):
    """Operations the migrations need from the message bus."""

    def list_hooks(self) -> list[Hook]: ...

    def remove_hook(self, hook_id: str) -> None: ...

    def add_hook(self, spec: HookSpec) -> None: ...


class BusCli:
    """HookBus backed by the `bus` command line tool."""

    def __init__(self, executable: str = BUS_COMMAND, timeout: int = DEFAULT_TIMEOUT):
        self.executable = executable
        self.timeout = timeout

    def _run(self, args: list[str]) -> str:
        cmd = [self.executable, *args]
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError as e:
            raise ExternalToolError(cmd, f"{self.executable} is not installed") from e
        except subprocess.TimeoutExpired as e:
            raise ExternalToolError(cmd, f"timed out after {self.timeout}s") from e

        if result.returncode != 0:
            raise ExternalToolError(
                cmd, result.stderr.strip() or f"exit code {result.returncode}", result.returncode
            )
        return result.stdout

    def list_hooks(self) -> list[Hook]:
        output = self._run(["hooks", "list", "--format", "json"])
        try:
            parsed = json.loads(output)
        except json.JSONDecodeError as e:
            raise ExternalToolError(
                [self.executable, "hooks", "list"], f"unparsable output: {e}"
            ) from e

        if isinstance(parsed, dict):
            parsed = parsed.get("hooks", [])
        entries = parsed if isinstance(parsed, list) else []
        hooks = []
        for entry in entries:
            try:
                hooks.append(Hook.from_dict(entry))
            except (ValueError, AttributeError) as e:
                logger.warning(f"Skipping malformed hook entry: {e}")
        return hooks

    def remove_hook(self, hook_id: str) -> None:
        self._run(["hooks", "remove", hook_id])

    def add_hook(self, spec: HookSpec) -> None:
        self._run(["hooks", "add", *spec.to_args()])
