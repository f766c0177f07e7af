"""Tests for the message bus hook boundary."""

import json
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from botbox.bus import BusCli, Hook, HookSpec
from botbox.errors import ExternalToolError


def completed(stdout="", returncode=0, stderr=""):
    result = MagicMock()
    result.stdout = stdout
    result.stderr = stderr
    result.returncode = returncode
    return result


HOOK_JSON = {
    "id": "h1",
    "command": ["bash", "scripts/triage.sh"],
    "cwd": "/work/myapp",
    "channel": "myapp",
    "active": True,
    "condition": {"type": "claim_available", "pattern": "agent://myapp-dev"},
}


class TestHook:
    """Tests for Hook.from_dict()."""

    def test_from_dict(self):
        hook = Hook.from_dict(HOOK_JSON)

        assert hook.id == "h1"
        assert hook.command == ["bash", "scripts/triage.sh"]
        assert hook.condition["type"] == "claim_available"

    def test_numeric_id_becomes_string(self):
        assert Hook.from_dict({"id": 7, "command": ["x"]}).id == "7"

    def test_missing_command_raises(self):
        with pytest.raises(ValueError):
            Hook.from_dict({"id": "h1"})


class TestHookSpec:
    """Tests for HookSpec.to_args()."""

    def test_claim_hook_args(self):
        spec = HookSpec(
            command=["python3", "/p/triage.py"],
            agent="myapp-dev",
            channel="myapp",
            claim="agent://myapp-dev",
            claim_owner="myapp-dev",
            ttl=600,
        )

        assert spec.to_args() == [
            "--agent",
            "myapp-dev",
            "--channel",
            "myapp",
            "--claim",
            "agent://myapp-dev",
            "--claim-owner",
            "myapp-dev",
            "--ttl",
            "600",
            "--",
            "python3",
            "/p/triage.py",
        ]

    def test_unset_fields_omitted(self):
        assert HookSpec(command=["run"]).to_args() == ["--", "run"]


class TestBusCli:
    """Tests for BusCli with subprocess mocked out."""

    @patch("botbox.bus.subprocess.run")
    def test_list_hooks(self, mock_run):
        mock_run.return_value = completed(json.dumps([HOOK_JSON]))

        hooks = BusCli().list_hooks()

        assert [hook.id for hook in hooks] == ["h1"]
        args = mock_run.call_args[0][0]
        assert args == ["bus", "hooks", "list", "--format", "json"]

    @patch("botbox.bus.subprocess.run")
    def test_list_hooks_wrapped_object(self, mock_run):
        mock_run.return_value = completed(json.dumps({"hooks": [HOOK_JSON]}))
        assert len(BusCli().list_hooks()) == 1

    @patch("botbox.bus.subprocess.run")
    def test_malformed_entries_skipped(self, mock_run, caplog):
        mock_run.return_value = completed(json.dumps([{"id": "bad"}, "junk", HOOK_JSON]))

        hooks = BusCli().list_hooks()

        assert [hook.id for hook in hooks] == ["h1"]
        assert "malformed" in caplog.text

    @patch("botbox.bus.subprocess.run")
    def test_unparsable_output_raises(self, mock_run):
        mock_run.return_value = completed("not json")
        with pytest.raises(ExternalToolError, match="unparsable"):
            BusCli().list_hooks()

    @patch("botbox.bus.subprocess.run")
    def test_nonzero_exit_raises(self, mock_run):
        mock_run.return_value = completed(returncode=2, stderr="no such hook")

        with pytest.raises(ExternalToolError, match="no such hook") as exc_info:
            BusCli().remove_hook("h9")
        assert exc_info.value.returncode == 2

    @patch("botbox.bus.subprocess.run", side_effect=FileNotFoundError("bus"))
    def test_missing_binary_raises(self, mock_run):
        with pytest.raises(ExternalToolError, match="not installed"):
            BusCli().list_hooks()

    @patch("botbox.bus.subprocess.run")
    def test_timeout_raises(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="bus", timeout=30)
        with pytest.raises(ExternalToolError, match="timed out"):
            BusCli().list_hooks()

    @patch("botbox.bus.subprocess.run")
    def test_add_hook(self, mock_run):
        mock_run.return_value = completed()

        BusCli(executable="/opt/bus").add_hook(HookSpec(command=["run"], channel="myapp"))

        args = mock_run.call_args[0][0]
        assert args == ["/opt/bus", "hooks", "add", "--channel", "myapp", "--", "run"]
