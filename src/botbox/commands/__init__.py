"""Commands for the botbox CLI."""

from botbox.commands.doctor import doctor_command
from botbox.commands.init import init_command
from botbox.commands.sync import sync_command

__all__ = ["doctor_command", "init_command", "sync_command"]
