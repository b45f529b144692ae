"""Exception types raised by the AutoScript core."""

from __future__ import annotations


class AutoScriptError(Exception):
    """Base class for AutoScript errors."""


class ScriptNotFoundError(AutoScriptError, KeyError):
    """Raised when a script id is not present in storage.

    Args:
        script_id: The id that could not be resolved.
    """

    def __init__(self, script_id: str) -> None:
        super().__init__(f"Script with ID {script_id} not found")
        self.script_id = script_id

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message.
        return str(self.args[0])


class ScriptCancelledError(AutoScriptError):
    """Raised inside a run when its cancellation signal is set."""
