"""Execution-time data models: run status, log entries, run state.

A ``ScriptExecutionState`` exists per tracked script id.  The execution
service mutates it from the run thread and from command calls, always
under the state's own lock; observers only ever receive copies produced
by ``snapshot``.
"""

from __future__ import annotations

import copy
import threading
import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class ExecutionStatus(Enum):
    """Lifecycle status of a script run.

    Attributes:
        RUNNING: The run thread is traversing steps.
        PAUSED: Step progress is suspended until resumed or stopped.
        STOPPED: The run was cancelled.
        COMPLETED: All repeats finished normally.
        ERROR: An unexpected fault terminated the run.
    """

    RUNNING = "running"
    PAUSED = "paused"
    STOPPED = "stopped"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        """Whether the run has ended."""
        return self in (
            ExecutionStatus.STOPPED,
            ExecutionStatus.COMPLETED,
            ExecutionStatus.ERROR,
        )


class LogLevel(Enum):
    """Severity of an execution log entry."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class ExecutionLog:
    """A single user-facing execution log entry.

    Attributes:
        script_id: Script the entry belongs to.
        step_id: Step that produced the entry; empty for script-level
            messages.
        level: Severity.
        message: Free-text message.
        timestamp: Wall-clock time the entry was created.
        id: Unique identifier.
    """

    script_id: str
    step_id: str
    level: LogLevel
    message: str
    timestamp: datetime = field(default_factory=datetime.now)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))


@dataclass
class ScriptExecutionState:
    """Run state of one script id.

    The log buffer is a bounded deque: once ``max_log_entries`` is
    reached, appending evicts the oldest entry.

    Attributes:
        script_id: Script being run.
        start_time: When ``start_script`` accepted the run.
        status: Current lifecycle status.
        current_step_id: Step being executed (or about to be).
        current_repeat: 1-based index of the current iteration.
        total_repeats: Iterations requested; ``None`` when unbounded.
        is_infinite_repeat: Whether the script repeats until stopped.
        last_repeat_time: When the current iteration started.
        variables: Flat key/value bag reserved for scripts.
        max_log_entries: Capacity of the log buffer.
    """

    script_id: str
    start_time: datetime = field(default_factory=datetime.now)
    status: ExecutionStatus = ExecutionStatus.RUNNING
    current_step_id: str = ""
    current_repeat: int = 0
    total_repeats: int | None = 1
    is_infinite_repeat: bool = False
    last_repeat_time: datetime | None = None
    variables: dict[str, Any] = field(default_factory=dict)
    max_log_entries: int = 1000

    def __post_init__(self) -> None:
        self._logs: deque[ExecutionLog] = deque(maxlen=self.max_log_entries)
        self.lock = threading.RLock()

    # ------------------------------------------------------------------
    # Logs
    # ------------------------------------------------------------------

    @property
    def logs(self) -> list[ExecutionLog]:
        """Log entries, oldest first."""
        with self.lock:
            return list(self._logs)

    def add_log(self, entry: ExecutionLog) -> None:
        """Append *entry*, evicting the oldest when the buffer is full."""
        with self.lock:
            self._logs.append(entry)

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def snapshot(self) -> ScriptExecutionState:
        """Return an independent point-in-time copy of this state."""
        with self.lock:
            copied = ScriptExecutionState(
                script_id=self.script_id,
                start_time=self.start_time,
                status=self.status,
                current_step_id=self.current_step_id,
                current_repeat=self.current_repeat,
                total_repeats=self.total_repeats,
                is_infinite_repeat=self.is_infinite_repeat,
                last_repeat_time=self.last_repeat_time,
                variables=copy.deepcopy(self.variables),
                max_log_entries=self.max_log_entries,
            )
            copied._logs.extend(self._logs)
        return copied

    def __repr__(self) -> str:
        """Human-readable summary."""
        return (
            f"ScriptExecutionState(script_id={self.script_id!r}, "
            f"status={self.status.value}, "
            f"step={self.current_step_id!r}, "
            f"repeat={self.current_repeat}/"
            f"{'inf' if self.total_repeats is None else self.total_repeats}, "
            f"logs={len(self._logs)})"
        )
