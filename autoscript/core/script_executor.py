"""Script execution engine: runs scripts step by step on worker threads.

The ``ScriptExecutionService`` interprets an ``AutomationScript`` as a
flat list of steps with explicit jumps.  Each ``start_script`` call
launches one worker thread that owns the run's ``ScriptExecutionState``
and its cancellation event; many scripts may run at the same time.

A run consists of one or more *iterations* (repeats).  Each iteration
starts at the first step and walks forward:

* ``condition`` steps combine their conditions (``AND``/``OR``, in
  declaration order, with short-circuiting) and run their actions when
  the aggregate holds;
* ``action`` steps run their actions unconditionally;
* ``wait`` steps sleep;
* ``jump`` steps move the cursor to ``targetStepId``.

A failing condition step, or any step that raises, continues at the
step's ``else_step_id`` when it names a known step and at the next step
otherwise.  At most ``Settings.max_step_transitions`` transitions are
taken per iteration, so a jump cycle cannot spin forever.

Every user-visible event is appended to the run's bounded log buffer
and published on ``log_generated``.  Status and step changes are
published on ``state_changed`` as point-in-time snapshots.

Typical usage::

    service = ScriptExecutionService(storage, engine, screenshots, recognizer)
    service.log_generated.subscribe(lambda e: print(e.message))
    service.start_script("sample-script-1")
    service.wait_for_completion("sample-script-1", timeout=10.0)
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime

from autoscript.config.settings import Settings, get_default_settings
from autoscript.core.automation_engine import AutomationEngine
from autoscript.core.errors import ScriptCancelledError, ScriptNotFoundError
from autoscript.core.event_hook import EventHook
from autoscript.core.image_recognition import ImageRecognitionService
from autoscript.core.parameters import coerce, get_param
from autoscript.core.screenshot_service import ScreenshotService
from autoscript.core.script_storage import ScriptStorage
from autoscript.models.execution import (
    ExecutionLog,
    ExecutionStatus,
    LogLevel,
    ScriptExecutionState,
)
from autoscript.models.script import (
    ActionType,
    AutomationScript,
    ConditionOperator,
    ConditionType,
    ScriptAction,
    ScriptCondition,
    ScriptStep,
    StepType,
)

logger = logging.getLogger(__name__)


@dataclass
class StepResult:
    """Outcome of executing one step.

    Attributes:
        success: ``False`` routes the cursor to the else branch.
        next_step_id: Explicit jump target requested by the step.
        raised: The step failed with an exception rather than a false
            condition aggregate.  The else jump is then taken silently.
    """

    success: bool
    next_step_id: str | None = None
    raised: bool = False


@dataclass
class _Run:
    """Book-keeping for one tracked script id."""

    script: AutomationScript
    state: ScriptExecutionState
    step_index: dict[str, int]
    cancel: threading.Event = field(default_factory=threading.Event)
    wakeup: threading.Condition = field(default_factory=threading.Condition)
    done: threading.Event = field(default_factory=threading.Event)
    thread: threading.Thread | None = None

    @property
    def script_id(self) -> str:
        return self.state.script_id

    def stop_requested(self) -> bool:
        if self.cancel.is_set():
            return True
        with self.state.lock:
            return self.state.status is ExecutionStatus.STOPPED


class ScriptExecutionService:
    """Starts, supervises and controls script runs.

    Command methods (``stop_script``, ``pause_script``,
    ``resume_script``) never raise for runs that are unknown or already
    finished; only ``start_script`` fails, for an unknown script id.

    Args:
        storage: Source of scripts and template images.
        automation: Input injection, shared by every run.
        screenshots: Screen capture for image conditions and
            screenshot actions.
        recognizer: Template matcher for image conditions.
        settings: Global configuration.  Defaults are used when omitted.
    """

    def __init__(
        self,
        storage: ScriptStorage,
        automation: AutomationEngine,
        screenshots: ScreenshotService,
        recognizer: ImageRecognitionService,
        settings: Settings | None = None,
    ) -> None:
        self._storage = storage
        self._automation = automation
        self._screenshots = screenshots
        self._recognizer = recognizer
        self._settings = settings or get_default_settings()

        self._runs: dict[str, _Run] = {}
        self._runs_lock = threading.Lock()

        self._override_lock = threading.Lock()
        self._window_override: int | None = None

        self.log_generated: EventHook[ExecutionLog] = EventHook(
            "log_generated"
        )
        self.state_changed: EventHook[ScriptExecutionState] = EventHook(
            "state_changed"
        )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start_script(self, script_id: str) -> str:
        """Load *script_id* and run it on a new worker thread.

        A run already tracked for the same id is stopped first, and
        this call waits for its worker to finish before the new state
        replaces it.  Concurrent starts of one id are serialized: the
        new state is only installed while the run it replaces is still
        the tracked one, otherwise the newer run is stopped and awaited
        in turn.  No lock is held while waiting or notifying listeners.

        Returns:
            The script id.

        Raises:
            ScriptNotFoundError: If storage has no such script.
        """
        logger.info("Start requested for script %s", script_id)
        script = self._storage.get_script(script_id)
        if script is None:
            raise ScriptNotFoundError(script_id)

        while True:
            previous = self._get_run(script_id)
            if previous is not None:
                self._stop_run(previous, quiet=True)
                self._await_run(previous)
            with self._runs_lock:
                if self._runs.get(script_id) is previous:
                    run, thread = self._new_run(script_id, script)
                    self._runs[script_id] = run
                    break
            logger.debug("Run of %s replaced concurrently; retrying", script_id)

        self._emit_state(run)
        self._log(run, LogLevel.INFO, f"Script '{script.name}' started")
        thread.start()
        return script_id

    def _new_run(
        self, script_id: str, script: AutomationScript
    ) -> tuple[_Run, threading.Thread]:
        state = ScriptExecutionState(
            script_id=script_id,
            status=ExecutionStatus.RUNNING,
            current_step_id=script.steps[0].id if script.steps else "",
            total_repeats=(
                None if script.is_infinite_repeat else script.repeat_count
            ),
            is_infinite_repeat=script.is_infinite_repeat,
            max_log_entries=self._settings.max_log_entries,
        )
        run = _Run(
            script=script,
            state=state,
            step_index={step.id: i for i, step in enumerate(script.steps)},
        )
        run.thread = threading.Thread(
            target=self._execute_script,
            args=(run,),
            name=f"script-{script_id}",
            daemon=True,
        )
        return run, run.thread

    def stop_script(self, script_id: str) -> None:
        """Mark the run as stopped and signal its thread to unwind.

        Returns immediately; the worker finishes in the background.
        """
        run = self._get_run(script_id)
        if run is None:
            logger.warning("Stop requested for untracked script %s", script_id)
            return
        self._stop_run(run)

    def _stop_run(self, run: _Run, quiet: bool = False) -> None:
        with run.state.lock:
            already_ended = run.state.status.is_terminal
            if not already_ended:
                run.state.status = ExecutionStatus.STOPPED
        if not already_ended:
            self._emit_state(run)
            self._log(run, LogLevel.INFO, "Script execution stopped")
        elif not quiet:
            logger.warning(
                "Stop requested for script %s which has already ended",
                run.script_id,
            )

        run.cancel.set()
        with run.wakeup:
            run.wakeup.notify_all()

    def _await_run(self, run: _Run, timeout: float | None = None) -> bool:
        """Wait for the worker of *run* to finish.

        Returns ``False`` straight away when called from that worker,
        which cannot wait for itself.
        """
        if run.thread is threading.current_thread():
            return False
        finished = run.done.wait(timeout)
        if finished:
            logger.debug("Run of %s finished", run.script_id)
        return finished

    def pause_script(self, script_id: str) -> None:
        """Suspend the run before its next step."""
        run = self._get_run(script_id)
        if run is None:
            logger.warning("Pause requested for untracked script %s", script_id)
            return
        with run.state.lock:
            if run.state.status is not ExecutionStatus.RUNNING:
                logger.debug(
                    "Ignoring pause for %s in status %s",
                    script_id,
                    run.state.status.value,
                )
                return
            run.state.status = ExecutionStatus.PAUSED
        self._emit_state(run)
        self._log(run, LogLevel.INFO, "Script execution paused")

    def resume_script(self, script_id: str) -> None:
        """Continue a paused run at the step it was about to execute."""
        run = self._get_run(script_id)
        if run is None:
            logger.warning(
                "Resume requested for untracked script %s", script_id
            )
            return
        with run.state.lock:
            if run.state.status is not ExecutionStatus.PAUSED:
                logger.debug(
                    "Ignoring resume for %s in status %s",
                    script_id,
                    run.state.status.value,
                )
                return
            run.state.status = ExecutionStatus.RUNNING
        self._emit_state(run)
        self._log(run, LogLevel.INFO, "Script execution resumed")
        with run.wakeup:
            run.wakeup.notify_all()

    def override_target_window(self, handle: int | None) -> None:
        """Set (or clear, with ``None``/``0``) the runtime target window.

        The override takes precedence over every script's own window
        setting and is applied at the start of each run.
        """
        with self._override_lock:
            self._window_override = handle or None
        logger.info(
            "Runtime target window %s",
            f"set to 0x{handle:X}" if handle else "cleared",
        )

    @property
    def target_window_override(self) -> int | None:
        with self._override_lock:
            return self._window_override

    def shutdown(self, timeout: float = 5.0) -> None:
        """Stop every run and wait up to *timeout* seconds for each."""
        with self._runs_lock:
            runs = list(self._runs.values())
        for run in runs:
            self.stop_script(run.script_id)
        for run in runs:
            self._await_run(run, timeout)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_execution_state(
        self, script_id: str
    ) -> ScriptExecutionState | None:
        """Snapshot of the run tracked for *script_id*, or ``None``."""
        run = self._get_run(script_id)
        return run.state.snapshot() if run is not None else None

    def get_all_execution_states(self) -> list[ScriptExecutionState]:
        """Snapshots of every tracked run, finished ones included."""
        with self._runs_lock:
            runs = list(self._runs.values())
        return [run.state.snapshot() for run in runs]

    def is_running(self, script_id: str) -> bool:
        """Whether a run for *script_id* exists and has not ended."""
        run = self._get_run(script_id)
        if run is None:
            return False
        with run.state.lock:
            return not run.state.status.is_terminal

    def wait_for_completion(
        self, script_id: str, timeout: float | None = None
    ) -> bool:
        """Block until the worker for *script_id* has finished.

        Args:
            script_id: Script whose run to wait for.
            timeout: Maximum seconds to wait; ``None`` waits forever.

        Returns:
            ``True`` if no unfinished run is tracked for the id afterwards.
        """
        run = self._get_run(script_id)
        if run is None:
            return True
        return self._await_run(run, timeout)

    def _get_run(self, script_id: str) -> _Run | None:
        with self._runs_lock:
            return self._runs.get(script_id)

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def _log(
        self,
        run: _Run,
        level: LogLevel,
        message: str,
        step_id: str = "",
    ) -> None:
        entry = ExecutionLog(
            script_id=run.script_id,
            step_id=step_id,
            level=level,
            message=message,
        )
        run.state.add_log(entry)
        logger.debug("[%s] %s: %s", run.script_id, level.value, message)
        self.log_generated.emit(entry)

    def _emit_state(self, run: _Run) -> None:
        self.state_changed.emit(run.state.snapshot())

    # ------------------------------------------------------------------
    # Run loop
    # ------------------------------------------------------------------

    def _execute_script(self, run: _Run) -> None:
        """Worker thread body: repeats, final status, clean-up."""
        script, state = run.script, run.state
        try:
            self._apply_window_targeting(script)
            logger.info(
                "Starting script execution with %s repeat(s)",
                "infinite" if script.is_infinite_repeat else script.repeat_count,
            )

            while not run.stop_requested() and (
                script.is_infinite_repeat
                or state.current_repeat < script.repeat_count
            ):
                with state.lock:
                    state.current_repeat += 1
                    state.last_repeat_time = datetime.now()
                    repeat = state.current_repeat
                logger.info(
                    "Starting repeat %d/%s of %s",
                    repeat,
                    "inf" if script.is_infinite_repeat else script.repeat_count,
                    script.id,
                )
                self._emit_state(run)

                if not self._execute_iteration(run):
                    self._log(
                        run,
                        LogLevel.ERROR,
                        "Script iteration failed, stopping execution",
                    )
                    break

                if (
                    not script.is_infinite_repeat
                    and repeat >= script.repeat_count
                ):
                    break

                if script.delay_between_repeats > 0 and not run.stop_requested():
                    self._log(
                        run,
                        LogLevel.DEBUG,
                        f"Waiting {script.delay_between_repeats}ms "
                        "before next repeat",
                    )
                    self._sleep(run, script.delay_between_repeats)

            with state.lock:
                cancelled = (
                    run.cancel.is_set()
                    or state.status is ExecutionStatus.STOPPED
                )
                if not cancelled:
                    state.status = ExecutionStatus.COMPLETED
            if cancelled:
                raise ScriptCancelledError()
            self._log(run, LogLevel.INFO, "Script execution completed")
            logger.info("Script %s completed", script.id)

        except ScriptCancelledError:
            with state.lock:
                state.status = ExecutionStatus.STOPPED
                repeats = state.current_repeat
            self._log(
                run,
                LogLevel.INFO,
                f"Script execution cancelled after {repeats} repeat(s)",
            )
            logger.info("Script %s cancelled after %d repeat(s)", script.id, repeats)

        except Exception as exc:
            logger.exception("Error executing script %s", script.id)
            with state.lock:
                state.status = ExecutionStatus.ERROR
            self._log(
                run, LogLevel.ERROR, f"Script execution failed: {exc}"
            )

        finally:
            try:
                self._restore_window_targeting()
            except Exception:
                logger.exception("Failed to restore window targeting")
            self._emit_state(run)
            run.done.set()

    def _execute_iteration(self, run: _Run) -> bool:
        """Walk the step list once.

        Returns:
            ``False`` only if an unexpected fault escaped the per-step
            error handling.

        Raises:
            ScriptCancelledError: If the run is stopped mid-iteration.
        """
        steps = run.script.steps
        cap = self._settings.max_step_transitions
        index = 0
        transitions = 0
        try:
            while index < len(steps) and not run.stop_requested():
                if transitions >= cap:
                    logger.warning(
                        "Script %s reached %d step transitions in repeat %d; "
                        "ending iteration",
                        run.script_id,
                        cap,
                        run.state.current_repeat,
                    )
                    break

                step = steps[index]
                if not self._enter_step(run, step):
                    index += 1
                    continue

                try:
                    result = self._execute_step(run, step)
                except ScriptCancelledError:
                    raise
                except Exception as exc:
                    logger.debug(
                        "Step %s of %s raised", step.id, run.script_id,
                        exc_info=True,
                    )
                    self._log(
                        run,
                        LogLevel.ERROR,
                        f"Error executing step: {exc}",
                        step.id,
                    )
                    result = StepResult(success=False, raised=True)

                index = self._next_index(run, step, index, result)
                transitions += 1
        except ScriptCancelledError:
            raise
        except Exception as exc:
            logger.exception("Iteration of %s failed", run.script_id)
            self._log(
                run, LogLevel.ERROR, f"Error in script iteration: {exc}"
            )
            return False
        return True

    def _enter_step(self, run: _Run, step: ScriptStep) -> bool:
        """Wait out any pause, then make *step* the current step.

        The pause check and the ``current_step_id`` update happen under
        the state lock, so a pause that lands first always holds the
        step.  Listeners are notified after the lock is released.

        Returns:
            ``False`` if *step* is disabled and must be skipped.

        Raises:
            ScriptCancelledError: If the run is stopped while waiting.
        """
        state = run.state
        poll = self._settings.pause_poll_ms / 1000.0
        while True:
            with run.wakeup:
                while not run.stop_requested() and (
                    state.status is ExecutionStatus.PAUSED
                ):
                    run.wakeup.wait(poll)
            if run.stop_requested():
                raise ScriptCancelledError()
            if not step.is_enabled:
                return False
            with state.lock:
                if state.status is ExecutionStatus.PAUSED:
                    continue
                state.current_step_id = step.id
            break

        self._emit_state(run)
        self._log(
            run, LogLevel.INFO, f"Executing step: {step.name}", step.id
        )
        return True

    def _next_index(
        self,
        run: _Run,
        step: ScriptStep,
        index: int,
        result: StepResult,
    ) -> int:
        """Resolve where the cursor goes after *step*."""
        if result.success:
            if not result.next_step_id:
                return index + 1
            target = run.step_index.get(result.next_step_id)
            if target is None:
                self._log(
                    run,
                    LogLevel.WARNING,
                    f"Step ID {result.next_step_id} not found, "
                    "continuing to next step",
                    step.id,
                )
                return index + 1
            self._log(
                run,
                LogLevel.INFO,
                f"Jumping to step: {run.script.steps[target].name}",
                step.id,
            )
            return target

        if not step.else_step_id:
            return index + 1
        target = run.step_index.get(step.else_step_id)
        if target is None:
            self._log(
                run,
                LogLevel.WARNING,
                f"Else step ID {step.else_step_id} not found, "
                "continuing to next step",
                step.id,
            )
            return index + 1
        if not result.raised:
            self._log(
                run,
                LogLevel.INFO,
                "Condition failed, jumping to else step: "
                f"{run.script.steps[target].name}",
                step.id,
            )
        return target

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _execute_step(self, run: _Run, step: ScriptStep) -> StepResult:
        kind = StepType.lookup(step.type)

        if kind is StepType.CONDITION:
            if not self._evaluate_conditions(run, step):
                return StepResult(success=False)
            self._execute_actions(run, step)
            return StepResult(success=True)

        if kind is StepType.ACTION:
            self._execute_actions(run, step)
            return StepResult(success=True)

        if kind is StepType.WAIT:
            ms = get_param(
                step.parameters, "milliseconds", self._settings.default_wait_ms
            )
            self._sleep(run, ms)
            return StepResult(success=True)

        if kind is StepType.JUMP:
            target = get_param(step.parameters, "targetStepId", "")
            return StepResult(success=True, next_step_id=target or None)

        self._log(
            run, LogLevel.WARNING, f"Unknown step type: {step.type}", step.id
        )
        return StepResult(success=True)

    def _evaluate_conditions(self, run: _Run, step: ScriptStep) -> bool:
        """Fold the step's conditions into one boolean.

        The aggregate starts out true and conditions are evaluated in
        order.  A true ``OR`` condition settles it as true and a false
        ``AND`` condition settles it as false, each skipping the rest.
        A false ``OR`` or a true ``AND`` leaves it unchanged, so a step
        fails only when a false ``AND`` comes before any true ``OR``.
        """
        for condition in step.conditions:
            met = self._evaluate_condition(run, step, condition)
            operator = (
                ConditionOperator.lookup(condition.operator)
                or ConditionOperator.AND
            )
            if operator is ConditionOperator.OR:
                if met:
                    return True
            elif not met:
                return False
        return True

    def _evaluate_condition(
        self, run: _Run, step: ScriptStep, condition: ScriptCondition
    ) -> bool:
        kind = ConditionType.lookup(condition.type)
        if kind is ConditionType.IMAGE_FOUND:
            return self._image_found(run, step, condition)
        if kind is ConditionType.IMAGE_NOT_FOUND:
            return not self._image_found(run, step, condition)
        if kind is ConditionType.TIMEOUT:
            timeout_ms = get_param(
                condition.parameters,
                "timeoutMs",
                self._settings.default_timeout_ms,
            )
            elapsed = datetime.now() - run.state.start_time
            return elapsed.total_seconds() * 1000.0 >= timeout_ms
        if kind is ConditionType.ALWAYS:
            return True
        if kind is ConditionType.NEVER:
            return False
        self._log(
            run,
            LogLevel.WARNING,
            f"Unknown condition type: {condition.type}",
            step.id,
        )
        return False

    def _image_found(
        self, run: _Run, step: ScriptStep, condition: ScriptCondition
    ) -> bool:
        """Capture the screen and look for the condition's template.

        Any failure is logged and reads as "not found".
        """
        try:
            template_id = get_param(
                condition.parameters, "templateImageId", ""
            )
            if not template_id:
                self._log(
                    run,
                    LogLevel.WARNING,
                    "Template image ID not specified in condition",
                    step.id,
                )
                return False

            template = self._storage.get_template_image(template_id)
            if template is None:
                self._log(
                    run,
                    LogLevel.WARNING,
                    f"Template image {template_id} not found",
                    step.id,
                )
                return False
            if not template.image_data:
                self._log(
                    run,
                    LogLevel.WARNING,
                    f"Template image {template_id} has no image data",
                    step.id,
                )
                return False

            threshold = get_param(
                condition.parameters, "threshold", template.match_threshold
            )
            screen = self._screenshots.capture_full_screen()
            result = self._recognizer.find_image(
                screen, template.image_data, threshold
            )
            self._log(
                run,
                LogLevel.DEBUG,
                f"Image search result: Found={result.found}, "
                f"Confidence={result.confidence:.3f}",
                step.id,
            )
            return result.found
        except Exception as exc:
            self._log(
                run,
                LogLevel.ERROR,
                f"Error evaluating image condition: {exc}",
                step.id,
            )
            return False

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def _execute_actions(self, run: _Run, step: ScriptStep) -> None:
        for action in step.actions:
            self._execute_action(run, step, action)

    def _execute_action(
        self, run: _Run, step: ScriptStep, action: ScriptAction
    ) -> None:
        """Perform one action, then its ``delay_after``.

        Raises:
            Exception: Whatever the collaborator raised, after logging.
        """
        params = action.parameters
        kind = ActionType.lookup(action.type)
        try:
            if kind is ActionType.CLICK:
                x, y = get_param(params, "x", 0), get_param(params, "y", 0)
                self._automation.click(x, y)
                message = f"Clicked at ({x}, {y})"
            elif kind is ActionType.DOUBLE_CLICK:
                x, y = get_param(params, "x", 0), get_param(params, "y", 0)
                self._automation.double_click(x, y)
                message = f"Double-clicked at ({x}, {y})"
            elif kind is ActionType.RIGHT_CLICK:
                x, y = get_param(params, "x", 0), get_param(params, "y", 0)
                self._automation.right_click(x, y)
                message = f"Right-clicked at ({x}, {y})"
            elif kind is ActionType.TYPE:
                text = get_param(params, "text", "")
                self._automation.type_text(text)
                message = f"Typed text: {text}"
            elif kind is ActionType.KEY_PRESS:
                keys = get_param(params, "keys", "")
                self._automation.send_keys(keys)
                message = f"Sent keys: {keys}"
            elif kind is ActionType.WAIT:
                ms = get_param(
                    params, "milliseconds", self._settings.default_wait_ms
                )
                self._sleep(run, ms)
                message = f"Waited {ms}ms"
            elif kind is ActionType.SCREENSHOT:
                file_name = get_param(
                    params,
                    "fileName",
                    f"script_screenshot_{datetime.now():%Y%m%d_%H%M%S}",
                )
                screen = self._screenshots.capture_full_screen()
                path = self._screenshots.save_screenshot(screen, file_name)
                message = f"Screenshot saved: {path}"
            else:
                self._log(
                    run,
                    LogLevel.WARNING,
                    f"Unknown action type: {action.type}",
                    step.id,
                )
                message = ""

            if message:
                self._log(run, LogLevel.INFO, message, step.id)
            if action.delay_after > 0:
                self._sleep(run, action.delay_after)
        except ScriptCancelledError:
            raise
        except Exception as exc:
            self._log(
                run,
                LogLevel.ERROR,
                f"Error executing action {action.type}: {exc}",
                step.id,
            )
            raise

    def _sleep(self, run: _Run, milliseconds: int) -> None:
        """Sleep through the automation engine, honouring cancellation.

        Raises:
            ScriptCancelledError: If the run is stopped before or while
                sleeping.
        """
        if run.stop_requested():
            raise ScriptCancelledError()
        if not self._automation.wait(milliseconds, run.cancel):
            raise ScriptCancelledError()

    # ------------------------------------------------------------------
    # Window targeting
    # ------------------------------------------------------------------

    def _apply_window_targeting(self, script: AutomationScript) -> None:
        override = self.target_window_override
        if override is not None:
            self._automation.set_target_window(override)
            return
        if not (script.use_window_targeting and script.target_window_handle):
            return
        try:
            handle = coerce(script.target_window_handle, int)
        except ValueError:
            logger.warning(
                "Script %s has an invalid target window handle %r",
                script.id,
                script.target_window_handle,
            )
            return
        self._automation.set_target_window(handle)

    def _restore_window_targeting(self) -> None:
        override = self.target_window_override
        if override is not None:
            self._automation.set_target_window(override)
        else:
            self._automation.clear_target_window()
