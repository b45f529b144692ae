"""Script data models: scripts, steps, conditions, actions, templates.

These dataclasses are shared between the ScriptStorage (which persists
them) and the ScriptExecutionService (which interprets them).  Keeping
them in the models layer avoids circular imports between core modules.

Step, condition, and action kinds are stored as plain strings so that a
document written by a newer editor still loads; the execution engine
resolves them against the enums below and reports unknown kinds at run
time.

Documents use camelCase keys on disk.  Key lookup when decoding is
case-insensitive, so ``RepeatCount`` and ``repeatCount`` are equivalent.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, TypeVar

_E = TypeVar("_E", bound="_KindEnum")


def _new_id() -> str:
    return str(uuid.uuid4())


class _KindEnum(Enum):
    """Enum whose members can be looked up from loosely-typed strings."""

    @classmethod
    def lookup(cls: type[_E], value: object) -> _E | None:
        """Resolve *value* to a member by value or name, ignoring case.

        Args:
            value: A member, its string value, or its name.

        Returns:
            The matching member, or ``None`` when nothing matches.
        """
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        for member in cls:
            if member.value == text or member.name.lower() == text:
                return member
        return None


class StepType(_KindEnum):
    """Kinds of script step.

    Attributes:
        CONDITION: Evaluate conditions, run actions when they hold.
        ACTION: Run actions unconditionally.
        WAIT: Sleep for ``parameters["milliseconds"]``.
        JUMP: Continue at ``parameters["targetStepId"]``.
    """

    CONDITION = "condition"
    ACTION = "action"
    WAIT = "wait"
    JUMP = "jump"


class ConditionType(_KindEnum):
    """Kinds of step condition."""

    IMAGE_FOUND = "image_found"
    IMAGE_NOT_FOUND = "image_not_found"
    TIMEOUT = "timeout"
    ALWAYS = "always"
    NEVER = "never"


class ConditionOperator(_KindEnum):
    """How a condition's result combines with the step aggregate."""

    AND = "and"
    OR = "or"


class ActionType(_KindEnum):
    """Kinds of input action a step can perform."""

    CLICK = "click"
    DOUBLE_CLICK = "double_click"
    RIGHT_CLICK = "right_click"
    TYPE = "type"
    KEY_PRESS = "key_press"
    WAIT = "wait"
    SCREENSHOT = "screenshot"


# ---------------------------------------------------------------------------
# Decoding helpers
# ---------------------------------------------------------------------------


class _Doc:
    """Case-insensitive read view over a decoded JSON object."""

    def __init__(self, data: dict[str, Any]) -> None:
        self._data = {str(k).lower(): v for k, v in data.items()}

    def get(self, key: str, default: Any = None) -> Any:
        value = self._data.get(key.lower(), default)
        return default if value is None else value


def _parse_time(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        return datetime.now()


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_float(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _as_dict(value: Any) -> dict[str, Any]:
    return dict(value) if isinstance(value, dict) else {}


def _as_list(value: Any) -> list[Any]:
    return list(value) if isinstance(value, list) else []


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


@dataclass
class ScreenRegion:
    """A rectangular area of the screen in pixels."""

    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScreenRegion:
        doc = _Doc(data)
        return cls(
            x=_as_int(doc.get("x"), 0),
            y=_as_int(doc.get("y"), 0),
            width=_as_int(doc.get("width"), 0),
            height=_as_int(doc.get("height"), 0),
        )


@dataclass
class ScriptCondition:
    """A single test evaluated by a ``condition`` step.

    The ``parameters`` dict carries condition-specific data:

    * ``image_found`` / ``image_not_found``: ``templateImageId`` and an
      optional ``threshold`` overriding the template's own.
    * ``timeout``: ``timeoutMs``.

    Attributes:
        type: Condition kind (see ``ConditionType``).
        parameters: Kind-specific payload.
        operator: ``"AND"`` or ``"OR"``; decides how this condition's
            result combines with the running aggregate of the step.
        id: Unique identifier.
    """

    type: str
    parameters: dict[str, Any] = field(default_factory=dict)
    operator: str = "AND"
    id: str = field(default_factory=_new_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "parameters": dict(self.parameters),
            "operator": self.operator,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScriptCondition:
        doc = _Doc(data)
        return cls(
            id=str(doc.get("id", _new_id())),
            type=str(doc.get("type", "")),
            parameters=_as_dict(doc.get("parameters")),
            operator=str(doc.get("operator", "AND")),
        )


@dataclass
class ScriptAction:
    """A single input action performed by a step.

    Attributes:
        type: Action kind (see ``ActionType``).
        parameters: Kind-specific payload (``x``/``y``, ``text``,
            ``keys``, ``milliseconds``, ``fileName``).
        delay_after: Milliseconds to sleep once the action completes.
        id: Unique identifier.
    """

    type: str
    parameters: dict[str, Any] = field(default_factory=dict)
    delay_after: int = 0
    id: str = field(default_factory=_new_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "parameters": dict(self.parameters),
            "delayAfter": self.delay_after,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScriptAction:
        doc = _Doc(data)
        return cls(
            id=str(doc.get("id", _new_id())),
            type=str(doc.get("type", "")),
            parameters=_as_dict(doc.get("parameters")),
            delay_after=max(0, _as_int(doc.get("delayAfter"), 0)),
        )


@dataclass
class ScriptStep:
    """An addressable unit of script behaviour.

    Traversal is by explicit jump, not by ``order``; the engine walks
    the ``steps`` list of the owning script and only consults ids when
    jumping.

    Attributes:
        type: Step kind (see ``StepType``).
        name: Display name used in execution logs.
        parameters: Step-level payload (``milliseconds`` for ``wait``,
            ``targetStepId`` for ``jump``).
        conditions: Conditions evaluated by ``condition`` steps.
        actions: Actions run by ``action`` steps and by ``condition``
            steps whose aggregate is true.
        else_step_id: Step to continue at when the conditions fail or
            the step raises.  ``None`` falls through to the next step.
        is_enabled: Disabled steps are skipped silently.
        order: Informational ordinal.
        id: Unique identifier.
    """

    type: str
    name: str = ""
    parameters: dict[str, Any] = field(default_factory=dict)
    conditions: list[ScriptCondition] = field(default_factory=list)
    actions: list[ScriptAction] = field(default_factory=list)
    else_step_id: str | None = None
    is_enabled: bool = True
    order: int = 0
    id: str = field(default_factory=_new_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "order": self.order,
            "type": self.type,
            "name": self.name,
            "parameters": dict(self.parameters),
            "conditions": [c.to_dict() for c in self.conditions],
            "actions": [a.to_dict() for a in self.actions],
            "elseStepId": self.else_step_id,
            "isEnabled": self.is_enabled,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScriptStep:
        doc = _Doc(data)
        else_step_id = doc.get("elseStepId")
        return cls(
            id=str(doc.get("id", _new_id())),
            order=_as_int(doc.get("order"), 0),
            type=str(doc.get("type", "")),
            name=str(doc.get("name", "")),
            parameters=_as_dict(doc.get("parameters")),
            conditions=[
                ScriptCondition.from_dict(c)
                for c in _as_list(doc.get("conditions"))
                if isinstance(c, dict)
            ],
            actions=[
                ScriptAction.from_dict(a)
                for a in _as_list(doc.get("actions"))
                if isinstance(a, dict)
            ],
            else_step_id=str(else_step_id) if else_step_id else None,
            is_enabled=bool(doc.get("isEnabled", True)),
        )


@dataclass
class AutomationScript:
    """An ordered sequence of steps plus repeat and targeting options.

    Attributes:
        name: Display name.
        steps: Steps in authored order.  Each iteration starts at the
            first one.
        description: Free-text description.
        is_infinite_repeat: Repeat until stopped.
        repeat_count: Number of iterations when not infinite (>= 1).
        delay_between_repeats: Milliseconds to wait between iterations.
        target_window_handle: Window handle (decimal or ``0x`` hex)
            that input should be directed to.
        use_window_targeting: Whether ``target_window_handle`` applies.
        is_active: Editor flag; not read by the engine.
        created_at: Creation time.
        modified_at: Last save time.
        id: Unique identifier.
    """

    name: str
    steps: list[ScriptStep] = field(default_factory=list)
    description: str = ""
    is_infinite_repeat: bool = False
    repeat_count: int = 1
    delay_between_repeats: int = 0
    target_window_handle: str = ""
    use_window_targeting: bool = False
    is_active: bool = False
    created_at: datetime = field(default_factory=datetime.now)
    modified_at: datetime = field(default_factory=datetime.now)
    id: str = field(default_factory=_new_id)

    def __post_init__(self) -> None:
        self.repeat_count = max(1, self.repeat_count)
        self.delay_between_repeats = max(0, self.delay_between_repeats)

    def find_step(self, step_id: str) -> ScriptStep | None:
        """Return the step with *step_id*, or ``None``."""
        for step in self.steps:
            if step.id == step_id:
                return step
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "createdAt": self.created_at.isoformat(),
            "modifiedAt": self.modified_at.isoformat(),
            "steps": [s.to_dict() for s in self.steps],
            "isActive": self.is_active,
            "isInfiniteRepeat": self.is_infinite_repeat,
            "repeatCount": self.repeat_count,
            "delayBetweenRepeats": self.delay_between_repeats,
            "targetWindowHandle": self.target_window_handle,
            "useWindowTargeting": self.use_window_targeting,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AutomationScript:
        """Build a script from a decoded JSON document.

        Unknown keys are ignored and malformed nested entries are
        dropped rather than failing the whole document.
        """
        doc = _Doc(data)
        return cls(
            id=str(doc.get("id", _new_id())),
            name=str(doc.get("name", "")),
            description=str(doc.get("description", "")),
            created_at=_parse_time(doc.get("createdAt", "")),
            modified_at=_parse_time(doc.get("modifiedAt", "")),
            steps=[
                ScriptStep.from_dict(s)
                for s in _as_list(doc.get("steps"))
                if isinstance(s, dict)
            ],
            is_active=bool(doc.get("isActive", False)),
            is_infinite_repeat=bool(doc.get("isInfiniteRepeat", False)),
            repeat_count=_as_int(doc.get("repeatCount"), 1),
            delay_between_repeats=_as_int(
                doc.get("delayBetweenRepeats"), 0
            ),
            target_window_handle=str(doc.get("targetWindowHandle", "")),
            use_window_targeting=bool(
                doc.get("useWindowTargeting", False)
            ),
        )


@dataclass
class TemplateImage:
    """A reference image matched against live screen captures.

    Attributes:
        name: Display name.
        image_data: Encoded image bytes (PNG).  Not stored in the
            metadata document; reloaded from ``file_path``.
        file_path: Location of the image file on disk.
        capture_region: Screen area the template was captured from.
        match_threshold: Confidence (0.0 -- 1.0) a match must reach.
        created_at: Capture time.
        id: Unique identifier.
    """

    name: str
    image_data: bytes = b""
    file_path: str = ""
    capture_region: ScreenRegion = field(default_factory=ScreenRegion)
    match_threshold: float = 0.8
    created_at: datetime = field(default_factory=datetime.now)
    id: str = field(default_factory=_new_id)

    def __post_init__(self) -> None:
        self.match_threshold = min(1.0, max(0.0, self.match_threshold))

    def to_dict(self) -> dict[str, Any]:
        """Serialise the metadata (image bytes are excluded)."""
        return {
            "id": self.id,
            "name": self.name,
            "filePath": self.file_path,
            "createdAt": self.created_at.isoformat(),
            "captureRegion": self.capture_region.to_dict(),
            "matchThreshold": self.match_threshold,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TemplateImage:
        doc = _Doc(data)
        region = doc.get("captureRegion")
        return cls(
            id=str(doc.get("id", _new_id())),
            name=str(doc.get("name", "")),
            file_path=str(doc.get("filePath", "")),
            created_at=_parse_time(doc.get("createdAt", "")),
            capture_region=(
                ScreenRegion.from_dict(region)
                if isinstance(region, dict)
                else ScreenRegion()
            ),
            match_threshold=_as_float(doc.get("matchThreshold"), 0.8),
        )
