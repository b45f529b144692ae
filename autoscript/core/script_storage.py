"""Persistence of scripts and template images.

Two implementations share the ``ScriptStorage`` interface:

* ``FileScriptStorage`` keeps one indented camelCase JSON document per
  script under ``<data_dir>/Scripts/<id>.json`` and, per template, a
  metadata document ``<data_dir>/Templates/<id>.json`` next to the
  image itself ``<data_dir>/Templates/<id>.png``.
* ``InMemoryScriptStorage`` keeps everything in dictionaries; it is
  used by tests and by the CLI's ``--demo`` mode.

Read helpers log and return ``None`` (or skip the entry) when a
document is missing or corrupt.  Write helpers let I/O errors propagate.
"""

from __future__ import annotations

import copy
import json
import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path

from autoscript.config.settings import Settings, get_default_settings
from autoscript.models.script import (
    AutomationScript,
    ScriptAction,
    ScriptStep,
    StepType,
    TemplateImage,
)

logger = logging.getLogger(__name__)


class ScriptStorage(ABC):
    """Loads and saves scripts and template images."""

    # -- Scripts -------------------------------------------------------

    @abstractmethod
    def get_script(self, script_id: str) -> AutomationScript | None:
        """Return the script with *script_id*, or ``None``."""

    @abstractmethod
    def get_all_scripts(self) -> list[AutomationScript]:
        """Return every stored script, sorted by name."""

    @abstractmethod
    def save_script(self, script: AutomationScript) -> str:
        """Insert or replace *script*, bumping ``modified_at``.

        Returns:
            The script id.
        """

    @abstractmethod
    def delete_script(self, script_id: str) -> None:
        """Remove a script.  Unknown ids are ignored."""

    # -- Templates -----------------------------------------------------

    @abstractmethod
    def get_template_image(self, template_id: str) -> TemplateImage | None:
        """Return the template with its image bytes loaded, or ``None``."""

    @abstractmethod
    def get_all_template_images(self) -> list[TemplateImage]:
        """Return every stored template, sorted by name."""

    @abstractmethod
    def save_template_image(self, template: TemplateImage) -> str:
        """Insert or replace *template*.

        Returns:
            The template id.
        """

    @abstractmethod
    def delete_template_image(self, template_id: str) -> None:
        """Remove a template and its image.  Unknown ids are ignored."""


# ----------------------------------------------------------------------
# File-backed storage
# ----------------------------------------------------------------------


class FileScriptStorage(ScriptStorage):
    """JSON-on-disk storage rooted at ``settings.data_dir``.

    Both directories are created on construction.

    Args:
        settings: Supplies ``scripts_path`` and ``templates_path``.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        settings = settings or get_default_settings()
        self._scripts_path = settings.scripts_path
        self._templates_path = settings.templates_path
        self._scripts_path.mkdir(parents=True, exist_ok=True)
        self._templates_path.mkdir(parents=True, exist_ok=True)

    @property
    def scripts_path(self) -> Path:
        return self._scripts_path

    @property
    def templates_path(self) -> Path:
        return self._templates_path

    @staticmethod
    def _read_json(path: Path) -> dict | None:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.error("Error reading %s: %s", path, exc)
            return None
        if not isinstance(data, dict):
            logger.error("Document %s is not a JSON object", path)
            return None
        return data

    @staticmethod
    def _write_json(path: Path, data: dict) -> None:
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    # -- Scripts -------------------------------------------------------

    def get_script(self, script_id: str) -> AutomationScript | None:
        path = self._scripts_path / f"{script_id}.json"
        if not path.exists():
            logger.warning("Script file not found: %s", path)
            return None
        data = self._read_json(path)
        if data is None:
            return None
        logger.debug("Loaded script: %s", script_id)
        return AutomationScript.from_dict(data)

    def get_all_scripts(self) -> list[AutomationScript]:
        scripts: list[AutomationScript] = []
        for path in sorted(self._scripts_path.glob("*.json")):
            data = self._read_json(path)
            if data is not None:
                scripts.append(AutomationScript.from_dict(data))
        logger.debug("Loaded %d scripts", len(scripts))
        return sorted(scripts, key=lambda s: s.name)

    def save_script(self, script: AutomationScript) -> str:
        script.modified_at = datetime.now()
        path = self._scripts_path / f"{script.id}.json"
        self._write_json(path, script.to_dict())
        logger.info("Saved script: %s to %s", script.id, path)
        return script.id

    def delete_script(self, script_id: str) -> None:
        path = self._scripts_path / f"{script_id}.json"
        if path.exists():
            path.unlink()
            logger.info("Deleted script: %s", script_id)
        else:
            logger.warning("Script file not found for deletion: %s", script_id)

    # -- Templates -----------------------------------------------------

    def _load_template(self, path: Path) -> TemplateImage | None:
        data = self._read_json(path)
        if data is None:
            return None
        template = TemplateImage.from_dict(data)
        image_path = (
            Path(template.file_path)
            if template.file_path
            else path.with_suffix(".png")
        )
        if image_path.exists():
            template.image_data = image_path.read_bytes()
        return template

    def get_template_image(self, template_id: str) -> TemplateImage | None:
        path = self._templates_path / f"{template_id}.json"
        if not path.exists():
            logger.warning("Template image file not found: %s", path)
            return None
        template = self._load_template(path)
        if template is not None:
            logger.debug("Loaded template image: %s", template_id)
        return template

    def get_all_template_images(self) -> list[TemplateImage]:
        templates = [
            t
            for t in (
                self._load_template(p)
                for p in sorted(self._templates_path.glob("*.json"))
            )
            if t is not None
        ]
        logger.debug("Loaded %d template images", len(templates))
        return sorted(templates, key=lambda t: t.name)

    def save_template_image(self, template: TemplateImage) -> str:
        if template.image_data:
            image_path = self._templates_path / f"{template.id}.png"
            image_path.write_bytes(template.image_data)
            template.file_path = str(image_path)
        path = self._templates_path / f"{template.id}.json"
        self._write_json(path, template.to_dict())
        logger.info("Saved template image: %s to %s", template.id, path)
        return template.id

    def delete_template_image(self, template_id: str) -> None:
        for suffix in (".json", ".png"):
            path = self._templates_path / f"{template_id}{suffix}"
            if path.exists():
                path.unlink()
        logger.info("Deleted template image: %s", template_id)


# ----------------------------------------------------------------------
# In-memory storage
# ----------------------------------------------------------------------


def sample_script() -> AutomationScript:
    """A two-step demo script: click the screen centre, then wait 2s."""
    return AutomationScript(
        id="sample-script-1",
        name="Sample Click Script",
        description="A sample script that demonstrates basic clicking",
        steps=[
            ScriptStep(
                id="step-1",
                order=1,
                type=StepType.ACTION.value,
                name="Click at center",
                actions=[
                    ScriptAction(
                        type="click", parameters={"x": 960, "y": 540}
                    )
                ],
            ),
            ScriptStep(
                id="step-2",
                order=2,
                type=StepType.WAIT.value,
                name="Wait 2 seconds",
                parameters={"milliseconds": 2000},
            ),
        ],
    )


class InMemoryScriptStorage(ScriptStorage):
    """Dictionary-backed storage.

    Scripts are stored and returned as deep copies, so callers cannot
    mutate stored state by accident.

    Args:
        seed_sample: Pre-populate with ``sample_script()``.
    """

    def __init__(self, seed_sample: bool = False) -> None:
        self._scripts: dict[str, AutomationScript] = {}
        self._templates: dict[str, TemplateImage] = {}
        self._lock = threading.Lock()
        if seed_sample:
            sample = sample_script()
            self._scripts[sample.id] = sample
            logger.info(
                "Initialized sample data with %d scripts", len(self._scripts)
            )

    def get_script(self, script_id: str) -> AutomationScript | None:
        with self._lock:
            script = self._scripts.get(script_id)
            return copy.deepcopy(script) if script is not None else None

    def get_all_scripts(self) -> list[AutomationScript]:
        with self._lock:
            scripts = [copy.deepcopy(s) for s in self._scripts.values()]
        return sorted(scripts, key=lambda s: s.name)

    def save_script(self, script: AutomationScript) -> str:
        script.modified_at = datetime.now()
        with self._lock:
            self._scripts[script.id] = copy.deepcopy(script)
        logger.info("Saved script in memory: %s", script.id)
        return script.id

    def delete_script(self, script_id: str) -> None:
        with self._lock:
            self._scripts.pop(script_id, None)
        logger.info("Deleted script from memory: %s", script_id)

    def get_template_image(self, template_id: str) -> TemplateImage | None:
        with self._lock:
            template = self._templates.get(template_id)
            return copy.deepcopy(template) if template is not None else None

    def get_all_template_images(self) -> list[TemplateImage]:
        with self._lock:
            templates = [copy.deepcopy(t) for t in self._templates.values()]
        return sorted(templates, key=lambda t: t.name)

    def save_template_image(self, template: TemplateImage) -> str:
        with self._lock:
            self._templates[template.id] = copy.deepcopy(template)
        logger.info("Saved template image in memory: %s", template.id)
        return template.id

    def delete_template_image(self, template_id: str) -> None:
        with self._lock:
            self._templates.pop(template_id, None)
        logger.info("Deleted template image from memory: %s", template_id)
