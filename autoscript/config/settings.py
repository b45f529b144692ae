"""Configuration defaults for the AutoScript system.

Provides the ``Settings`` dataclass that holds every tunable parameter
for script storage, screenshots, the execution engine, image matching,
input injection, and the platform layer.

Typical usage::

    from autoscript.config.settings import get_default_settings

    settings = get_default_settings()
    print(settings.max_step_transitions)
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    """Immutable configuration for the entire AutoScript system.

    Each attribute group maps to one architectural component.

    Attributes:
        data_dir: Root directory for persisted scripts and templates.
        scripts_subdir: Sub-directory of ``data_dir`` holding one JSON
            document per script.
        templates_subdir: Sub-directory of ``data_dir`` holding template
            metadata documents and their PNG images.
        screenshots_dir: Directory where screenshot actions save images.
        max_log_entries: Maximum number of execution log entries kept
            per run.  Oldest entries are evicted first.
        max_step_transitions: Hard cap on step transitions within one
            iteration.  Guards against jump cycles in malformed scripts.
        pause_poll_ms: Upper bound on how long a paused run sleeps
            before re-checking its status.
        default_wait_ms: Duration used by ``wait`` steps and actions
            that do not specify ``milliseconds``.
        default_timeout_ms: Threshold used by ``timeout`` conditions
            that do not specify ``timeoutMs``.
        default_match_threshold: Template matching confidence required
            for an ``image_found`` condition when neither the condition
            nor the template overrides it.
        image_wait_interval_ms: Poll interval for the image wait
            helpers of the recognition service.
        click_settle_ms: Pause between moving the cursor and pressing
            the mouse button.
        double_click_interval_ms: Pause between the two clicks of a
            double-click on platforms without a native double-click.
        platform_name: Explicit platform override (``windows``,
            ``desktop``).  Left empty for auto-detection.
    """

    # -- Storage --------------------------------------------------------------
    data_dir: str = "Data"
    scripts_subdir: str = "Scripts"
    templates_subdir: str = "Templates"

    # -- Screenshots ----------------------------------------------------------
    screenshots_dir: str = "Screenshots"

    # -- Execution engine -----------------------------------------------------
    max_log_entries: int = 1000
    max_step_transitions: int = 1000
    pause_poll_ms: int = 100
    default_wait_ms: int = 1000
    default_timeout_ms: int = 5000

    # -- Image matching -------------------------------------------------------
    default_match_threshold: float = 0.8
    image_wait_interval_ms: int = 500

    # -- Input injection ------------------------------------------------------
    click_settle_ms: int = 10
    double_click_interval_ms: int = 50

    # -- Platform -------------------------------------------------------------
    platform_name: str = ""

    # -- Factory & serialisation ----------------------------------------------

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Settings:
        """Create a ``Settings`` instance from a plain dictionary.

        Unknown keys are silently ignored so that forward-compatible
        config files do not break older versions.

        Args:
            data: Dictionary whose keys correspond to ``Settings``
                field names.

        Returns:
            A new ``Settings`` instance populated from *data*, with
            defaults filling any missing keys.
        """
        known_names = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in data.items() if k in known_names}
        return cls(**filtered)

    def to_dict(self) -> dict[str, Any]:
        """Serialise the settings to a plain dictionary."""
        return asdict(self)

    # -- Derived paths --------------------------------------------------------

    @property
    def scripts_path(self) -> Path:
        """Directory holding script JSON documents."""
        return Path(self.data_dir) / self.scripts_subdir

    @property
    def templates_path(self) -> Path:
        """Directory holding template metadata and images."""
        return Path(self.data_dir) / self.templates_subdir


def get_default_settings() -> Settings:
    """Return a ``Settings`` instance with all default values."""
    return Settings()


def load_settings(path: str | Path) -> Settings:
    """Load settings from a JSON file, overlaid on the defaults.

    A missing file yields the defaults.  A file that is not a JSON
    object raises ``ValueError``.

    Args:
        path: Location of the JSON config file.

    Returns:
        The merged ``Settings``.
    """
    config_path = Path(path)
    if not config_path.exists():
        logger.info("Config file %s not found, using defaults", config_path)
        return get_default_settings()

    data = json.loads(config_path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(
            f"Config file {config_path} must contain a JSON object"
        )
    logger.debug("Loaded settings from %s", config_path)
    return Settings.from_dict(data)
