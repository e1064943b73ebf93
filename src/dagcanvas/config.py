"""Canvas configuration loading.

Settings resolve in this order (first wins):
1. Environment variables (``DAGCANVAS_DIRECTION``, ``DAGCANVAS_SEED_EXAMPLE``)
2. An explicit config file passed on the command line
3. The user config at ~/.config/dagcanvas/config.yaml
4. Built-in defaults
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from dagcanvas.graph.models import LayoutDirection
from dagcanvas.layout.base import LayoutSettings
from dagcanvas.observability.logging import get_logger

log = get_logger(__name__)

# XDG-compliant default config directory
_DEFAULT_CONFIG_DIR = Path.home() / ".config" / "dagcanvas"

DEFAULT_DELETE_KEYS = ("Delete",)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class CanvasConfig:
    """Settings for the canvas controller and its layout adapter.

    Attributes:
        direction: Default direction for the layout command.
        layout: Node box geometry and spacing for the layered layout.
        fit_padding: Viewport padding requested after a layout, as a
            fraction of the graph extent.
        fit_duration_ms: Duration of the viewport refit animation.
        delete_keys: Key names that trigger deletion of the selection.
        seed_example: Start the editor with the two-node starter graph.
    """

    direction: LayoutDirection = LayoutDirection.TOP_TO_BOTTOM
    layout: LayoutSettings = field(default_factory=LayoutSettings)
    fit_padding: float = 0.2
    fit_duration_ms: int = 300
    delete_keys: tuple[str, ...] = DEFAULT_DELETE_KEYS
    seed_example: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CanvasConfig:
        """Create config from a parsed YAML mapping.

        Args:
            data: Mapping with optional keys ``direction`` ("TB"/"LR"),
                ``layout`` (node_width, node_height, rank_sep, node_sep),
                ``fit`` (padding, duration_ms), ``delete_keys`` and
                ``seed_example``.

        Raises:
            ValueError: If a value has the wrong shape.
        """
        defaults = cls()

        layout_data = dict(data.get("layout") or {})
        unknown = set(layout_data) - {"node_width", "node_height", "rank_sep", "node_sep"}
        if unknown:
            raise ValueError(f"Unknown layout settings: {', '.join(sorted(unknown))}")
        layout = LayoutSettings(**{k: float(v) for k, v in layout_data.items()})

        fit = dict(data.get("fit") or {})
        delete_keys = data.get("delete_keys", defaults.delete_keys)
        if isinstance(delete_keys, str):
            delete_keys = [delete_keys]

        return cls(
            direction=parse_direction(data.get("direction", defaults.direction.value)),
            layout=layout,
            fit_padding=float(fit.get("padding", defaults.fit_padding)),
            fit_duration_ms=int(fit.get("duration_ms", defaults.fit_duration_ms)),
            delete_keys=tuple(str(k) for k in delete_keys),
            seed_example=bool(data.get("seed_example", defaults.seed_example)),
        )

    def with_env_overrides(self) -> CanvasConfig:
        """Apply environment variable overrides."""
        config = self
        direction = os.getenv("DAGCANVAS_DIRECTION")
        if direction:
            config = replace(config, direction=parse_direction(direction))
        seed = os.getenv("DAGCANVAS_SEED_EXAMPLE")
        if seed:
            config = replace(config, seed_example=_parse_bool(seed, "DAGCANVAS_SEED_EXAMPLE"))
        return config


class ConfigError(Exception):
    """Raised when a configuration file cannot be loaded."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load config at {path}: {reason}")


def parse_direction(value: str | LayoutDirection) -> LayoutDirection:
    """Parse "TB"/"LR" (case-insensitive) or a LayoutDirection.

    Raises:
        ValueError: If the value names no direction.
    """
    if isinstance(value, LayoutDirection):
        return value
    try:
        return LayoutDirection(str(value).strip().upper())
    except ValueError:
        raise ValueError(f"Unknown layout direction '{value}' (expected TB or LR)") from None


def _parse_bool(value: str, name: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean, got '{value}'")


def _read_yaml(path: Path) -> dict[str, Any]:
    yaml = YAML()
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.load(f)
    except (OSError, YAMLError) as e:
        raise ConfigError(path, str(e)) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(path, "Top level must be a mapping")
    return dict(data)


def load_config(path: Path | None = None, *, config_dir: Path | None = None) -> CanvasConfig:
    """Load the canvas configuration.

    Args:
        path: Explicit config file. Must exist if given.
        config_dir: Override the user config directory (for testing).
            Defaults to ~/.config/dagcanvas/.

    Returns:
        Resolved CanvasConfig, environment overrides applied.

    Raises:
        ConfigError: If a config file cannot be read or holds invalid values.
    """
    if path is None:
        candidate = (config_dir or _DEFAULT_CONFIG_DIR) / "config.yaml"
        path = candidate if candidate.exists() else None
    elif not path.exists():
        raise ConfigError(path, "File not found")

    config = CanvasConfig()
    if path is not None:
        try:
            config = CanvasConfig.from_dict(_read_yaml(path))
        except (TypeError, ValueError) as e:
            raise ConfigError(path, str(e)) from e
        log.debug("config_loaded", path=str(path))

    return config.with_env_overrides()
