"""Tests for canvas configuration loading."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from dagcanvas.config import CanvasConfig, ConfigError, load_config, parse_direction
from dagcanvas.graph.models import LayoutDirection
from dagcanvas.layout.base import LayoutSettings

if TYPE_CHECKING:
    from pathlib import Path


class TestCanvasConfig:
    """Defaults and dict parsing."""

    def test_defaults(self) -> None:
        config = CanvasConfig()
        assert config.direction is LayoutDirection.TOP_TO_BOTTOM
        assert config.layout == LayoutSettings(150.0, 50.0)
        assert config.fit_padding == 0.2
        assert config.fit_duration_ms == 300
        assert config.delete_keys == ("Delete",)
        assert config.seed_example is True

    def test_from_dict(self) -> None:
        config = CanvasConfig.from_dict(
            {
                "direction": "lr",
                "layout": {"node_width": 120, "rank_sep": 80},
                "fit": {"padding": 0.1, "duration_ms": 0},
                "delete_keys": "Backspace",
                "seed_example": False,
            }
        )
        assert config.direction is LayoutDirection.LEFT_TO_RIGHT
        assert config.layout == LayoutSettings(node_width=120.0, rank_sep=80.0)
        assert config.fit_padding == 0.1
        assert config.fit_duration_ms == 0
        assert config.delete_keys == ("Backspace",)
        assert config.seed_example is False

    def test_unknown_layout_key(self) -> None:
        with pytest.raises(ValueError, match="nodesep"):
            CanvasConfig.from_dict({"layout": {"nodesep": 10}})

    def test_bad_direction(self) -> None:
        with pytest.raises(ValueError, match="expected TB or LR"):
            CanvasConfig.from_dict({"direction": "diagonal"})


class TestParseDirection:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("TB", LayoutDirection.TOP_TO_BOTTOM),
            (" lr ", LayoutDirection.LEFT_TO_RIGHT),
            (LayoutDirection.LEFT_TO_RIGHT, LayoutDirection.LEFT_TO_RIGHT),
        ],
    )
    def test_accepted(self, value: str | LayoutDirection, expected: LayoutDirection) -> None:
        assert parse_direction(value) is expected


class TestLoadConfig:
    """File resolution and environment overrides."""

    def test_no_file_gives_defaults(self, tmp_path: Path) -> None:
        assert load_config(config_dir=tmp_path) == CanvasConfig()

    def test_user_config_dir(self, tmp_path: Path) -> None:
        (tmp_path / "config.yaml").write_text("direction: LR\nfit:\n  padding: 0.5\n")
        config = load_config(config_dir=tmp_path)
        assert config.direction is LayoutDirection.LEFT_TO_RIGHT
        assert config.fit_padding == 0.5

    def test_explicit_path(self, tmp_path: Path) -> None:
        path = tmp_path / "canvas.yaml"
        path.write_text("seed_example: false\ndelete_keys: [Delete, Backspace]\n")
        config = load_config(path)
        assert config.seed_example is False
        assert config.delete_keys == ("Delete", "Backspace")

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "canvas.yaml"
        path.write_text("")
        assert load_config(path) == CanvasConfig()

    def test_missing_explicit_path(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="File not found"):
            load_config(tmp_path / "nope.yaml")

    def test_top_level_must_be_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "canvas.yaml"
        path.write_text("- TB\n- LR\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(path)

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "canvas.yaml"
        path.write_text("direction: [unclosed\n")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_invalid_value_wrapped(self, tmp_path: Path) -> None:
        path = tmp_path / "canvas.yaml"
        path.write_text("direction: up\n")
        with pytest.raises(ConfigError) as exc:
            load_config(path)
        assert exc.value.path == path

    def test_env_overrides_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "config.yaml").write_text("direction: TB\nseed_example: true\n")
        monkeypatch.setenv("DAGCANVAS_DIRECTION", "LR")
        monkeypatch.setenv("DAGCANVAS_SEED_EXAMPLE", "no")
        config = load_config(config_dir=tmp_path)
        assert config.direction is LayoutDirection.LEFT_TO_RIGHT
        assert config.seed_example is False

    def test_bad_env_boolean(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DAGCANVAS_SEED_EXAMPLE", "sometimes")
        with pytest.raises(ValueError, match="DAGCANVAS_SEED_EXAMPLE"):
            load_config(config_dir=tmp_path)
