from __future__ import annotations

import logging
from importlib import resources
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Union

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .graph.layout import BSPLayout, FloodFillLayout, GridLayout, Layout, layout_for_theme

logger = logging.getLogger(__name__)

DEFAULTS_RESOURCE = "default_generation.yaml"


class LayoutSpec(BaseModel):
    """Declarative layout entry as written in YAML; turned into a layout value on demand."""

    kind: Literal["grid", "bsp", "flood_fill"] = Field(..., description="Layout strategy")
    width: int = Field(5, description="Grid width")
    height: int = Field(5, description="Grid height")
    min_room_size: int = Field(3, description="BSP minimum room size")
    max_depth: int = Field(4, description="BSP maximum recursion depth")
    node_count: int = Field(20, description="Flood-fill target node count")
    density: float = Field(0.4, description="Flood-fill neighbour expansion fraction")
    positioned: bool = Field(True, description="Flood-fill nodes keep their coordinates")

    def to_layout(self, loop_frequency: float) -> Layout:
        if self.kind == "grid":
            return GridLayout(self.width, self.height, loop_frequency)
        if self.kind == "bsp":
            return BSPLayout(self.min_room_size, self.max_depth, loop_frequency)
        return FloodFillLayout(self.node_count, self.density, loop_frequency, self.positioned)


class ThemeLayout(BaseModel):
    keyword: str = Field(..., description="Substring matched against the region theme")
    layout: LayoutSpec

    @field_validator("keyword")
    @classmethod
    def normalize_keyword(cls, v: str) -> str:
        v = v.strip().lower()
        if not v:
            raise ValueError("Theme keyword must not be empty")
        return v


class GenerationSettings(BaseModel):
    """Everything a region generation run depends on besides the region id.

    Passed explicitly to :class:`~catacomb.graph.generator.GraphGenerator`;
    there is no module-level settings instance.
    """

    seed: Optional[Union[int, str]] = Field(default=None, description="Master seed; random when omitted")
    difficulty: int = Field(1, ge=1, description="Region difficulty level")
    loop_frequency: float = Field(0.5, ge=0.0, le=1.0, description="0 = tree-like, 1 = maximum loops")
    hidden_fraction_min: float = Field(0.15, ge=0.0, le=1.0)
    hidden_fraction_max: float = Field(0.25, ge=0.0, le=1.0)
    perception_base: int = Field(10, ge=0)
    perception_per_difficulty: int = Field(5, ge=0)
    perception_jitter: int = Field(10, ge=0)
    min_frontiers: int = Field(2, ge=0)
    dead_end_ratio: float = Field(0.2, ge=0.0, le=1.0)
    theme_layouts: List[ThemeLayout] = Field(default_factory=list, description="Ordered theme keyword table")
    fallback_layout: LayoutSpec = Field(default_factory=lambda: LayoutSpec(kind="grid", width=5, height=5))
    spawn_mobs: bool = Field(True, description="Forwarded to content generation only")

    @model_validator(mode="after")
    def check_hidden_range(self) -> "GenerationSettings":
        if self.hidden_fraction_min > self.hidden_fraction_max:
            raise ValueError(
                f"hidden_fraction_min ({self.hidden_fraction_min}) exceeds hidden_fraction_max ({self.hidden_fraction_max})"
            )
        return self

    def layout_for_theme(self, theme: str) -> Layout:
        themes = [(t.keyword, t.layout.to_layout(self.loop_frequency)) for t in self.theme_layouts]
        return layout_for_theme(theme, themes, self.fallback_layout.to_layout(self.loop_frequency))

    @staticmethod
    def _load_yaml(path: Path) -> Dict[str, Any]:
        with path.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}

    @classmethod
    def _deep_merge(cls, base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
        merged = dict(base)
        for k, v in (overlay or {}).items():
            if isinstance(v, dict) and isinstance(base.get(k), dict):
                merged[k] = cls._deep_merge(base[k], v)
            else:
                merged[k] = v
        return merged

    @classmethod
    def load(cls, user_path: Optional[Path] = None, **overrides: Any) -> "GenerationSettings":
        """Packaged defaults, overlaid by an optional user YAML file, then keyword overrides.

        Lists (such as ``theme_layouts``) are replaced wholesale, not merged.
        """
        with resources.files("catacomb.data").joinpath(DEFAULTS_RESOURCE).open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if user_path is not None:
            if user_path.exists():
                data = cls._deep_merge(data, cls._load_yaml(user_path))
                logger.info("Loaded generation settings from %s", user_path)
            else:
                logger.warning("Generation settings file not found: %s", user_path)

        data = cls._deep_merge(data, overrides)
        settings = cls.model_validate(data)
        logger.debug("Generation settings: %s", settings)
        return settings
