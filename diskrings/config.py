"""Scan and chart configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import FrozenSet, Optional, Tuple

SIZE_MODES = ("allocated", "logical")

# Directory suffixes the OS presents as a single document/application.
BUNDLE_EXTENSIONS: FrozenSet[str] = frozenset({
    ".app", ".appex", ".bundle", ".framework", ".plugin", ".kext",
    ".xpc", ".prefpane", ".qlgenerator", ".mdimporter", ".saver",
    ".photoslibrary", ".musiclibrary", ".xcodeproj", ".xcworkspace",
    ".rtfd", ".pages", ".numbers", ".key", ".playground", ".xcarchive",
})

BASE_DEPTH = 3
MAX_RINGS = 10
START_ANGLE = -90.0      # top of the circle, screen coordinates
MIN_ARC = 0.5            # degrees; thinner parents are not subdivided
CENTER_RADIUS = 0.18
OUTER_PADDING = 0.02

PALETTE: Tuple[str, ...] = (
    "#2f6bff", "#8e44ff", "#ff4fa3", "#ff4d4d", "#ff9a2f", "#ffd23f",
    "#3ccf6e", "#38e0b0", "#1fb5b5", "#38c6f4", "#5a5ff0", "#a2784c",
)


@dataclass(frozen=True)
class ScanConfig:
    size_mode: str = "allocated"
    bundle_extensions: FrozenSet[str] = BUNDLE_EXTENSIONS

    def __post_init__(self):
        if self.size_mode not in SIZE_MODES:
            raise ValueError(f"size_mode must be one of {SIZE_MODES}, got {self.size_mode!r}")


@dataclass(frozen=True)
class ChartConfig:
    base_depth: int = BASE_DEPTH
    max_rings: int = MAX_RINGS
    start_angle: float = START_ANGLE
    min_arc: float = MIN_ARC
    center_radius: float = CENTER_RADIUS
    outer_padding: float = OUTER_PADDING
    palette_size: int = len(PALETTE)
    min_opacity: float = 0.4
    opacity_step: float = 0.15

    def __post_init__(self):
        if self.base_depth < 1:
            raise ValueError("base_depth must be >= 1")
        if self.max_rings < self.base_depth:
            raise ValueError("max_rings must be >= base_depth")
        if self.palette_size < 1:
            raise ValueError("palette_size must be >= 1")
        if not 0.0 <= self.center_radius < 1.0 - self.outer_padding:
            raise ValueError("center_radius must leave room for the rings")


def _env_int(name: str) -> Optional[int]:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def load_config() -> Tuple[ScanConfig, ChartConfig]:
    """Build configs from defaults plus optional environment overrides.

    DISKRINGS_SIZE_MODE   allocated | logical
    DISKRINGS_BASE_DEPTH  rings built without explicit expansion
    DISKRINGS_MAX_RINGS   hard cap on ring count

    Invalid values fail loudly instead of being ignored.
    """
    size_mode = os.environ.get("DISKRINGS_SIZE_MODE", "").strip().lower() or "allocated"
    scan_cfg = ScanConfig(size_mode=size_mode)

    chart_kwargs = {}
    base_depth = _env_int("DISKRINGS_BASE_DEPTH")
    if base_depth is not None:
        chart_kwargs["base_depth"] = base_depth
    max_rings = _env_int("DISKRINGS_MAX_RINGS")
    if max_rings is not None:
        chart_kwargs["max_rings"] = max_rings
    return scan_cfg, ChartConfig(**chart_kwargs)
