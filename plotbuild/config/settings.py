"""Build defaults loaded from environment variables."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

from dotenv import load_dotenv

# Load project-level .env regardless of current working directory.
_DOTENV_PATH = Path(__file__).resolve().parents[2] / ".env"
load_dotenv(_DOTENV_PATH)

_PREFIX = "PLOTBUILD_"


def _int(value: str | None, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _float(value: str | None, default: float) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _str(value: str | None, default: str = "") -> str:
    if value is None or not value.strip():
        return default
    return value.strip()


def _env(name: str) -> str | None:
    return os.getenv(_PREFIX + name)


@dataclass(frozen=True)
class Settings:
    # scatter traces with any attribute longer than this default to mode="lines"
    mode_lines_threshold: int
    # x/y scatter traces longer than this are inferred as scattergl
    scattergl_threshold: int
    size_range: Tuple[float, float]
    # perceptual limit for distinct symbols
    symbol_warn_levels: int
    numeric_palette: str
    discrete_palette: str
    ordered_palette: str
    na_color: str
    colorbar_len: float
    max_rows: int


def load_settings() -> Settings:
    return Settings(
        mode_lines_threshold=_int(_env("MODE_LINES_THRESHOLD"), 20),
        scattergl_threshold=_int(_env("SCATTERGL_THRESHOLD"), 15000),
        size_range=(
            _float(_env("SIZE_MIN"), 10.0),
            _float(_env("SIZE_MAX"), 100.0),
        ),
        symbol_warn_levels=_int(_env("SYMBOL_WARN_LEVELS"), 8),
        numeric_palette=_str(_env("NUMERIC_PALETTE"), "Viridis"),
        discrete_palette=_str(_env("DISCRETE_PALETTE"), "Set2"),
        ordered_palette=_str(_env("ORDERED_PALETTE"), "Viridis"),
        na_color=_str(_env("NA_COLOR"), "transparent"),
        colorbar_len=_float(_env("COLORBAR_LEN"), 0.5),
        max_rows=_int(_env("MAX_ROWS"), 100000),
    )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = load_settings()
    return _SETTINGS


def reset_settings() -> None:
    """Drop the cached settings so the next lookup re-reads the environment."""
    global _SETTINGS
    _SETTINGS = None
