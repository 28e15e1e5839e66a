"""Palette resolution and color interpolation."""
from __future__ import annotations

from typing import Any, Callable, List, Sequence, Tuple

import numpy as np
import plotly.colors as pcolors
from plotly.exceptions import PlotlyError

from plotbuild.exceptions import PaletteError

_NAMED_GROUPS = (
    pcolors.qualitative,
    pcolors.sequential,
    pcolors.diverging,
    pcolors.cyclical,
)


def resolve_palette(palette: Any) -> List[str]:
    """Return a palette (name or list of colors) as ``rgb(...)`` strings."""
    if isinstance(palette, str):
        colors = None
        for group in _NAMED_GROUPS:
            found = getattr(group, palette, None)
            if isinstance(found, list):
                colors = found
                break
        if colors is None:
            try:
                colors = [color for _, color in pcolors.get_colorscale(palette)]
            except (PlotlyError, ValueError) as exc:
                raise PaletteError(f"Unknown palette '{palette}'") from exc
    else:
        colors = [str(c) for c in palette]
    if not colors:
        raise PaletteError("A palette needs at least one color")
    try:
        rgb, _ = pcolors.convert_colors_to_same_type(list(colors), colortype="rgb")
    except PlotlyError as exc:
        raise PaletteError(f"Palette colors must be hex or rgb strings: {exc}") from exc
    return rgb


def interpolate(colors: Sequence[str], points: Sequence[float]) -> List[str]:
    """Sample evenly spaced ``colors`` at positions in [0, 1]."""
    if len(colors) == 1:
        return [colors[0]] * len(points)
    scale = pcolors.make_colorscale(list(colors))
    clipped = [min(1.0, max(0.0, float(p))) for p in points]
    return [_rounded(c) for c in pcolors.sample_colorscale(scale, clipped)]


def _rounded(color: str) -> str:
    # sampled colors may carry fractional channels
    return pcolors.label_rgb(tuple(int(round(v)) for v in pcolors.unlabel_rgb(color)))


def numeric_scale(
    colors: Sequence[str],
    domain: Tuple[float, float],
    na_color: str,
) -> Callable[[Sequence[float]], List[str]]:
    """Map numbers in ``domain`` linearly onto the palette."""
    lo, hi = float(domain[0]), float(domain[1])

    def _scale(values: Sequence[float]) -> List[str]:
        numbers = np.asarray(values, dtype=float)
        if hi > lo:
            positions = (numbers - lo) / (hi - lo)
        else:
            positions = np.full(numbers.shape, 0.5)
        out: List[str] = [na_color] * len(numbers)
        valid = [i for i, v in enumerate(numbers) if not np.isnan(v)]
        for i, color in zip(valid, interpolate(colors, [positions[i] for i in valid])):
            out[i] = color
        return out

    return _scale


def discrete_colors(colors: Sequence[str], n: int) -> List[str]:
    """``n`` colors for ``n`` levels spread across the whole palette.

    A palette with exactly ``n`` colors is used as-is; any other length is
    sampled at ``n`` evenly spaced points from its first to its last color.
    """
    if n <= 0:
        return []
    if len(colors) == n:
        return list(colors)
    return interpolate(colors, np.linspace(0, 1, n).tolist())
