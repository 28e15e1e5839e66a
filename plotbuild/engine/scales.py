"""Plot-wide color, size, symbol and linetype scales.

Each mapper looks at one channel across every trace of a build, derives a
single shared scale from the union of the channel's values and writes the
resolved styling into the traces in place. A mapper is a no-op when no trace
uses its channel.
"""
from __future__ import annotations

from typing import Any, List, Optional, Sequence

import numpy as np

from plotbuild.config.settings import Settings, get_settings
from plotbuild.engine.layout import modify_list
from plotbuild.engine.palettes import discrete_colors, numeric_scale, resolve_palette
from plotbuild.engine.schema import (
    has_attr,
    has_line,
    has_marker,
    has_text,
    is_scatter,
    valid_linetypes,
    valid_symbols,
)
from plotbuild.exceptions import (
    ColorMappingError,
    PaletteError,
    SizeMappingError,
    VocabularyError,
)
from plotbuild.models.plot_spec import TraceSkeleton
from plotbuild.utils.logging import log_event, warn
from plotbuild.utils.vectors import (
    as_series,
    combine,
    is_discrete,
    is_numeric,
    is_ordered,
    is_vector,
    length,
    lookup,
    rescale,
    unique_levels,
    value_range,
)

# attributes only used to drive the scales; never emitted
MAPPING_ATTRS = (
    "color",
    "colors",
    "symbol",
    "symbols",
    "linetype",
    "linetypes",
    "size",
    "sizes",
)
DEFAULT_SYMBOLS = (
    "circle",
    "cross",
    "diamond",
    "square",
    "triangle-down",
    "triangle-left",
    "triangle-right",
    "triangle-up",
)
_QUANTILES = (0.0, 0.25, 0.5, 0.75, 1.0)


def _types(traces: Sequence[TraceSkeleton]) -> List[str]:
    return [tr.attrs.get("type") or "scatter" for tr in traces]


def _modes(traces: Sequence[TraceSkeleton]) -> List[str]:
    return [tr.attrs.get("mode") or "lines" for tr in traces]


def _first_given(traces: Sequence[TraceSkeleton], key: str) -> Any:
    for tr in traces:
        value = tr.attrs.get(key)
        if length(value) > 0:
            return value
    return None


def _levels(values: Any) -> List[Any]:
    series = as_series(values)
    if is_ordered(series):
        present = set(series.dropna().tolist())
        return [c for c in series.cat.categories if c in present]
    return unique_levels(series)


def _add_mode(trace: TraceSkeleton, part: str, reason: str) -> None:
    mode = trace.attrs.get("mode") or ""
    if part in mode:
        return
    log_event(
        "build.mode.augmented",
        {
            "mode": mode,
            "added": part,
            "message": f"Adding {part} to mode; otherwise {reason} would have no effect.",
        },
    )
    trace.attrs["mode"] = f"{mode}+{part}" if mode else part


def _single_palette(traces: Sequence[TraceSkeleton]) -> Any:
    palette = _first_given(traces, "colors")
    given: List[Any] = []
    for tr in traces:
        value = tr.attrs.get("colors")
        if length(value) == 0:
            continue
        key = value if isinstance(value, str) else tuple(map(str, value))
        if key not in given:
            given.append(key)
    nested = isinstance(palette, (list, tuple)) and any(isinstance(c, (list, tuple)) for c in palette)
    if len(given) > 1 or nested:
        raise PaletteError(
            "Multiple color palettes specified (via the colors argument). "
            "When using the color/colors arguments, only one palette is allowed."
        )
    return palette


def map_color(
    traces: List[TraceSkeleton],
    title: str = "",
    settings: Optional[Settings] = None,
) -> List[TraceSkeleton]:
    """Map ``color`` onto marker/line/text colors, appending a colorbar trace for numbers."""
    settings = settings or get_settings()
    colors = [tr.attrs.get("color") for tr in traces]
    if all(length(c) == 0 for c in colors):
        return traces
    numeric = [length(c) > 0 and is_numeric(c) for c in colors]
    discrete = [length(c) > 0 and is_discrete(c) for c in colors]
    if any(numeric) and any(discrete):
        raise ColorMappingError(
            "Can't have both discrete and numeric color mappings (mixed numeric/discrete color mapping)"
        )
    palette = _single_palette(traces)

    if any(numeric):
        _map_numeric_color(traces, colors, numeric, palette, title, settings)
    if any(discrete):
        _map_discrete_color(traces, colors, discrete, palette, settings)
    return traces


def _map_numeric_color(
    traces: List[TraceSkeleton],
    colors: List[Any],
    numeric: List[bool],
    palette: Any,
    title: str,
    settings: Settings,
) -> None:
    types = _types(traces)
    modes = _modes(traces)
    all_color = combine(c for c, is_num in zip(colors, numeric) if is_num).astype(float).to_numpy()
    lo, hi = float(np.nanmin(all_color)), float(np.nanmax(all_color))
    pal = resolve_palette(palette if palette is not None else settings.numeric_palette)

    if hi > lo:
        stops = np.unique(np.nanquantile(all_color, _QUANTILES))
        scale = numeric_scale(pal, (lo, hi), settings.na_color)
        positions = rescale(stops, (stops.min(), stops.max()), (0, 1))
        colorscale = [[float(p), c] for p, c in zip(positions, scale(stops))]
    else:
        colorscale = [[0.0, pal[0]], [1.0, pal[-1]]]

    color_obj = {
        "colorbar": {"title": {"text": str(title)}, "ticklen": 2},
        "cmin": lo,
        "cmax": hi,
        "colorscale": colorscale,
        "showscale": False,
    }
    for i, tr in enumerate(traces):
        if not numeric[i]:
            continue
        trace_type = types[i]
        obj = {**color_obj, "color": colors[i]}
        marker_ok = has_marker(trace_type, modes[i])
        if has_line(trace_type, modes[i]) and trace_type in ("scatter", "scattergl"):
            warn(
                "build.color.numeric_lines",
                "Numeric color variables cannot (yet) be mapped to lines "
                "when the trace type is 'scatter' or 'scattergl'.",
                {"trace_type": trace_type},
            )
            tr.attrs["mode"] = "markers"
            marker_ok = True
        if marker_ok:
            tr.attrs["marker"] = modify_list(obj, tr.attrs.get("marker"))
        if not is_scatter(trace_type) and length(tr.attrs.get("z")) > 0:
            accepted = {k: v for k, v in obj.items() if has_attr(trace_type, k)}
            tr.attrs = modify_list(accepted, tr.attrs)
        if has_text(trace_type, tr.attrs.get("mode") or modes[i]):
            warn(
                "build.color.numeric_text",
                "Numeric color variables cannot (yet) be mapped to text.",
                {"trace_type": trace_type},
            )

    x_range = value_range(tr.attrs.get("x") for tr in traces)
    y_range = value_range(tr.attrs.get("y") for tr in traces)
    colorbar_trace = {
        "x": list(x_range) if x_range else [],
        "y": list(y_range) if y_range else [],
        "type": "scatter",
        "mode": "markers",
        "opacity": 0,
        "hoverinfo": "none",
        "showlegend": False,
        "marker": {**color_obj, "color": [lo, hi], "showscale": True},
    }
    traces.append(TraceSkeleton(attrs=colorbar_trace, is_colorbar=True))


def _map_discrete_color(
    traces: List[TraceSkeleton],
    colors: List[Any],
    discrete: List[bool],
    palette: Any,
    settings: Settings,
) -> None:
    types = _types(traces)
    modes = _modes(traces)
    picked = [c for c, is_disc in zip(colors, discrete) if is_disc]
    all_color = combine(picked)
    lvls = _levels(all_color)
    if palette is not None:
        level_colors = discrete_colors(resolve_palette(palette), len(lvls))
    elif is_ordered(all_color):
        level_colors = discrete_colors(resolve_palette(settings.ordered_palette), len(lvls))
    else:
        level_colors = _qualitative_colors(resolve_palette(settings.discrete_palette), len(lvls))
    mapping = dict(zip(lvls, level_colors))

    for i, tr in enumerate(traces):
        if not discrete[i]:
            continue
        resolved = lookup(colors[i], mapping, default=settings.na_color)
        if has_line(types[i], modes[i]):
            tr.attrs["line"] = modify_list({"color": resolved}, tr.attrs.get("line"))
        if has_marker(types[i], modes[i]):
            tr.attrs["marker"] = modify_list({"color": resolved}, tr.attrs.get("marker"))
        if has_text(types[i], modes[i]):
            tr.attrs["textfont"] = modify_list({"color": resolved}, tr.attrs.get("textfont"))


def _qualitative_colors(colors: List[str], n: int) -> List[str]:
    # qualitative defaults hand out their first n colors
    if len(colors) >= n:
        return colors[:n]
    return discrete_colors(colors, n)


def map_size(traces: List[TraceSkeleton], settings: Optional[Settings] = None) -> List[TraceSkeleton]:
    """Rescale ``size`` into the configured pixel range as ``marker.size``."""
    settings = settings or get_settings()
    sizes = [tr.attrs.get("size") for tr in traces]
    if all(length(s) == 0 for s in sizes):
        return traces
    all_size = combine(sizes)
    if is_discrete(all_size):
        raise SizeMappingError("Size must be mapped to a numeric variable")
    numbers = all_size.astype(float).to_numpy()
    size_range = (float(np.nanmin(numbers)), float(np.nanmax(numbers)))
    target = _first_given(traces, "sizes")
    target = tuple(target) if target is not None else settings.size_range

    types = _types(traces)
    modes = _modes(traces)
    for i, tr in enumerate(traces):
        if length(sizes[i]) == 0:
            continue
        scaled = rescale(sizes[i], size_range, target)
        if not is_vector(sizes[i]):
            scaled = float(scaled[0])
        tr.attrs["marker"] = modify_list({"size": scaled, "sizemode": "area"}, tr.attrs.get("marker"))
        if has_line(types[i], modes[i]):
            warn(
                "build.size.lines",
                "Can't map size to lines since plotly.js doesn't yet support line.width arrays",
            )
        if has_text(types[i], modes[i]):
            warn(
                "build.size.text",
                "Can't map size to text since plotly.js doesn't yet support textfont.size arrays",
            )
    return traces


def map_symbol(traces: List[TraceSkeleton], settings: Optional[Settings] = None) -> List[TraceSkeleton]:
    """Assign marker symbols to the levels of ``symbol``."""
    settings = settings or get_settings()
    symbols = [tr.attrs.get("symbol") for tr in traces]
    if all(length(s) == 0 for s in symbols):
        return traces
    all_symbol = combine(symbols)
    if not is_discrete(all_symbol):
        warn(
            "build.symbol.coerced",
            "Coercing the symbol variable to a factor since symbols only make sense for discrete variables",
        )
    lvls = unique_levels(all_symbol)
    if len(lvls) > settings.symbol_warn_levels:
        warn(
            "build.symbol.too_many",
            f"You've mapped a variable with {len(lvls)} different levels to symbol. "
            f"It's very difficult to perceive more than {settings.symbol_warn_levels} "
            "different symbols in a single plot.",
            {"levels": len(lvls)},
        )

    valid = valid_symbols()
    requested = _requested(traces, "symbols", DEFAULT_SYMBOLS)
    illegal = [s for s in requested if s not in valid]
    if illegal:
        raise VocabularyError(
            f"The following are not valid symbol codes: {', '.join(illegal)}. "
            f"Valid symbols include: '{', '.join(valid)}'"
        )
    palette = dict(zip(lvls, requested))
    for i, tr in enumerate(traces):
        if length(symbols[i]) == 0:
            continue
        tr.attrs["marker"] = {**(tr.attrs.get("marker") or {}), "symbol": lookup(symbols[i], palette)}
        _add_mode(tr, "markers", "symbol")
    return traces


def map_linetype(traces: List[TraceSkeleton]) -> List[TraceSkeleton]:
    """Assign dash styles to the levels of ``linetype``.

    Levels beyond the number of available dash styles are left unstyled.
    """
    linetypes = [tr.attrs.get("linetype") for tr in traces]
    if all(length(lt) == 0 for lt in linetypes):
        return traces
    all_linetype = combine(linetypes)
    if not is_discrete(all_linetype):
        warn(
            "build.linetype.coerced",
            "Coercing the linetype variable to a factor since linetypes only make sense for discrete variables",
        )
    lvls = unique_levels(all_linetype)
    valid = valid_linetypes()
    if len(lvls) > len(valid):
        warn(
            "build.linetype.too_many",
            f"linetype has {len(lvls)} levels. plotly.js only has {len(valid)} different line types",
            {"levels": len(lvls)},
        )
    requested = _requested(traces, "linetypes", valid)
    illegal = [lt for lt in requested if lt not in valid]
    if illegal:
        raise VocabularyError(
            f"The following are not valid linetype codes: '{', '.join(illegal)}'. "
            f"Valid linetypes include: '{', '.join(valid)}'"
        )
    palette = dict(zip(lvls, requested))
    for i, tr in enumerate(traces):
        if length(linetypes[i]) == 0:
            continue
        tr.attrs["line"] = {**(tr.attrs.get("line") or {}), "dash": lookup(linetypes[i], palette)}
        _add_mode(tr, "lines", "linetype")
    return traces


def _requested(traces: Sequence[TraceSkeleton], key: str, default: Sequence[str]) -> List[str]:
    requested: List[str] = []
    for tr in traces:
        value = tr.attrs.get(key)
        if length(value) == 0:
            continue
        values = [value] if isinstance(value, str) else list(value)
        for item in values:
            if str(item) not in requested:
                requested.append(str(item))
    return requested or list(default)
