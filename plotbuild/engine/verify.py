"""Final checks and normalization of a built figure."""
from __future__ import annotations

import json
from typing import Any, Dict

from plotly.utils import PlotlyJSONEncoder

from plotbuild.engine.schema import has_attr, is_layout_attr, is_scatter
from plotbuild.exceptions import AttributeNameError
from plotbuild.utils.logging import log_event
from plotbuild.utils.vectors import as_series, is_vector, length

# attributes holding one value per data point
DATA_ARRAY_ATTRS = (
    "x",
    "y",
    "z",
    "ids",
    "customdata",
    "lat",
    "lon",
    "locations",
    "labels",
    "values",
    "parents",
    "i",
    "j",
    "k",
    "open",
    "high",
    "low",
    "close",
    "r",
    "theta",
    "a",
    "b",
    "c",
)
# attributes plotly.js only accepts as a single value
SCALAR_ONLY_ATTRS = (
    ("line", "color"),
    ("line", "dash"),
    ("line", "width"),
    ("fillcolor",),
)
ARRAY_LAYOUT_ATTRS = ("annotations", "shapes", "images")


def validate_names(figure: Dict[str, Any]) -> None:
    """Every top-level trace and layout attribute must exist in the plotly schema."""
    for trace in figure.get("data", []):
        trace_type = trace.get("type") or "scatter"
        illegal = [key for key in trace if key != "type" and not has_attr(trace_type, key)]
        if illegal:
            raise AttributeNameError(
                f"'{trace_type}' objects don't have these attributes: '{', '.join(illegal)}'"
            )
    illegal = [key for key in figure.get("layout", {}) if not is_layout_attr(key)]
    if illegal:
        raise AttributeNameError(f"'layout' objects don't have these attributes: '{', '.join(illegal)}'")


def box_array_attrs(figure: Dict[str, Any]) -> None:
    """Box scalar data-array values; collapse constant vectors of scalar-only attributes."""
    for trace in figure.get("data", []):
        for key in DATA_ARRAY_ATTRS:
            if key in trace and trace[key] is not None and not is_vector(trace[key]):
                trace[key] = [trace[key]]
        for path in SCALAR_ONLY_ATTRS:
            _collapse_constant(trace, path)


def _collapse_constant(trace: Dict[str, Any], path: tuple) -> None:
    parent = trace
    for key in path[:-1]:
        parent = parent.get(key)
        if not isinstance(parent, dict):
            return
    value = parent.get(path[-1])
    if not is_vector(value) or length(value) == 0:
        return
    distinct = as_series(value).dropna().unique().tolist()
    if len(distinct) <= 1:
        parent[path[-1]] = distinct[0] if distinct else None


def complete_mode(figure: Dict[str, Any]) -> None:
    """Scatter traces that style markers, lines or text must show them."""
    parts = (("marker", "markers"), ("line", "lines"), ("textfont", "text"))
    for trace in figure.get("data", []):
        if not is_scatter(trace.get("type")):
            continue
        for attr, part in parts:
            mode = trace.get("mode") or ""
            if trace.get(attr) is None or part in mode:
                continue
            log_event(
                "build.mode.completed",
                {
                    "attr": attr,
                    "message": f"A {attr} object has been specified, but {part} is not in the mode. "
                    f"Adding {part} to the mode.",
                },
            )
            trace["mode"] = f"{mode}+{part}" if mode else part


def force_array_attrs(figure: Dict[str, Any], attrs: tuple = ARRAY_LAYOUT_ATTRS) -> None:
    layout = figure.get("layout", {})
    for key in attrs:
        if isinstance(layout.get(key), dict):
            layout[key] = [layout[key]]


def default_hover_mode(figure: Dict[str, Any]) -> None:
    layout = figure.setdefault("layout", {})
    if layout.get("hovermode") is not None:
        return
    for trace in figure.get("data", []):
        trace_type = trace.get("type") or "scatter"
        mode = trace.get("mode") or "lines"
        if trace_type == "scatter" and "markers" in mode:
            layout["hovermode"] = "closest"
            return


def verify(figure: Dict[str, Any]) -> Dict[str, Any]:
    """Run the normalization pass in order and return plain JSON-ready data."""
    validate_names(figure)
    box_array_attrs(figure)
    complete_mode(figure)
    force_array_attrs(figure)
    default_hover_mode(figure)
    return to_plain(figure)


def to_plain(figure: Dict[str, Any]) -> Dict[str, Any]:
    """Convert numpy/pandas values to lists and scalars, NaN to None."""
    return json.loads(json.dumps(figure, cls=PlotlyJSONEncoder))
