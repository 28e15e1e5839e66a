"""Trace/layout vocabulary backed by the plotly graph-object schema."""
from __future__ import annotations

import re
from functools import lru_cache
from typing import Any, Dict, Optional, Tuple

import plotly.graph_objects as go
from plotly.basedatatypes import BaseTraceType
from plotly.validators.scatter.line import DashValidator
from plotly.validators.scatter.marker import SymbolValidator

from plotbuild.config.settings import Settings, get_settings
from plotbuild.exceptions import TraceTypeError
from plotbuild.utils.logging import log_event, warn
from plotbuild.utils.vectors import is_discrete, length

THREE_D_TYPES = frozenset(
    {"scatter3d", "surface", "mesh3d", "cone", "streamtube", "volume", "isosurface"}
)
_SUBPLOT_KEY_RE = re.compile(
    r"^(xaxis|yaxis|scene|geo|mapbox|map|polar|ternary|smith|coloraxis|legend)\d+$"
)


def _enumerated(values: Any) -> Tuple[str, ...]:
    # enumerated validators also list regex patterns as "/.../"
    codes = (str(v) for v in values)
    return tuple(dict.fromkeys(c for c in codes if not (c.startswith("/") and c.endswith("/"))))


@lru_cache(maxsize=None)
def valid_symbols() -> Tuple[str, ...]:
    # each symbol is listed as an int, its string form and a name
    return _enumerated(SymbolValidator().values)


@lru_cache(maxsize=None)
def valid_linetypes() -> Tuple[str, ...]:
    return _enumerated(DashValidator().values)


@lru_cache(maxsize=None)
def _trace_template(trace_type: str) -> Optional[BaseTraceType]:
    if trace_type != trace_type.lower():
        return None
    name = trace_type[:1].upper() + trace_type[1:]
    cls = getattr(go, name, None)
    if not isinstance(cls, type) or not issubclass(cls, BaseTraceType):
        return None
    return cls()


@lru_cache(maxsize=None)
def _layout_template() -> go.Layout:
    return go.Layout()


def is_trace_type(trace_type: Any) -> bool:
    return isinstance(trace_type, str) and _trace_template(trace_type) is not None


def has_attr(trace_type: str, attr: str) -> bool:
    template = _trace_template(trace_type)
    return template is not None and attr in template


def is_layout_attr(key: str) -> bool:
    match = _SUBPLOT_KEY_RE.match(key)
    return (match.group(1) if match else key) in _layout_template()


def is_3d(trace_type: Any) -> bool:
    return trace_type in THREE_D_TYPES


def is_scatter(trace_type: Any) -> bool:
    return "scatter" in str(trace_type or "scatter")


def has_marker(trace_type: str, mode: str) -> bool:
    if is_scatter(trace_type):
        return "marker" in mode
    return has_attr(trace_type, "marker")


def has_line(trace_type: str, mode: str) -> bool:
    if is_scatter(trace_type):
        return "line" in mode
    return has_attr(trace_type, "line")


def has_text(trace_type: str, mode: str) -> bool:
    if is_scatter(trace_type):
        return "text" in mode
    return has_attr(trace_type, "textfont")


def _relay_type(trace_type: str) -> str:
    log_event(
        "build.trace_type.inferred",
        {
            "trace_type": trace_type,
            "message": f"No trace type specified: a '{trace_type}' trace seems appropriate.",
        },
    )
    return trace_type


def infer_type(attrs: Dict[str, Any], settings: Settings | None = None) -> Dict[str, Any]:
    """Fill in ``type`` from the positional attributes present, then check it."""
    settings = settings or get_settings()
    if attrs.get("type") is None:
        present = {key for key, value in attrs.items() if length(value) > 0}
        if {"x", "y", "z"} <= present:
            trace_type = "mesh3d" if {"i", "j", "k"} <= present else "scatter3d"
        elif {"x", "y"} <= present:
            x_numeric = not is_discrete(attrs["x"])
            y_numeric = not is_discrete(attrs["y"])
            if x_numeric and y_numeric:
                longest = max(length(value) for value in attrs.values())
                trace_type = "scattergl" if longest > settings.scattergl_threshold else "scatter"
            elif x_numeric or y_numeric:
                trace_type = "bar"
            else:
                trace_type = "histogram2d"
        elif "x" in present or "y" in present:
            trace_type = "histogram"
        elif "z" in present:
            trace_type = "heatmap"
        else:
            warn(
                "build.trace_type.default",
                "No trace type specified and no positional attributes specified",
            )
            trace_type = "scatter"
        attrs = {**attrs, "type": _relay_type(trace_type)}

    trace_type = attrs["type"]
    if not isinstance(trace_type, str):
        raise TraceTypeError("The trace type must be a single character string")
    if not is_trace_type(trace_type):
        raise TraceTypeError(f"Trace type must be a valid plotly.js trace type, got '{trace_type}'")
    return attrs
