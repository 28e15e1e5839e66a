"""Plot build orchestration: spec in, plotly.js-ready ``{data, layout}`` out."""
from __future__ import annotations

import copy
from time import perf_counter
from typing import Any, Dict, List, Mapping, Optional, Union

from plotbuild.config.settings import Settings, get_settings
from plotbuild.engine.expression import eval_attrs
from plotbuild.engine.grouping import (
    SplitColumnNamer,
    add_split_columns,
    group2na,
    split_levels,
    traceify,
)
from plotbuild.engine.layout import (
    evaluate_layout_fragments,
    infer_axis_titles,
    modify_list,
)
from plotbuild.engine.scales import (
    MAPPING_ATTRS,
    map_color,
    map_linetype,
    map_size,
    map_symbol,
)
from plotbuild.engine.schema import infer_type, is_scatter
from plotbuild.engine.verify import verify
from plotbuild.models.plot_spec import AttributeSpec, Expression, PlotSpec, TraceSkeleton
from plotbuild.utils.logging import log_event, new_request_id
from plotbuild.utils.vectors import length


def build_plot(
    spec: Union[PlotSpec, Mapping[str, Any]],
    *,
    settings: Optional[Settings] = None,
    request_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Evaluate a plot spec into ``{"data": [...], "layout": {...}}``.

    A mapping that already holds ``data``/``layout`` is only validated and
    normalized.
    """
    settings = settings or get_settings()
    request_id = request_id or new_request_id()
    started = perf_counter()

    if isinstance(spec, PlotSpec):
        figure = _evaluate(spec, settings)
    else:
        figure = {
            "data": copy.deepcopy(list(spec.get("data") or [])),
            "layout": copy.deepcopy(dict(spec.get("layout") or {})),
        }

    result = verify(figure)
    log_event(
        "build.success",
        {
            "request_id": request_id,
            "trace_count": len(result["data"]),
            "latency_ms": round((perf_counter() - started) * 1000, 2),
        },
    )
    return result


def _evaluate(spec: PlotSpec, settings: Settings) -> Dict[str, Any]:
    layout = evaluate_layout_fragments(spec)

    sources: List[AttributeSpec] = list(spec.attrs)
    # a type-less first attribute set only makes a trace when nothing else does
    if len(sources) > 1 and sources[0].attrs.get("type") is None:
        sources = sources[1:]

    namer = SplitColumnNamer()
    skeletons: List[TraceSkeleton] = []
    for source in sources:
        layout = infer_axis_titles(source.attrs, layout)
        skeletons.append(_evaluate_source(source, spec, namer, settings))

    title = _color_title(sources)
    skeletons = map_color(skeletons, title=title, settings=settings)
    skeletons = map_size(skeletons, settings=settings)
    skeletons = map_symbol(skeletons, settings=settings)
    skeletons = map_linetype(skeletons)

    traces: List[Dict[str, Any]] = []
    colorbar_index: Optional[int] = None
    for skeleton in skeletons:
        attrs = skeleton.attrs
        levels = split_levels(attrs.get("color"), attrs.get("symbol"), attrs.get("linetype"))
        kept = {key: value for key, value in attrs.items() if key not in MAPPING_ATTRS}
        if skeleton.is_colorbar:
            colorbar_index = len(spec.data) + len(traces)
        traces.extend(traceify(kept, levels))

    data = copy.deepcopy(list(spec.data)) + traces
    layout = _reconcile_colorbar(data, layout, colorbar_index, settings)
    return {"data": data, "layout": layout}


def _evaluate_source(
    source: AttributeSpec,
    spec: PlotSpec,
    namer: SplitColumnNamer,
    settings: Settings,
) -> TraceSkeleton:
    dataset = spec.dataset_for(source.source)
    frame = dataset.frame
    nested: Dict[str, str] = {}
    if dataset.groups:
        frame, nested = add_split_columns(source.attrs, frame, namer)
        frame = group2na(frame, dataset.groups, list(nested))

    attrs = eval_attrs(copy.deepcopy(source.attrs), frame)
    # split channels follow their synthetic column so sentinel rows stay in level
    for column, channel in nested.items():
        attrs[channel] = frame[column]

    attrs = infer_type(attrs, settings)
    attr_lengths = [length(value) for value in attrs.values()]
    if is_scatter(attrs["type"]) and attrs.get("mode") is None:
        too_long = any(n > settings.mode_lines_threshold for n in attr_lengths)
        attrs["mode"] = "lines" if too_long else "markers+lines"

    attrs = {key: value for key, value in attrs.items() if length(value) > 0}
    return TraceSkeleton(attrs=attrs, source=source.source)


def _color_title(sources: List[AttributeSpec]) -> str:
    for source in sources:
        color = source.attrs.get("color")
        if isinstance(color, Expression):
            return color.label
        if length(color) > 0:
            return ""
    return ""


def _has_legend(data: List[Dict[str, Any]], layout: Dict[str, Any]) -> bool:
    if layout.get("showlegend", True) is False:
        return False
    return any(trace.get("showlegend", True) is not False for trace in data)


def _reconcile_colorbar(
    data: List[Dict[str, Any]],
    layout: Dict[str, Any],
    colorbar_index: Optional[int],
    settings: Settings,
) -> Dict[str, Any]:
    """Make room for both a colorbar and a legend, or drop the legend."""
    if colorbar_index is None or not _has_legend(data, layout):
        return layout
    if len(data) <= 2:
        return {**layout, "showlegend": False}

    colorbar_trace = data[colorbar_index]
    marker = colorbar_trace.get("marker") or {}
    shrink = {"len": settings.colorbar_len, "lenmode": "fraction", "y": 1, "yanchor": "top"}
    colorbar_trace["marker"] = {**marker, "colorbar": modify_list(shrink, marker.get("colorbar"))}
    legend = {"y": 0.5, "yanchor": "top"}
    return {**layout, "legend": modify_list(legend, layout.get("legend"))}
