from __future__ import annotations

import pandas as pd
import pytest

from plotbuild.engine.palettes import resolve_palette
from plotbuild.engine.scales import (
    DEFAULT_SYMBOLS,
    map_color,
    map_linetype,
    map_size,
    map_symbol,
)
from plotbuild.engine.schema import valid_linetypes
from plotbuild.exceptions import (
    ColorMappingError,
    PaletteError,
    SizeMappingError,
    VocabularyError,
)
from plotbuild.models.plot_spec import TraceSkeleton
from plotbuild.utils.logging import PlotBuildWarning


def _trace(**attrs) -> TraceSkeleton:
    return TraceSkeleton(attrs={"type": "scatter", "mode": "markers", **attrs})


def test_mappers_are_no_ops_without_their_channel() -> None:
    traces = [_trace(x=[1, 2], y=[3, 4])]

    for mapper in (map_color, map_size, map_symbol, map_linetype):
        assert mapper(traces) is traces
    assert traces[0].attrs == {"type": "scatter", "mode": "markers", "x": [1, 2], "y": [3, 4]}


def test_numeric_color_appends_one_invisible_colorbar_trace() -> None:
    traces = [
        _trace(x=[1, 2], y=[5, 6], color=[0.1, 0.5]),
        _trace(x=[3, 4], y=[1, 9], color=[0.2, 0.9]),
    ]

    result = map_color(traces, title="score")

    assert len(result) == 3
    colorbar = result[-1]
    assert colorbar.is_colorbar
    assert colorbar.attrs["opacity"] == 0
    assert colorbar.attrs["showlegend"] is False
    assert colorbar.attrs["hoverinfo"] == "none"
    assert colorbar.attrs["marker"]["showscale"] is True
    assert list(colorbar.attrs["x"]) == [1, 4]
    assert list(colorbar.attrs["y"]) == [1, 9]
    assert colorbar.attrs["marker"]["colorbar"]["title"] == {"text": "score"}

    marker = result[0].attrs["marker"]
    assert marker["color"] == [0.1, 0.5]
    assert marker["cmin"] == 0.1
    assert marker["cmax"] == 0.9
    assert marker["showscale"] is False
    assert marker["colorscale"][0][0] == 0.0
    assert marker["colorscale"][-1][0] == 1.0


def test_numeric_color_keeps_user_marker_values() -> None:
    traces = [_trace(x=[1, 2], y=[1, 2], color=[1, 2], marker={"showscale": True, "size": 4})]

    map_color(traces)

    assert traces[0].attrs["marker"]["showscale"] is True
    assert traces[0].attrs["marker"]["size"] == 4


def test_numeric_color_on_scatter_lines_falls_back_to_markers() -> None:
    traces = [_trace(mode="markers+lines", x=[1, 2], y=[1, 2], color=[1, 2])]

    with pytest.warns(PlotBuildWarning, match="mapped to lines"):
        map_color(traces)

    assert traces[0].attrs["mode"] == "markers"
    assert traces[0].attrs["marker"]["color"] == [1, 2]


def test_numeric_color_for_z_types_goes_top_level() -> None:
    traces = [TraceSkeleton(attrs={"type": "heatmap", "z": [[1, 2], [3, 4]], "color": [1, 4]})]

    map_color(traces)

    assert traces[0].attrs["colorscale"]
    assert traces[0].attrs["colorbar"]["ticklen"] == 2
    assert "color" not in traces[0].attrs["colorbar"]


def test_mixed_numeric_and_discrete_color_raises() -> None:
    traces = [
        _trace(x=[1, 2], y=[1, 2], color=[1.0, 2.0]),
        _trace(x=[1, 2], y=[1, 2], color=["a", "b"]),
    ]

    with pytest.raises(ColorMappingError, match="mixed numeric/discrete"):
        map_color(traces)
    assert len(traces) == 2


def test_discrete_color_maps_levels_onto_palette() -> None:
    traces = [_trace(x=[1, 2, 3], y=[1, 2, 3], color=["a", "b", "a"], colors=["#ff0000", "#00ff00"])]

    map_color(traces)

    assert traces[0].attrs["marker"]["color"] == [
        "rgb(255, 0, 0)",
        "rgb(0, 255, 0)",
        "rgb(255, 0, 0)",
    ]
    assert "line" not in traces[0].attrs


def test_discrete_color_styles_lines_and_missing_values() -> None:
    traces = [
        TraceSkeleton(
            attrs={
                "type": "scatter",
                "mode": "lines",
                "x": [1, 2],
                "y": [1, 2],
                "color": ["a", None],
                "colors": ["#0000ff"],
            }
        )
    ]

    map_color(traces)

    assert traces[0].attrs["line"]["color"] == ["rgb(0, 0, 255)", "transparent"]


def test_conflicting_palettes_raise() -> None:
    traces = [
        _trace(x=[1], y=[1], color=["a"], colors=["#ff0000"]),
        _trace(x=[1], y=[1], color=["b"], colors=["#00ff00"]),
    ]

    with pytest.raises(PaletteError, match="only one palette is allowed"):
        map_color(traces)


def test_size_on_discrete_values_raises() -> None:
    traces = [_trace(x=[1, 2, 3], y=[1, 2, 3], size=["low", "mid", "high"])]

    with pytest.raises(SizeMappingError, match="numeric variable"):
        map_size(traces)


def test_size_rescales_into_requested_range() -> None:
    traces = [
        _trace(x=[1, 2], y=[1, 2], size=[1, 2], sizes=[10, 100]),
        _trace(x=[1], y=[1], size=[3]),
    ]

    map_size(traces)

    assert list(traces[0].attrs["marker"]["size"]) == [10.0, 55.0]
    assert list(traces[1].attrs["marker"]["size"]) == [100.0]
    assert traces[0].attrs["marker"]["sizemode"] == "area"


def test_size_warns_for_line_geometry() -> None:
    traces = [TraceSkeleton(attrs={"type": "scatter", "mode": "lines", "x": [1, 2], "y": [1, 2], "size": [1, 2]})]

    with pytest.warns(PlotBuildWarning, match="line.width"):
        map_size(traces)


def test_symbol_more_than_eight_levels_warns_and_uses_palette_prefix() -> None:
    levels = [f"l{i}" for i in range(9)]
    traces = [_trace(x=list(range(9)), y=list(range(9)), symbol=levels)]

    with pytest.warns(PlotBuildWarning, match="9 different levels to symbol"):
        map_symbol(traces)

    assigned = traces[0].attrs["marker"]["symbol"]
    assert assigned[:8] == list(DEFAULT_SYMBOLS)
    assert assigned[8] is None


def test_symbol_adds_markers_to_mode() -> None:
    traces = [TraceSkeleton(attrs={"type": "scatter", "mode": "lines", "x": [1, 2], "y": [1, 2], "symbol": ["a", "b"]})]

    map_symbol(traces)

    assert traces[0].attrs["mode"] == "lines+markers"
    assert traces[0].attrs["marker"]["symbol"] == ["circle", "cross"]


def test_symbol_numeric_values_are_coerced_with_warning() -> None:
    traces = [_trace(x=[1, 2], y=[1, 2], symbol=[1, 2])]

    with pytest.warns(PlotBuildWarning, match="Coercing the symbol variable"):
        map_symbol(traces)

    assert traces[0].attrs["marker"]["symbol"] == ["circle", "cross"]


def test_illegal_symbol_lists_legal_values() -> None:
    traces = [_trace(x=[1], y=[1], symbol=["a"], symbols=["not-a-symbol"])]

    with pytest.raises(VocabularyError, match="not-a-symbol.*Valid symbols include"):
        map_symbol(traces)


def test_linetype_assigns_dashes_and_adds_lines_mode() -> None:
    traces = [_trace(x=[1, 2, 3], y=[1, 2, 3], linetype=["a", "b", "a"])]

    map_linetype(traces)

    first, second = valid_linetypes()[:2]
    assert traces[0].attrs["line"]["dash"] == [first, second, first]
    assert traces[0].attrs["mode"] == "markers+lines"


def test_linetype_levels_beyond_vocabulary_stay_unstyled() -> None:
    n = len(valid_linetypes()) + 1
    levels = [f"l{i}" for i in range(n)]
    traces = [_trace(x=list(range(n)), y=list(range(n)), linetype=levels)]

    with pytest.warns(PlotBuildWarning, match="line types"):
        map_linetype(traces)

    dashes = traces[0].attrs["line"]["dash"]
    assert dashes[:-1] == list(valid_linetypes())
    assert dashes[-1] is None


def test_illegal_linetype_raises() -> None:
    traces = [_trace(x=[1], y=[1], linetype=["a"], linetypes=["zigzag"])]

    with pytest.raises(VocabularyError, match="zigzag"):
        map_linetype(traces)


def test_ordered_discrete_color_spans_the_ordered_palette() -> None:
    levels = pd.Categorical(["low", "mid", "high"], categories=["low", "mid", "high"], ordered=True)
    traces = [_trace(x=[1, 2, 3], y=[1, 2, 3], color=levels)]

    map_color(traces)

    assigned = traces[0].attrs["marker"]["color"]
    viridis = resolve_palette("Viridis")
    assert assigned[0] == viridis[0]
    assert assigned[-1] == viridis[-1] == "rgb(253, 231, 37)"
    assert len(set(assigned)) == 3


def test_discrete_color_reaches_both_ends_of_a_longer_palette() -> None:
    palette = ["#000000", "#444444", "#888888", "#ffffff"]
    traces = [_trace(x=[1, 2], y=[1, 2], color=["a", "b"], colors=palette)]

    map_color(traces)

    assert traces[0].attrs["marker"]["color"] == ["rgb(0, 0, 0)", "rgb(255, 255, 255)"]


def test_unordered_default_palette_hands_out_leading_colors() -> None:
    traces = [_trace(x=[1, 2, 3], y=[1, 2, 3], color=["a", "b", "c"])]

    map_color(traces)

    assert traces[0].attrs["marker"]["color"] == resolve_palette("Set2")[:3]


def test_numeric_color_on_text_warns() -> None:
    traces = [_trace(mode="markers+text", x=[1, 2], y=[1, 2], text=["p", "q"], color=[1.0, 2.0])]

    with pytest.warns(PlotBuildWarning, match="mapped to text"):
        map_color(traces)

    assert traces[0].attrs["marker"]["color"] == [1.0, 2.0]
    assert "textfont" not in traces[0].attrs


def test_size_on_text_warns() -> None:
    traces = [_trace(mode="markers+text", x=[1, 2], y=[1, 2], text=["p", "q"], size=[1, 2])]

    with pytest.warns(PlotBuildWarning, match="textfont.size"):
        map_size(traces)

    assert traces[0].attrs["marker"]["sizemode"] == "area"


def test_linetype_numeric_values_are_coerced_with_warning() -> None:
    traces = [_trace(x=[1, 2], y=[1, 2], linetype=[1, 2])]

    with pytest.warns(PlotBuildWarning, match="Coercing the linetype variable"):
        map_linetype(traces)

    first, second = valid_linetypes()[:2]
    assert traces[0].attrs["line"]["dash"] == [first, second]
