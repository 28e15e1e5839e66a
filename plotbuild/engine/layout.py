"""Layout fragment evaluation and merging."""
from __future__ import annotations

from functools import reduce
from typing import Any, Dict, Iterable, Optional

from plotbuild.engine.expression import drop_empty, eval_attrs
from plotbuild.engine.schema import is_3d
from plotbuild.models.plot_spec import AttributeSpec, Expression, PlotSpec

POSITIONAL_AXES = ("x", "y", "z")


def modify_list(base: Optional[Dict[str, Any]], update: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Recursively merge ``update`` into a copy of ``base``; ``update`` wins per key."""
    merged = dict(base or {})
    for key, value in (update or {}).items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = modify_list(current, value)
        else:
            merged[key] = value
    return merged


def merge_layouts(fragments: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    return reduce(modify_list, fragments, {})


def evaluate_layout_fragments(spec: PlotSpec) -> Dict[str, Any]:
    """Evaluate every layout fragment against its own dataset and merge them.

    The merged fragments are laid over the base layout, later fragments
    overriding earlier ones key by key.
    """
    fragments = [_evaluate_fragment(fragment, spec) for fragment in spec.layout_attrs]
    return modify_list(spec.layout, merge_layouts(fragments))


def _evaluate_fragment(fragment: AttributeSpec, spec: PlotSpec) -> Dict[str, Any]:
    frame = spec.dataset_for(fragment.source).frame
    return drop_empty(eval_attrs(fragment.attrs, frame))


def infer_axis_titles(attrs: Dict[str, Any], layout: Dict[str, Any]) -> Dict[str, Any]:
    """Use ``x``/``y``/``z`` expression text as default axis titles.

    An axis that already has a title keeps it.
    """
    three_d = is_3d(attrs.get("type"))
    for axis in POSITIONAL_AXES:
        value = attrs.get(axis)
        if not isinstance(value, Expression):
            continue
        name = f"{axis}axis"
        target = layout.get("scene", {}) if three_d else layout
        if (target.get(name) or {}).get("title") is not None:
            continue
        title = {name: {"title": {"text": value.label}}}
        if three_d:
            layout = modify_list(layout, {"scene": title})
        else:
            layout = modify_list(layout, title)
    return layout
