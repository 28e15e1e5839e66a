"""Resolve deferred attribute expressions against a dataset."""
from __future__ import annotations

from typing import Any, Callable, Dict

import pandas as pd

from plotbuild.models.plot_spec import Expression
from plotbuild.utils.vectors import length


def eval_attr(value: Any, frame: pd.DataFrame) -> Any:
    if isinstance(value, Expression):
        return value.evaluate(frame)
    return value


def map_leaves(fn: Callable[[Any], Any], value: Any) -> Any:
    """Apply ``fn`` to every leaf of a nested mapping/sequence, keeping its shape.

    Mappings and plain lists/tuples are traversed; anything else (including
    pandas and numpy vectors) is a leaf.
    """
    if isinstance(value, dict):
        return {key: map_leaves(fn, item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        mapped = [map_leaves(fn, item) for item in value]
        return tuple(mapped) if isinstance(value, tuple) else mapped
    return fn(value)


def eval_attrs(attrs: Dict[str, Any], frame: pd.DataFrame) -> Dict[str, Any]:
    return map_leaves(lambda leaf: eval_attr(leaf, frame), attrs)


def drop_empty(value: Any) -> Any:
    """Recursively remove None and zero-length leaves from mappings."""
    if isinstance(value, dict):
        kept = {}
        for key, item in value.items():
            item = drop_empty(item)
            if length(item) > 0:
                kept[key] = item
        return kept
    return value

