"""Row expansion for grouped data and splitting one trace into many."""
from __future__ import annotations

from itertools import count
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from plotbuild.engine.expression import eval_attr
from plotbuild.models.plot_spec import Expression
from plotbuild.utils.vectors import (
    as_series,
    is_discrete,
    is_ordered,
    is_vector,
    length,
    unique_levels,
)

# visual channels that may turn one trace into several
SPLIT_CHANNELS = ("symbol", "linetype", "color")
_LEVEL_SEP = "."


class SplitColumnNamer:
    """Hands out synthetic column names, unique within one build."""

    def __init__(self, prefix: str = "__split") -> None:
        self._prefix = prefix
        self._counter = count(1)

    def new_name(self, taken: Sequence[str]) -> str:
        while True:
            name = f"{self._prefix}{next(self._counter)}__"
            if name not in taken:
                return name


def add_split_columns(
    attrs: Dict[str, Any],
    frame: pd.DataFrame,
    namer: SplitColumnNamer,
) -> tuple[pd.DataFrame, Dict[str, str]]:
    """Evaluate data-bound split channels into synthetic columns.

    Returns the widened frame and a column -> channel mapping. Numeric color
    is never a split variable.
    """
    nested: Dict[str, str] = {}
    frame = frame.reset_index(drop=True)
    for channel in SPLIT_CHANNELS:
        value = attrs.get(channel)
        if not isinstance(value, Expression):
            continue
        new_var = eval_attr(value, frame)
        if new_var is None or (channel == "color" and not is_discrete(new_var)):
            continue
        column = namer.new_name(list(frame.columns))
        frame[column] = new_var
        nested[column] = channel
    return frame, nested


def group2na(
    frame: pd.DataFrame,
    groups: Sequence[str],
    nested: Sequence[str] = (),
) -> pd.DataFrame:
    """Separate groups with a missing-value row.

    Rows are gathered per unique combination of ``groups`` + ``nested`` (in
    order of first appearance) and a sentinel row is inserted between
    consecutive groups. Key columns keep their group's value on the sentinel
    row; every other column is missing there.
    """
    keys = [*groups, *nested]
    frame = frame.reset_index(drop=True)
    if not keys or frame.empty:
        return frame

    codes = frame.groupby(keys, sort=False, dropna=False, observed=True).ngroup().to_numpy()
    n_groups = int(codes.max()) + 1
    labels: List[int] = []
    key_positions: List[int] = []
    for group in range(n_groups):
        positions = np.flatnonzero(codes == group).tolist()
        if group > 0:
            labels.append(-1)
            key_positions.append(positions[0])
        labels.extend(positions)
        key_positions.extend(positions)

    expanded = frame.reindex(labels).reset_index(drop=True)
    for key in keys:
        expanded[key] = frame[key].take(key_positions).reset_index(drop=True)
    return expanded


def split_levels(color: Any, symbol: Any, linetype: Any) -> Optional[pd.Series]:
    """Interaction of the discrete split channels, or None when nothing splits."""
    params = [
        value
        for value in (color if is_discrete(color) else None, symbol, linetype)
        if length(value) > 0
    ]
    if not params:
        return None
    n = max(length(p) for p in params)
    series = [
        as_series(p) if length(p) == n else pd.Series([as_series(p).iloc[0]] * n)
        for p in params
    ]
    if len(series) == 1:
        return series[0]
    frame = pd.concat(series, axis=1, ignore_index=True)
    missing = frame.isna().any(axis=1)
    labels = frame.astype(str).agg(_LEVEL_SEP.join, axis=1)
    return labels.mask(missing)


def traceify(attrs: Dict[str, Any], levels: Any = None) -> List[Dict[str, Any]]:
    """Break one attribute set into one set per level of ``levels``.

    Every leaf whose length matches ``levels`` is subset to the rows of the
    level; other leaves are copied as-is. Each copy is named after its level.
    """
    if levels is None or length(levels) == 0:
        return [attrs]
    values = as_series(levels)
    if is_ordered(values):
        present = set(values.dropna().tolist())
        lvls = [c for c in values.cat.categories if c in present][::-1]
    else:
        lvls = unique_levels(values)
    n = len(values)

    traces = []
    for lvl in lvls:
        mask = (values == lvl).fillna(False).to_numpy(dtype=bool)
        trace = {key: _subset(item, n, mask) for key, item in attrs.items()}
        trace["name"] = str(lvl)
        traces.append(trace)
    return traces


def _subset(value: Any, n: int, mask: np.ndarray) -> Any:
    if isinstance(value, dict):
        return {key: _subset(item, n, mask) for key, item in value.items()}
    if not is_vector(value) or len(value) != n:
        return value
    if isinstance(value, pd.Series):
        return value.reset_index(drop=True)[mask].reset_index(drop=True)
    if isinstance(value, np.ndarray):
        return value[mask]
    picked = [item for item, keep in zip(value, mask) if keep]
    return tuple(picked) if isinstance(value, tuple) else picked
