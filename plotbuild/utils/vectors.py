"""Helpers for treating scalars, lists, arrays and Series alike."""
from __future__ import annotations

from typing import Any, Iterable, List, Sequence, Tuple

import numpy as np
import pandas as pd
from pandas.api import types as pdt

_VECTOR_TYPES = (pd.Series, pd.Index, pd.Categorical, np.ndarray, list, tuple)


def is_vector(value: Any) -> bool:
    return isinstance(value, _VECTOR_TYPES)


def length(value: Any) -> int:
    """Number of elements; scalars count as one and None as zero."""
    if value is None:
        return 0
    if isinstance(value, (dict,) + _VECTOR_TYPES):
        return len(value)
    return 1


def as_series(value: Any) -> pd.Series:
    if isinstance(value, pd.Series):
        return value.reset_index(drop=True)
    if value is None:
        return pd.Series([], dtype=object)
    if is_vector(value):
        return pd.Series(list(value) if isinstance(value, tuple) else value)
    return pd.Series([value])


def is_ordered(value: Any) -> bool:
    if value is None:
        return False
    series = as_series(value)
    return isinstance(series.dtype, pd.CategoricalDtype) and bool(series.dtype.ordered)


def is_discrete(value: Any) -> bool:
    if length(value) == 0:
        return False
    dtype = as_series(value).dtype
    return (
        isinstance(dtype, pd.CategoricalDtype)
        or pdt.is_bool_dtype(dtype)
        or pdt.is_object_dtype(dtype)
        or pdt.is_string_dtype(dtype)
    )


def is_numeric(value: Any) -> bool:
    if length(value) == 0:
        return False
    dtype = as_series(value).dtype
    return pdt.is_numeric_dtype(dtype) and not pdt.is_bool_dtype(dtype)


def combine(values: Iterable[Any]) -> pd.Series:
    parts = [as_series(v) for v in values if length(v) > 0]
    if not parts:
        return pd.Series([], dtype=object)
    return pd.concat(parts, ignore_index=True)


def unique_levels(value: Any) -> List[Any]:
    """Non-missing unique values in order of first appearance."""
    series = as_series(value).dropna()
    return list(dict.fromkeys(series.tolist()))


def value_range(values: Iterable[Any]) -> Tuple[Any, Any] | None:
    series = combine(values).dropna()
    if series.empty:
        return None
    try:
        return series.min(), series.max()
    except TypeError:
        as_text = series.astype(str)
        return as_text.min(), as_text.max()


def rescale(value: Any, source: Sequence[float], target: Sequence[float]) -> np.ndarray:
    numbers = as_series(value).astype(float).to_numpy()
    lo, hi = float(source[0]), float(source[1])
    to_lo, to_hi = float(target[0]), float(target[1])
    if hi == lo:
        return np.where(np.isnan(numbers), np.nan, (to_lo + to_hi) / 2)
    return (numbers - lo) / (hi - lo) * (to_hi - to_lo) + to_lo


def lookup(value: Any, mapping: dict, default: Any = None) -> Any:
    """Map each element through ``mapping``; unmatched or missing elements get ``default``.

    A scalar maps to a scalar, anything else to a list.
    """
    if not is_vector(value):
        return default if _is_missing(value) else mapping.get(value, default)
    return [
        default if _is_missing(v) else mapping.get(v, default)
        for v in as_series(value).tolist()
    ]


def _is_missing(value: Any) -> bool:
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False
