from __future__ import annotations

import pandas as pd
import pytest

from plotbuild.engine.expression import drop_empty, eval_attr, eval_attrs, map_leaves
from plotbuild.exceptions import ExpressionError
from plotbuild.models.plot_spec import Expression


def _frame() -> pd.DataFrame:
    return pd.DataFrame({"price": [10.0, 20.0, 30.0], "carat": [1.0, 2.0, 5.0], "cut": ["a", "b", "a"]})


def test_expression_text_keeps_marker_and_label_strips_it() -> None:
    expr = Expression("price / carat")

    assert expr.text == "~price / carat"
    assert expr.label == "price / carat"
    assert expr.columns == ("price", "carat")


def test_evaluate_column_and_arithmetic() -> None:
    df = _frame()

    assert eval_attr(Expression("~cut"), df).tolist() == ["a", "b", "a"]
    assert eval_attr(Expression("~price / carat"), df).tolist() == [10.0, 10.0, 6.0]


def test_literals_pass_through_unchanged() -> None:
    df = _frame()
    marker = {"color": "red"}

    assert eval_attr("red", df) == "red"
    assert eval_attr(3, df) == 3
    assert eval_attr(marker, df) is marker


def test_eval_attrs_walks_nested_mappings() -> None:
    df = _frame()
    attrs = {
        "mode": "markers",
        "marker": {"color": "red", "size": Expression("~carat * 2")},
        "customdata": [Expression("~cut"), "x"],
    }

    result = eval_attrs(attrs, df)

    assert result["mode"] == "markers"
    assert result["marker"]["color"] == "red"
    assert result["marker"]["size"].tolist() == [2.0, 4.0, 10.0]
    assert result["customdata"][0].tolist() == ["a", "b", "a"]
    assert result["customdata"][1] == "x"
    # the input structure is left alone
    assert isinstance(attrs["marker"]["size"], Expression)


def test_undefined_column_raises_expression_error() -> None:
    with pytest.raises(ExpressionError, match="weight") as excinfo:
        eval_attr(Expression("~weight * 2"), _frame())

    assert isinstance(excinfo.value.__cause__, NameError)


def test_coerce_turns_marked_strings_into_expressions() -> None:
    coerced = Expression.coerce({"x": "~price", "marker": {"color": "~cut", "size": 4}, "name": "plain"})

    assert coerced["x"] == Expression("~price")
    assert coerced["marker"]["color"] == Expression("~cut")
    assert coerced["marker"]["size"] == 4
    assert coerced["name"] == "plain"


def test_map_leaves_keeps_shape() -> None:
    result = map_leaves(lambda v: v * 10, {"a": [1, (2, 3)], "b": {"c": 4}})

    assert result == {"a": [10, (20, 30)], "b": {"c": 40}}


def test_drop_empty_removes_missing_and_empty_leaves() -> None:
    value = {"title": {"text": "t", "font": None}, "annotations": [], "xaxis": {"range": None}}

    assert drop_empty(value) == {"title": {"text": "t"}}


def test_expressions_only_see_dataset_columns() -> None:
    with pytest.raises(ExpressionError, match="frame"):
        Expression("~frame").evaluate(_frame())
