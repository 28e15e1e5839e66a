from __future__ import annotations

import json
import sys
from pathlib import Path

import pandas as pd

BASE_DIR = Path(__file__).resolve().parents[1]
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from plotbuild import AttributeSpec, Dataset, Expression, PlotSpec, build_plot

CARS_CSV = BASE_DIR / "tests" / "fixtures" / "cars.csv"


def _default_spec() -> PlotSpec:
    cars = pd.read_csv(CARS_CSV)
    return PlotSpec(
        attrs=[
            AttributeSpec(
                source="cars",
                attrs={
                    "x": Expression("~wt"),
                    "y": Expression("~mpg"),
                    "color": Expression("~am"),
                    "size": Expression("~hp"),
                    "text": Expression("~model"),
                    "mode": "markers",
                },
            ),
        ],
        layout_attrs=[AttributeSpec(source="cars", attrs={"title": {"text": "Weight vs. mileage"}})],
        datasets={"cars": Dataset(frame=cars)},
        cur_data="cars",
    )


def main() -> None:
    figure = build_plot(_default_spec())
    print(json.dumps(figure, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
