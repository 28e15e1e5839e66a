from .engine.pipeline import build_plot
from .exceptions import PlotBuildError
from .models.plot_spec import AttributeSpec, Dataset, Expression, PlotSpec, TraceSkeleton
from .utils.logging import PlotBuildWarning

__all__ = [
    "build_plot",
    "PlotBuildError",
    "PlotBuildWarning",
    "AttributeSpec",
    "Dataset",
    "Expression",
    "PlotSpec",
    "TraceSkeleton",
]
