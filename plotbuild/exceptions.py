"""Errors that abort a plot build."""
from __future__ import annotations


class PlotBuildError(ValueError):
    code = "PLOT_BUILD_ERROR"


class ExpressionError(PlotBuildError):
    code = "EXPRESSION_ERROR"


class ColorMappingError(PlotBuildError):
    code = "COLOR_MAPPING_ERROR"


class SizeMappingError(PlotBuildError):
    code = "SIZE_MAPPING_ERROR"


class PaletteError(PlotBuildError):
    code = "PALETTE_ERROR"


class VocabularyError(PlotBuildError):
    code = "VOCABULARY_ERROR"


class AttributeNameError(PlotBuildError):
    code = "ATTRIBUTE_NAME_ERROR"


class TraceTypeError(PlotBuildError):
    code = "TRACE_TYPE_ERROR"
