"""Raster rendering for ChartRaster.

:mod:`chartraster.rendering.pipeline` draws a single chart,
:mod:`chartraster.rendering.comparison` composites several charts into
one canvas.  Drawing happens on :class:`~chartraster.rendering.surface.RasterSurface`.
"""

from .comparison import ComparisonLayout, ComparisonRenderer, CellJob
from .pipeline import ChartRenderer, render_chart, render_to_result
from .surface import RasterSurface

__all__ = [
    "ChartRenderer",
    "render_chart",
    "render_to_result",
    "ComparisonLayout",
    "ComparisonRenderer",
    "CellJob",
    "RasterSurface",
]
