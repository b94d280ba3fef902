"""Exception taxonomy for chart generation.

Core modules raise these typed exceptions; the service layer converts
them into structured :class:`~chartraster.models.RenderResult` failures
so that batch and comparison callers can keep processing remaining
items.  An empty series is not an error anywhere in the pipeline.
"""

from __future__ import annotations

from typing import Optional

from .models import RenderResult


class ChartRasterError(Exception):
    """Base class for all ChartRaster errors."""


class ConfigurationError(ChartRasterError):
    """Invalid chart type, timeframe, dimensions or output extension."""


class LayoutConstraintError(ChartRasterError):
    """A comparison layout violates the grid limits."""


class DataFetchError(ChartRasterError):
    """The data provider could not return a series."""


class RenderFailure(ChartRasterError):
    """An unexpected failure while drawing or encoding a chart."""


def failure_result(exc: BaseException, output_path: Optional[str] = None) -> RenderResult:
    """Build a failed :class:`RenderResult` from an exception.

    Unknown exception types are reported as ``RenderFailure``.
    """
    if isinstance(exc, ChartRasterError):
        error_type = type(exc).__name__
    else:
        error_type = RenderFailure.__name__
    return RenderResult(
        success=False,
        output_path=output_path,
        error=str(exc) or type(exc).__name__,
        error_type=error_type,
    )


__all__ = [
    "ChartRasterError",
    "ConfigurationError",
    "LayoutConstraintError",
    "DataFetchError",
    "RenderFailure",
    "failure_result",
]
