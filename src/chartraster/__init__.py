"""Top-level package for ChartRaster.

This package turns OHLCV series into raster chart images.  The
command-line interface lives in :mod:`chartraster.cli`, orchestration in
:mod:`chartraster.service`, data providers in
:mod:`chartraster.providers` and drawing in :mod:`chartraster.rendering`.
"""

__version__ = "0.1.0"

__all__ = [
    "cli",
    "service",
    "providers",
    "rendering",
    "models",
]
