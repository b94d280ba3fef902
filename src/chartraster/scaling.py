"""Price and time to pixel mapping.

The scaling engine computes the visible price window for the series
actually being drawn and projects prices and candle indices onto pixel
coordinates.  Pixel space has its origin at the top-left corner of the
canvas with ``y`` growing downwards.

Two horizontal conventions coexist and are chosen by chart type:

* bar style (candles, bricks): each element sits in the middle of an
  equal-width slot, ``left + i * slot + slot / 2``;
* point style (line, area): vertices sit on the slot boundaries,
  ``left + i * chart_width / (n - 1)``.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from .config import AUTO_SCALE_PADDING
from .models import Candle, ChartType, Dimensions, Margin, PriceRange, ScaleConfig

logger = logging.getLogger(__name__)

# Relative half-width used to widen a zero-height range.
FLAT_RANGE_PADDING = 0.01

_POINT_STYLE_TYPES = frozenset({ChartType.LINE, ChartType.AREA})


def build_dimensions(width: int, height: int, margin: Optional[Margin] = None) -> Dimensions:
    """Return :class:`Dimensions` for a canvas, using default margins if omitted."""
    return Dimensions(width=width, height=height, margin=margin or Margin())


def is_point_style(chart_type: ChartType) -> bool:
    """Whether ``chart_type`` places vertices on slot boundaries."""
    return ChartType(chart_type) in _POINT_STYLE_TYPES


def _rescale(low: float, high: float, factor: float) -> tuple:
    # Centered rescale around the midpoint.
    center = (low + high) / 2.0
    half = (high - low) * factor / 2.0
    return center - half, center + half


def _pad_flat(low: float, high: float) -> tuple:
    center = (low + high) / 2.0
    half = abs(center) * FLAT_RANGE_PADDING or 1.0
    return center - half, center + half


def compute_range(series: Sequence[Candle], scale: Optional[ScaleConfig] = None) -> PriceRange:
    """Compute the price window for ``series``.

    Steps are applied in a fixed order: base ``[min(low), max(high)]``,
    auto-scale padding of 5 % on both sides, the ``x`` multiplier, the
    ``y`` multiplier, and finally the manual clamps which may only
    shrink the window.  A window that ends up with zero or negative
    height is widened symmetrically so that ``range > 0``.

    Args:
        series: The candles or bricks that will be drawn.
        scale: Optional scaling policy.

    Returns:
        A :class:`PriceRange` with a strictly positive ``range``.

    Raises:
        ValueError: If ``series`` is empty.
    """
    if not series:
        raise ValueError("cannot compute a price range for an empty series")
    low = min(c.low for c in series)
    high = max(c.high for c in series)
    if scale is not None:
        if scale.auto_scale:
            padding = (high - low) * AUTO_SCALE_PADDING
            low, high = low - padding, high + padding
        # Both multipliers act on the price axis, x first then y.
        if scale.x is not None:
            low, high = _rescale(low, high, scale.x)
        if scale.y is not None:
            low, high = _rescale(low, high, scale.y)
        if scale.min_scale is not None:
            low = max(low, scale.min_scale)
        if scale.max_scale is not None:
            high = min(high, scale.max_scale)
    if high - low <= 0:
        logger.debug("Degenerate price range [%s, %s]; padding", low, high)
        low, high = _pad_flat(low, high)
    return PriceRange(min=low, max=high)


def to_pixel_y(price: float, price_range: PriceRange, dims: Dimensions) -> float:
    """Project ``price`` onto the vertical pixel axis."""
    return dims.margin.top + (price_range.max - price) / price_range.range * dims.chart_height


def slot_width(count: int, dims: Dimensions) -> float:
    """Width of one bar-style slot for ``count`` elements."""
    if count <= 0:
        return float(dims.chart_width)
    return dims.chart_width / count


def to_pixel_x(index: int, count: int, dims: Dimensions, point_style: bool = False) -> float:
    """Project element ``index`` of ``count`` onto the horizontal pixel axis.

    With ``point_style`` a single vertex is placed in the middle of the
    chart area since there is no segment to span.
    """
    if point_style:
        if count <= 1:
            return dims.margin.left + dims.chart_width / 2.0
        return dims.margin.left + index * (dims.chart_width / (count - 1))
    slot = slot_width(count, dims)
    return dims.margin.left + index * slot + slot / 2.0


__all__ = [
    "build_dimensions",
    "is_point_style",
    "compute_range",
    "to_pixel_y",
    "slot_width",
    "to_pixel_x",
]
