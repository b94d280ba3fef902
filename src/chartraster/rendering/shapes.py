"""Primary chart shapes, one drawing routine per chart type.

Routines are registered in ``_DRAWERS`` keyed by :class:`ChartType` and
reached through :func:`draw_primary`.  Every routine receives the
transformed series and must do nothing when it is empty.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Sequence

from ..models import Candle, ChartType, Dimensions, PriceRange
from ..scaling import slot_width, to_pixel_x, to_pixel_y
from .surface import RasterSurface, with_alpha
from .theme import Palette

DrawFn = Callable[[RasterSurface, Sequence[Candle], PriceRange, Dimensions, Palette], None]

# Alpha of the bottom stop of the area gradient (0x40 of 0xff).
AREA_FADE_ALPHA = 0x40 / 0xFF


def draw_candles(
    surface: RasterSurface,
    series: Sequence[Candle],
    price_range: PriceRange,
    dims: Dimensions,
    palette: Palette,
) -> None:
    """Wick plus body per candle; used for candlestick and Heikin-Ashi."""
    if not series:
        return
    count = len(series)
    body_width = max(1.0, slot_width(count, dims) * 0.8)
    for index, candle in enumerate(series):
        x = to_pixel_x(index, count, dims)
        open_y = to_pixel_y(candle.open, price_range, dims)
        close_y = to_pixel_y(candle.close, price_range, dims)
        high_y = to_pixel_y(candle.high, price_range, dims)
        low_y = to_pixel_y(candle.low, price_range, dims)
        color = palette.bullish if candle.is_bullish else palette.bearish
        surface.stroke_line(x, high_y, x, low_y, palette.wick, line_width=1)
        body_height = max(1.0, abs(close_y - open_y))
        body_y = min(open_y, close_y)
        surface.fill_rect(x - body_width / 2, body_y, body_width, body_height, color)
        if palette.border:
            surface.stroke_rect(x - body_width / 2, body_y, body_width, body_height, palette.border, line_width=1)


def _close_path(series: Sequence[Candle], price_range: PriceRange, dims: Dimensions) -> List[tuple]:
    count = len(series)
    return [
        (to_pixel_x(i, count, dims, point_style=True), to_pixel_y(c.close, price_range, dims))
        for i, c in enumerate(series)
    ]


def draw_line(
    surface: RasterSurface,
    series: Sequence[Candle],
    price_range: PriceRange,
    dims: Dimensions,
    palette: Palette,
) -> None:
    """Polyline through closes."""
    if not series:
        return
    surface.stroke_path(_close_path(series, price_range, dims), palette.bullish, line_width=2)


def draw_area(
    surface: RasterSurface,
    series: Sequence[Candle],
    price_range: PriceRange,
    dims: Dimensions,
    palette: Palette,
) -> None:
    """Polyline through closes over a gradient fill down to the chart bottom."""
    if not series:
        return
    path = _close_path(series, price_range, dims)
    bottom = dims.margin.top + dims.chart_height
    fill = list(path)
    fill.append((dims.margin.left + dims.chart_width, bottom))
    fill.append((dims.margin.left, bottom))
    surface.fill_gradient_polygon(
        fill,
        top=dims.margin.top,
        bottom=bottom,
        top_color=palette.bullish,
        bottom_color=with_alpha(palette.bullish, AREA_FADE_ALPHA),
    )
    surface.stroke_path(path, palette.bullish, line_width=2)


def draw_bricks(
    surface: RasterSurface,
    series: Sequence[Candle],
    price_range: PriceRange,
    dims: Dimensions,
    palette: Palette,
) -> None:
    """Filled brick per element; down bricks also get a 2px outline."""
    if not series:
        return
    count = len(series)
    block_width = max(10.0, slot_width(count, dims) * 0.9)
    for index, brick in enumerate(series):
        x = to_pixel_x(index, count, dims)
        open_y = to_pixel_y(brick.open, price_range, dims)
        close_y = to_pixel_y(brick.close, price_range, dims)
        is_up = brick.is_bullish
        color = palette.bullish if is_up else palette.bearish
        block_height = max(1.0, abs(close_y - open_y))
        block_y = min(open_y, close_y)
        surface.fill_rect(x - block_width / 2, block_y, block_width, block_height, color)
        if not is_up:
            surface.stroke_rect(x - block_width / 2, block_y, block_width, block_height, color, line_width=2)


_DRAWERS: Dict[ChartType, DrawFn] = {
    ChartType.CANDLESTICK: draw_candles,
    ChartType.HEIKIN_ASHI: draw_candles,
    ChartType.LINE: draw_line,
    ChartType.AREA: draw_area,
    ChartType.RENKO: draw_bricks,
    ChartType.LINE_BREAK: draw_bricks,
}


def draw_primary(
    chart_type: ChartType,
    surface: RasterSurface,
    series: Sequence[Candle],
    price_range: PriceRange,
    dims: Dimensions,
    palette: Palette,
) -> None:
    """Draw the primary shape for ``chart_type``."""
    _DRAWERS[ChartType(chart_type)](surface, series, price_range, dims, palette)


__all__ = ["draw_candles", "draw_line", "draw_area", "draw_bricks", "draw_primary"]
