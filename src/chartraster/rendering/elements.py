"""Chart decorations drawn around and over the primary shape.

Overlays, horizontal levels, grid, axes, title and watermark.  Each
routine works in the fixed coordinate frame of the render: margins never
move when another element is hidden.  Formatting helpers are pure and
never read the wall clock, so identical input always yields identical
labels.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Union

from ..models import Candle, Dimensions, HorizontalLevel, IndicatorPoint, PriceRange, WatermarkConfig
from ..scaling import to_pixel_x, to_pixel_y
from .surface import RasterSurface
from .theme import Palette

GRID_COLUMNS = 10
GRID_ROWS = 5
PRICE_LABELS = 5
TIME_LABELS = 6
VWAP_DASH = (6.0, 4.0)
LEVEL_DASH = (5.0, 5.0)
OVERLAY_LABEL_SIZE = 12
OVERLAY_LABEL_SPACING = 16

# Row of each overlay's label in the top-left legend.
_OVERLAY_ROWS = {"vwap": 0, "ema": 1, "sma": 2}


def format_price(price: float) -> str:
    """Format a price with precision decreasing as magnitude grows."""
    if price >= 1000:
        return f"{price:.0f}"
    if price >= 100:
        return f"{price:.1f}"
    if price >= 10:
        return f"{price:.2f}"
    return f"{price:.4f}"


def _utc(timestamp_ms: int) -> datetime:
    return datetime.fromtimestamp(timestamp_ms / 1000.0, tz=timezone.utc)


def spans_single_day(series: Sequence[Candle]) -> bool:
    """Whether every candle falls on the same UTC date."""
    if not series:
        return True
    return _utc(series[0].time).date() == _utc(series[-1].time).date()


def format_time(timestamp_ms: int, same_day: bool = False) -> str:
    """Format a millisecond timestamp as a UTC axis label.

    ``HH:MM`` when the visible series covers a single day, otherwise
    ``Mon D HH:MM``.
    """
    dt = _utc(timestamp_ms)
    if same_day:
        return dt.strftime("%H:%M")
    return f"{dt.strftime('%b')} {dt.day} {dt.strftime('%H:%M')}"


def overlay_label(name: str, period: Optional[int] = None) -> str:
    if name == "vwap":
        return "VWAP"
    return f"{name.upper()}({period})"


def draw_overlay(
    surface: RasterSurface,
    name: str,
    points: Sequence[IndicatorPoint],
    series: Sequence[Candle],
    price_range: PriceRange,
    dims: Dimensions,
    color: str,
    label: str,
    point_style: bool = False,
) -> None:
    """Draw one indicator polyline and its legend label.

    Points are placed at the x position of the original candle with the
    same timestamp so that SMA's shorter output lines up with the
    candles it averages.  Values outside the price range are not
    clamped.
    """
    if not points or not series:
        return
    index_by_time: Dict[int, int] = {c.time: i for i, c in enumerate(series)}
    count = len(series)
    path = []
    for point in points:
        index = index_by_time.get(point.time)
        if index is None:
            continue
        path.append(
            (
                to_pixel_x(index, count, dims, point_style=point_style),
                to_pixel_y(point.value, price_range, dims),
            )
        )
    dash = VWAP_DASH if name == "vwap" else None
    surface.stroke_path(path, color, line_width=2 if name == "vwap" else 1.5, dash=dash)
    row = _OVERLAY_ROWS.get(name, 0)
    surface.draw_text(
        dims.margin.left + 10,
        dims.margin.top + OVERLAY_LABEL_SPACING * (row + 1),
        label,
        color,
        size=OVERLAY_LABEL_SIZE,
    )


def draw_levels(
    surface: RasterSurface,
    levels: Sequence[HorizontalLevel],
    price_range: PriceRange,
    dims: Dimensions,
) -> None:
    """Horizontal price levels across the chart area with optional labels."""
    for level in levels:
        y = to_pixel_y(level.value, price_range, dims)
        dash = LEVEL_DASH if level.line_style == "dotted" else None
        surface.stroke_line(dims.margin.left, y, dims.chart_right, y, level.color, line_width=1, dash=dash)
        if level.label:
            surface.draw_text(dims.margin.left - 10, y - 5, level.label, level.color, size=12, align="right")


def draw_grid(surface: RasterSurface, dims: Dimensions, palette: Palette) -> None:
    top = dims.margin.top
    bottom = dims.chart_bottom
    for i in range(GRID_COLUMNS + 1):
        x = dims.margin.left + (i / GRID_COLUMNS) * dims.chart_width
        surface.stroke_line(x, top, x, bottom, palette.grid, line_width=0.5)
    for i in range(GRID_ROWS + 1):
        y = top + (i / GRID_ROWS) * dims.chart_height
        surface.stroke_line(dims.margin.left, y, dims.chart_right, y, palette.grid, line_width=0.5)


def draw_axes(
    surface: RasterSurface,
    series: Sequence[Candle],
    price_range: PriceRange,
    dims: Dimensions,
    palette: Palette,
    show_time_axis: bool = True,
    point_style: bool = False,
) -> None:
    """Axis lines, price labels and, unless hidden, time labels.

    Time labels are laid out over ``series`` with the same horizontal
    convention as the primary shape.
    """
    left = dims.margin.left
    bottom = dims.chart_bottom
    surface.stroke_line(left, dims.margin.top, left, bottom, palette.axis, line_width=1)
    surface.stroke_line(left, bottom, dims.chart_right, bottom, palette.axis, line_width=1)

    for i in range(PRICE_LABELS + 1):
        price = price_range.min + (i / PRICE_LABELS) * price_range.range
        y = to_pixel_y(price, price_range, dims)
        surface.draw_text(left - 10, y + 4, format_price(price), palette.text, size=12, align="right")
        surface.stroke_line(left - 5, y, left, y, palette.grid, line_width=0.5)

    if not show_time_axis or not series:
        return
    count = len(series)
    same_day = spans_single_day(series)
    step = max(1, count // TIME_LABELS)
    for i in range(0, count, step):
        x = to_pixel_x(i, count, dims, point_style=point_style)
        surface.draw_text(
            x, bottom + 20, format_time(series[i].time, same_day), palette.text, size=11, align="center"
        )
        surface.stroke_line(x, bottom, x, bottom + 5, palette.grid, line_width=0.5)


def draw_title(surface: RasterSurface, title: str, palette: Palette) -> None:
    surface.draw_text(surface.width / 2, 30, title, palette.text, size=16, align="center", bold=True)


def _watermark_anchor(position: str, width: int, height: int) -> tuple:
    anchors = {
        "top-left": (20, 20, "left"),
        "top": (width / 2, 20, "center"),
        "top-right": (width - 20, 20, "right"),
        "center": (width / 2, height / 2, "center"),
        "bottom-left": (20, height - 20, "left"),
        "bottom": (width / 2, height - 20, "center"),
        "bottom-right": (width - 20, height - 20, "right"),
    }
    return anchors.get(position, anchors["bottom-right"])


def draw_watermark(
    surface: RasterSurface,
    watermark: Union[str, WatermarkConfig],
    palette: Palette,
) -> None:
    """Draw watermark text; a plain string uses the default placement."""
    if isinstance(watermark, str):
        watermark = WatermarkConfig(text=watermark)
    x, y, align = _watermark_anchor(watermark.position, surface.width, surface.height)
    surface.draw_text(
        x,
        y,
        watermark.text,
        watermark.color or palette.watermark,
        size=watermark.font_size,
        align=align,
        alpha=watermark.opacity,
    )


__all__: List[str] = [
    "format_price",
    "format_time",
    "spans_single_day",
    "overlay_label",
    "draw_overlay",
    "draw_levels",
    "draw_grid",
    "draw_axes",
    "draw_title",
    "draw_watermark",
]
