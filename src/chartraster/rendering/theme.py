"""Theme palettes and colour resolution.

Colours are resolved per element in a fixed order: an explicit custom
colour from the render options wins, then the chart-type default, then
the theme default.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from ..models import ChartType, RenderOptions


@dataclass(frozen=True)
class ThemeColors:
    background: str
    text: str
    grid: str
    border: str
    watermark: str


THEMES: Dict[str, ThemeColors] = {
    "dark": ThemeColors(
        background="#1e222d",
        text="#ffffff",
        grid="#2b2b43",
        border="#2b2b43",
        watermark="#ffffff",
    ),
    "light": ThemeColors(
        background="#ffffff",
        text="#000000",
        grid="#e1e3e6",
        border="#e1e3e6",
        watermark="#000000",
    ),
}

# (bullish, bearish, wick) defaults per chart type
_CANDLE_DEFAULTS = ("#26a69a", "#ef5350", "#424242")
CHART_TYPE_DEFAULTS: Dict[ChartType, tuple] = {
    ChartType.CANDLESTICK: _CANDLE_DEFAULTS,
    ChartType.LINE: _CANDLE_DEFAULTS,
    ChartType.AREA: _CANDLE_DEFAULTS,
    ChartType.HEIKIN_ASHI: ("#4CAF50", "#F44336", "#666666"),
    ChartType.RENKO: _CANDLE_DEFAULTS,
    ChartType.LINE_BREAK: _CANDLE_DEFAULTS,
}

VWAP_COLOR = "#ff9800"
EMA_COLOR = "#2962ff"
SMA_COLOR = "#ab47bc"


@dataclass(frozen=True)
class Palette:
    """Resolved colours for one render."""

    background: str
    text: str
    grid: str
    axis: str
    watermark: str
    bullish: str
    bearish: str
    wick: str
    border: Optional[str]
    vwap: str = VWAP_COLOR
    ema: str = EMA_COLOR
    sma: str = SMA_COLOR


def resolve_palette(options: RenderOptions) -> Palette:
    """Resolve every element colour for ``options``."""
    theme = THEMES.get(options.theme, THEMES["dark"])
    bullish, bearish, wick = CHART_TYPE_DEFAULTS[ChartType(options.chart_type)]
    custom = options.colors
    watermark = theme.watermark
    if options.watermark is not None and options.watermark.color:
        watermark = options.watermark.color
    return Palette(
        background=options.background_color or theme.background,
        text=options.text_color or theme.text,
        grid=theme.grid,
        axis=theme.border,
        watermark=watermark,
        bullish=custom.bullish or bullish,
        bearish=custom.bearish or bearish,
        wick=custom.wick or wick,
        border=custom.border,
    )


__all__ = ["ThemeColors", "THEMES", "CHART_TYPE_DEFAULTS", "Palette", "resolve_palette"]
