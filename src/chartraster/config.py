"""
Configuration constants for the ChartRaster project.

This module centralises configuration values that are used across the
application: supported timeframes, chart types and exchanges, default
canvas geometry, theme palettes and indicator defaults.  New values
should be added here deliberately.
"""

from typing import Final, Dict

PROJECT_NAME: Final[str] = "ChartRaster"

# Timeframes understood by the data providers and the CLI.
SUPPORTED_TIMEFRAMES: Final[list[str]] = [
    "1m",
    "5m",
    "15m",
    "30m",
    "1h",
    "4h",
    "1d",
    "1w",
]

SUPPORTED_CHART_TYPES: Final[list[str]] = [
    "candlestick",
    "line",
    "area",
    "heikin-ashi",
    "renko",
    "line-break",
]

SUPPORTED_EXCHANGES: Final[list[str]] = [
    "binance",
    "coinbase",
    "kraken",
    "kucoin",
    "okx",
]

SUPPORTED_THEMES: Final[list[str]] = ["dark", "light"]

SUPPORTED_EXTENSIONS: Final[list[str]] = ["png", "jpg", "jpeg", "svg"]

WATERMARK_POSITIONS: Final[list[str]] = [
    "top",
    "center",
    "bottom",
    "top-left",
    "top-right",
    "bottom-left",
    "bottom-right",
]

# Defaults applied by the configuration layer.  The rendering core never
# reads these directly; it only consumes resolved options.
DEFAULT_SYMBOL: Final[str] = "BTC/USDT"
DEFAULT_TIMEFRAME: Final[str] = "1h"
DEFAULT_EXCHANGE: Final[str] = "binance"
DEFAULT_OUTPUT: Final[str] = "chart.png"
DEFAULT_WIDTH: Final[int] = 1200
DEFAULT_HEIGHT: Final[int] = 800
DEFAULT_THEME: Final[str] = "dark"
DEFAULT_CHART_TYPE: Final[str] = "candlestick"
DEFAULT_LIMIT: Final[int] = 100
MIN_DIMENSION: Final[int] = 100

DEFAULT_MARGIN: Final[Dict[str, int]] = {
    "top": 60,
    "bottom": 40,
    "left": 60,
    "right": 40,
}

# Reference cell used when rescaling margins for comparison sub-charts.
REFERENCE_WIDTH: Final[int] = 800
REFERENCE_HEIGHT: Final[int] = 600
MIN_MARGIN_TOP: Final[int] = 20
MIN_MARGIN_LEFT: Final[int] = 20
MIN_MARGIN_BOTTOM: Final[int] = 15
MIN_MARGIN_RIGHT: Final[int] = 15

# Comparison canvas defaults.
COMPARISON_WIDTH: Final[int] = 1600
COMPARISON_HEIGHT: Final[int] = 800
LAYOUT_GAP_DEFAULT: Final[int] = 10
SIDE_BY_SIDE_GAP: Final[int] = 20
GRID_GAP: Final[int] = 15
GRID_MAX_COLUMNS: Final[int] = 2
GRID_MAX_CHARTS: Final[int] = 2

# Series transforms.
RENKO_BRICK_SIZE: Final[float] = 0.02
LINE_BREAK_COUNT: Final[int] = 3

# Indicators.
DEFAULT_EMA_PERIOD: Final[int] = 20
DEFAULT_SMA_PERIOD: Final[int] = 20

# Auto-scale pads the base price range by this fraction on both sides.
AUTO_SCALE_PADDING: Final[float] = 0.05

# Environment variables read at the CLI edge.
ENV_EXCHANGE: Final[str] = "CHARTRASTER_EXCHANGE"
ENV_LOG_LEVEL: Final[str] = "CHARTRASTER_LOG_LEVEL"
ENV_BINANCE_BASE_URL: Final[str] = "CHARTRASTER_BINANCE_URL"

__all__ = [
    "PROJECT_NAME",
    "SUPPORTED_TIMEFRAMES",
    "SUPPORTED_CHART_TYPES",
    "SUPPORTED_EXCHANGES",
    "SUPPORTED_THEMES",
    "SUPPORTED_EXTENSIONS",
    "WATERMARK_POSITIONS",
    "DEFAULT_SYMBOL",
    "DEFAULT_TIMEFRAME",
    "DEFAULT_EXCHANGE",
    "DEFAULT_OUTPUT",
    "DEFAULT_WIDTH",
    "DEFAULT_HEIGHT",
    "DEFAULT_THEME",
    "DEFAULT_CHART_TYPE",
    "DEFAULT_LIMIT",
    "MIN_DIMENSION",
    "DEFAULT_MARGIN",
    "REFERENCE_WIDTH",
    "REFERENCE_HEIGHT",
    "MIN_MARGIN_TOP",
    "MIN_MARGIN_LEFT",
    "MIN_MARGIN_BOTTOM",
    "MIN_MARGIN_RIGHT",
    "COMPARISON_WIDTH",
    "COMPARISON_HEIGHT",
    "LAYOUT_GAP_DEFAULT",
    "SIDE_BY_SIDE_GAP",
    "GRID_GAP",
    "GRID_MAX_COLUMNS",
    "GRID_MAX_CHARTS",
    "RENKO_BRICK_SIZE",
    "LINE_BREAK_COUNT",
    "DEFAULT_EMA_PERIOD",
    "DEFAULT_SMA_PERIOD",
    "AUTO_SCALE_PADDING",
    "ENV_EXCHANGE",
    "ENV_LOG_LEVEL",
    "ENV_BINANCE_BASE_URL",
]
