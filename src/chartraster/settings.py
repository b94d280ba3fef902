"""User-facing chart configuration and its validation.

:class:`ChartConfig` is what the CLI and batch files produce.  It applies
the project defaults, validates symbol, timeframe, chart type, canvas
size and output extension, and resolves into the
:class:`~chartraster.models.RenderOptions` consumed by the renderer.

Use :func:`load_chart_config` rather than instantiating the model
directly: it converts pydantic validation errors into
:class:`~chartraster.errors.ConfigurationError`.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from .config import (
    DEFAULT_CHART_TYPE,
    DEFAULT_EMA_PERIOD,
    DEFAULT_EXCHANGE,
    DEFAULT_HEIGHT,
    DEFAULT_LIMIT,
    DEFAULT_OUTPUT,
    DEFAULT_SMA_PERIOD,
    DEFAULT_SYMBOL,
    DEFAULT_THEME,
    DEFAULT_TIMEFRAME,
    DEFAULT_WIDTH,
    LINE_BREAK_COUNT,
    MIN_DIMENSION,
    RENKO_BRICK_SIZE,
    SUPPORTED_CHART_TYPES,
    SUPPORTED_EXTENSIONS,
    SUPPORTED_THEMES,
    SUPPORTED_TIMEFRAMES,
)
from .errors import ConfigurationError
from .models import BarColors, HorizontalLevel, Margin, RenderOptions, ScaleConfig, WatermarkConfig

logger = logging.getLogger(__name__)


class ChartConfig(BaseModel):
    """Validated configuration for one chart.

    Attributes mirror the CLI options.  ``watermark`` may be plain text or
    a full :class:`WatermarkConfig`.
    """

    symbol: str = DEFAULT_SYMBOL
    timeframe: str = DEFAULT_TIMEFRAME
    exchange: str = DEFAULT_EXCHANGE
    output_path: str = DEFAULT_OUTPUT
    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT
    theme: str = DEFAULT_THEME
    chart_type: str = DEFAULT_CHART_TYPE
    limit: int = Field(default=DEFAULT_LIMIT, ge=1)
    custom_colors: BarColors = Field(default_factory=BarColors)
    levels: List[HorizontalLevel] = Field(default_factory=list)
    title: Optional[str] = None
    show_title: bool = True
    show_time_axis: bool = True
    show_grid: bool = True
    show_vwap: bool = False
    show_ema: bool = False
    ema_period: int = Field(default=DEFAULT_EMA_PERIOD, ge=1)
    show_sma: bool = False
    sma_period: int = Field(default=DEFAULT_SMA_PERIOD, ge=1)
    renko_brick_size: float = Field(default=RENKO_BRICK_SIZE, gt=0)
    line_break_count: int = Field(default=LINE_BREAK_COUNT, ge=1)
    background_color: Optional[str] = None
    text_color: Optional[str] = None
    watermark: Optional[Union[WatermarkConfig, str]] = None
    scale: Optional[ScaleConfig] = None
    margin: Optional[Margin] = None

    @field_validator("symbol")
    @classmethod
    def _check_symbol(cls, value: str) -> str:
        if not value or "/" not in value:
            raise ValueError("Invalid symbol format. Use format: BASE/QUOTE (e.g., BTC/USDT)")
        return value.upper()

    @field_validator("timeframe")
    @classmethod
    def _check_timeframe(cls, value: str) -> str:
        if value not in SUPPORTED_TIMEFRAMES:
            raise ValueError(f"Invalid timeframe: {value}")
        return value

    @field_validator("chart_type")
    @classmethod
    def _check_chart_type(cls, value: str) -> str:
        if value not in SUPPORTED_CHART_TYPES:
            raise ValueError(f"Invalid chart type: {value}")
        return value

    @field_validator("theme")
    @classmethod
    def _check_theme(cls, value: str) -> str:
        if value not in SUPPORTED_THEMES:
            raise ValueError(f"Invalid theme: {value}")
        return value

    @field_validator("width", "height")
    @classmethod
    def _check_dimension(cls, value: int) -> int:
        if value < MIN_DIMENSION:
            raise ValueError(
                f"Chart dimensions must be at least {MIN_DIMENSION}x{MIN_DIMENSION} pixels"
            )
        return value

    @field_validator("output_path")
    @classmethod
    def _check_output_path(cls, value: str) -> str:
        ext = value.rsplit(".", 1)[-1].lower() if "." in value else ""
        if ext not in SUPPORTED_EXTENSIONS:
            raise ValueError(
                "Output path must have a valid image extension (.png, .jpg, .jpeg, .svg)"
            )
        return value

    @property
    def resolved_title(self) -> str:
        return self.title or f"{self.symbol} {self.timeframe}"

    def to_render_options(self) -> RenderOptions:
        """Resolve into the options consumed by the renderer."""
        watermark = self.watermark
        if isinstance(watermark, str):
            watermark = WatermarkConfig(text=watermark)
        return RenderOptions(
            width=self.width,
            height=self.height,
            margin=self.margin or Margin(),
            theme=self.theme,
            chart_type=self.chart_type,
            colors=self.custom_colors,
            background_color=self.background_color,
            text_color=self.text_color,
            levels=self.levels,
            title=self.resolved_title,
            show_title=self.show_title,
            show_time_axis=self.show_time_axis,
            show_grid=self.show_grid,
            show_vwap=self.show_vwap,
            show_ema=self.show_ema,
            ema_period=self.ema_period,
            show_sma=self.show_sma,
            sma_period=self.sma_period,
            renko_brick_size=self.renko_brick_size,
            line_break_count=self.line_break_count,
            scale=self.scale,
            watermark=watermark,
        )

    def __str__(self) -> str:
        return f"ChartConfig({self.symbol}, {self.timeframe}, {self.width}x{self.height})"


def _format_validation_error(exc: ValidationError) -> str:
    messages = []
    for err in exc.errors():
        msg = err.get("msg", "")
        # pydantic prefixes messages raised from validators
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        loc = ".".join(str(part) for part in err.get("loc", ()))
        messages.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(messages)


def load_chart_config(data: Optional[Mapping[str, Any]] = None, **overrides: Any) -> ChartConfig:
    """Build a :class:`ChartConfig` from a mapping plus keyword overrides.

    ``None`` values are dropped so that unset CLI options fall back to
    the defaults.

    Raises:
        ConfigurationError: If any field fails validation.
    """
    merged: Dict[str, Any] = dict(data or {})
    merged.update(overrides)
    merged = {k: v for k, v in merged.items() if v is not None}
    try:
        return ChartConfig(**merged)
    except ValidationError as exc:
        raise ConfigurationError(_format_validation_error(exc)) from exc


def parse_csv_list(value: Optional[str]) -> List[str]:
    """Split a comma separated option into trimmed, non-empty items."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def parse_custom_colors(value: Optional[str]) -> BarColors:
    """Parse ``bullish=#26a69a,bearish=#ef5350`` into :class:`BarColors`.

    Raises:
        ConfigurationError: On malformed pairs or unknown colour names.
    """
    colors: Dict[str, str] = {}
    for item in parse_csv_list(value):
        if "=" not in item:
            raise ConfigurationError(
                f"Invalid custom color '{item}'. Use: type=color,type=color"
            )
        key, color = (part.strip() for part in item.split("=", 1))
        if key not in BarColors.model_fields:
            raise ConfigurationError(
                f"Unknown color type '{key}'. Expected one of: {', '.join(BarColors.model_fields)}"
            )
        colors[key] = color
    return BarColors(**colors)


def parse_levels(value: Optional[str]) -> List[HorizontalLevel]:
    """Parse ``value:color:style:label`` entries separated by commas.

    Only ``value`` is required; colour defaults to the level default and
    style to ``solid``.

    Raises:
        ConfigurationError: If a value is not a number or a style is unknown.
    """
    levels: List[HorizontalLevel] = []
    for item in parse_csv_list(value):
        parts = item.split(":")
        try:
            price = float(parts[0])
        except ValueError as exc:
            raise ConfigurationError(
                "Invalid levels format. Use: value:color:style:label,value:color:style:label "
                "(e.g., 45000:#ff0000:solid:Resistance,40000:#00ff00:dotted:Support)"
            ) from exc
        fields: Dict[str, Any] = {"value": price, "type": "custom"}
        if len(parts) > 1 and parts[1]:
            fields["color"] = parts[1]
        if len(parts) > 2 and parts[2]:
            fields["line_style"] = parts[2]
        if len(parts) > 3 and parts[3]:
            fields["label"] = ":".join(parts[3:])
        try:
            levels.append(HorizontalLevel(**fields))
        except ValidationError as exc:
            raise ConfigurationError(_format_validation_error(exc)) from exc
    return levels


__all__ = [
    "ChartConfig",
    "load_chart_config",
    "parse_csv_list",
    "parse_custom_colors",
    "parse_levels",
]
