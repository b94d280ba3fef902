"""Data models shared by the chart pipeline.

Validated records (candles, levels, watermark and colour settings, the
resolved render options and the render result) are pydantic models.
Derived geometry that is computed fresh for every render (margins,
dimensions, price ranges, indicator points) uses frozen dataclasses.
Nothing here is mutated after creation.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .config import (
    DEFAULT_EMA_PERIOD,
    DEFAULT_MARGIN,
    DEFAULT_SMA_PERIOD,
    LINE_BREAK_COUNT,
    RENKO_BRICK_SIZE,
)


class ChartType(str, Enum):
    """Chart-type tag selecting the series transform and primary shape."""

    CANDLESTICK = "candlestick"
    LINE = "line"
    AREA = "area"
    HEIKIN_ASHI = "heikin-ashi"
    RENKO = "renko"
    LINE_BREAK = "line-break"


class Candle(BaseModel):
    """A single OHLCV sample.

    Attributes:
        time: Bucket open time as milliseconds since the Unix epoch.
        open: The opening price.
        high: The highest price.
        low: The lowest price.
        close: The closing price.
        volume: The traded volume, if the venue reports one.
    """

    model_config = ConfigDict(frozen=True)

    time: int
    open: float
    high: float
    low: float
    close: float
    volume: Optional[float] = None

    @model_validator(mode="after")
    def _check_extremes(self) -> "Candle":
        if self.high < max(self.open, self.close):
            raise ValueError(
                f"high {self.high} is below max(open, close) at time {self.time}"
            )
        if self.low > min(self.open, self.close):
            raise ValueError(
                f"low {self.low} is above min(open, close) at time {self.time}"
            )
        return self

    @property
    def is_bullish(self) -> bool:
        return self.close >= self.open


class RenkoBrick(Candle):
    """A synthetic brick emitted by the Renko and line-break transforms.

    ``direction`` is ``1`` for an up brick and ``-1`` for a down brick.
    """

    direction: int = 1

    @property
    def is_bullish(self) -> bool:
        return self.direction > 0


class HorizontalLevel(BaseModel):
    """A horizontal price line such as support or resistance."""

    value: float
    color: str = "#ffeb3b"
    line_style: str = Field(default="solid", pattern="^(solid|dotted)$")
    label: Optional[str] = None
    type: Optional[str] = Field(default=None, pattern="^(support|resistance|custom)$")


class WatermarkConfig(BaseModel):
    """Watermark text and placement."""

    text: str
    position: str = Field(
        default="bottom-right",
        pattern="^(top|center|bottom|top-left|top-right|bottom-left|bottom-right)$",
    )
    color: Optional[str] = None
    font_size: float = 12
    opacity: float = Field(default=0.3, ge=0.0, le=1.0)


class BarColors(BaseModel):
    """Per-element colour overrides; ``None`` falls back to defaults."""

    bullish: Optional[str] = None
    bearish: Optional[str] = None
    wick: Optional[str] = None
    border: Optional[str] = None


class ScaleConfig(BaseModel):
    """Price-axis scaling policy.

    ``x`` and ``y`` are both centred multipliers applied to the price
    range, ``x`` first.  ``min_scale`` and ``max_scale`` clamp the final
    bounds and can only shrink the range.
    """

    x: Optional[float] = Field(default=None, gt=0)
    y: Optional[float] = Field(default=None, gt=0)
    auto_scale: bool = False
    min_scale: Optional[float] = None
    max_scale: Optional[float] = None


@dataclass(frozen=True)
class Margin:
    top: float = DEFAULT_MARGIN["top"]
    bottom: float = DEFAULT_MARGIN["bottom"]
    left: float = DEFAULT_MARGIN["left"]
    right: float = DEFAULT_MARGIN["right"]


@dataclass(frozen=True)
class Dimensions:
    """Canvas size plus margins; the chart area is what remains inside."""

    width: int
    height: int
    margin: Margin = field(default_factory=Margin)

    @property
    def chart_width(self) -> float:
        return self.width - self.margin.left - self.margin.right

    @property
    def chart_height(self) -> float:
        return self.height - self.margin.top - self.margin.bottom

    @property
    def chart_bottom(self) -> float:
        return self.height - self.margin.bottom

    @property
    def chart_right(self) -> float:
        return self.width - self.margin.right


@dataclass(frozen=True)
class PriceRange:
    """The price window mapped onto the chart's vertical extent."""

    min: float
    max: float

    @property
    def range(self) -> float:
        return self.max - self.min


@dataclass(frozen=True)
class IndicatorPoint:
    time: int
    value: float


class RenderOptions(BaseModel):
    """Fully resolved options consumed by the rendering core.

    The core never applies defaults of its own beyond the ones declared
    here; CLI parsing and validation of user input happen upstream in
    :mod:`chartraster.settings`.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    width: int = 800
    height: int = 600
    margin: Margin = Field(default_factory=Margin)
    theme: str = Field(default="dark", pattern="^(dark|light)$")
    chart_type: ChartType = ChartType.CANDLESTICK
    colors: BarColors = Field(default_factory=BarColors)
    background_color: Optional[str] = None
    text_color: Optional[str] = None
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
    scale: Optional[ScaleConfig] = None
    watermark: Optional[WatermarkConfig] = None
    renko_brick_size: float = Field(default=RENKO_BRICK_SIZE, gt=0)
    line_break_count: int = Field(default=LINE_BREAK_COUNT, ge=1)

    @property
    def dimensions(self) -> Dimensions:
        return Dimensions(width=self.width, height=self.height, margin=self.margin)


class RenderResult(BaseModel):
    """Outcome of one chart or comparison render.

    Attributes:
        success: Whether the image was produced.
        output_path: Where the image was written, if it was written.
        error: Human readable failure message.
        error_type: Name of the error class behind the failure.
        data_url: ``data:`` URL of the encoded image when requested.
        image: The encoded image bytes.
    """

    success: bool
    output_path: Optional[str] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    data_url: Optional[str] = Field(default=None, repr=False)
    image: Optional[bytes] = Field(default=None, repr=False)


_ROW_FIELDS: Sequence[str] = ("time", "open", "high", "low", "close", "volume")


def _record_to_candle(record: Any) -> Candle:
    if isinstance(record, Candle):
        return record
    if isinstance(record, (list, tuple)):
        # [time, open, high, low, close, volume?] rows as returned by exchanges
        values = dict(zip(_ROW_FIELDS, record))
    elif isinstance(record, dict):
        values = dict(record)
        if "time" not in values:
            for alias in ("timestamp", "ts", "t"):
                if alias in values:
                    values["time"] = values.pop(alias)
                    break
    else:
        values = {name: getattr(record, name, None) for name in _ROW_FIELDS}
    volume = values.get("volume")
    if volume is not None:
        volume = float(volume)
        if math.isnan(volume):
            volume = None
    return Candle(
        time=int(values["time"]),
        open=float(values["open"]),
        high=float(values["high"]),
        low=float(values["low"]),
        close=float(values["close"]),
        volume=volume,
    )


def candles_from_records(records: Iterable[Any]) -> List[Candle]:
    """Normalise raw OHLCV records into a chronological candle list.

    Records may be :class:`Candle` instances, dictionaries (``time``,
    ``timestamp`` or ``ts`` keys), ``[time, open, high, low, close,
    volume]`` rows or objects with matching attributes.  Candles are
    sorted by time; when two share a timestamp the later record wins so
    that times are strictly increasing.

    Raises:
        pydantic.ValidationError: If a record violates the OHLC extremes.
    """
    by_time = {}
    for record in records:
        if record is None:
            continue
        candle = _record_to_candle(record)
        by_time[candle.time] = candle
    return [by_time[t] for t in sorted(by_time)]


__all__ = [
    "ChartType",
    "Candle",
    "RenkoBrick",
    "HorizontalLevel",
    "WatermarkConfig",
    "BarColors",
    "ScaleConfig",
    "Margin",
    "Dimensions",
    "PriceRange",
    "IndicatorPoint",
    "RenderOptions",
    "RenderResult",
    "candles_from_records",
]
