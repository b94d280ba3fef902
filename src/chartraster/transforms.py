"""Series transforms selected by chart type.

Each transform consumes the original candle series and returns the
series that is actually drawn and scaled.  Transforms are pure: the
input list is never modified and every output element is a new
immutable object.  All recurrences run strictly left to right since
output ``i`` depends on output ``i - 1``.

Empty input always yields an empty output.
"""

from __future__ import annotations

import logging
import math
from typing import Callable, Dict, List, Sequence

from .config import LINE_BREAK_COUNT, RENKO_BRICK_SIZE
from .models import Candle, ChartType, RenkoBrick

logger = logging.getLogger(__name__)


def identity(series: Sequence[Candle]) -> List[Candle]:
    """Return the series unchanged (candlestick, line and area charts)."""
    return list(series)


def heikin_ashi(series: Sequence[Candle]) -> List[Candle]:
    """Smooth ``series`` into Heikin-Ashi candles.

    The first output candle is a copy of the first input candle.  Each
    later candle uses the input OHLC average as its close, the midpoint
    of the previous output body as its open, and widens the input
    high/low to contain both.
    """
    if not series:
        return []
    result: List[Candle] = [series[0]]
    prev = series[0]
    for candle in series[1:]:
        ha_close = (candle.open + candle.high + candle.low + candle.close) / 4.0
        ha_open = (prev.open + prev.close) / 2.0
        ha = Candle(
            time=candle.time,
            open=ha_open,
            high=max(candle.high, ha_open, ha_close),
            low=min(candle.low, ha_open, ha_close),
            close=ha_close,
            volume=candle.volume,
        )
        result.append(ha)
        prev = ha
    return result


def renko(series: Sequence[Candle], brick_size: float = RENKO_BRICK_SIZE) -> List[RenkoBrick]:
    """Aggregate ``series`` into Renko bricks.

    ``brick_size`` is a fraction of the running reference price, which
    starts at the first close.  A candle whose close moved at least one
    brick away emits ``floor(change / brick_size)`` bricks, each moving
    the reference price by one brick of the current price.  Candles that
    do not cross the threshold emit nothing, so the output is usually
    shorter than the input and its timestamps are irregular.

    Args:
        series: Original candles.
        brick_size: Brick height relative to the reference price.

    Returns:
        The list of bricks, possibly empty.
    """
    if brick_size <= 0:
        raise ValueError(f"brick_size must be positive, got {brick_size}")
    if not series:
        return []
    bricks: List[RenkoBrick] = []
    current = series[0].close
    for candle in series[1:]:
        if current == 0:
            current = candle.close
            continue
        change = candle.close - current
        change_pct = abs(change / current)
        if change_pct < brick_size:
            continue
        direction = 1 if change > 0 else -1
        for _ in range(int(math.floor(change_pct / brick_size))):
            new_price = current + direction * brick_size * current
            bricks.append(
                RenkoBrick(
                    time=candle.time,
                    open=current,
                    high=max(current, new_price),
                    low=min(current, new_price),
                    close=new_price,
                    direction=direction,
                )
            )
            current = new_price
    logger.debug("Renko: %d candles -> %d bricks", len(series), len(bricks))
    return bricks


def _line(time: int, start: float, end: float, direction: int) -> RenkoBrick:
    return RenkoBrick(
        time=time,
        open=start,
        high=max(start, end),
        low=min(start, end),
        close=end,
        direction=direction,
    )


def line_break(series: Sequence[Candle], lines: int = LINE_BREAK_COUNT) -> List[RenkoBrick]:
    """Build an N-line-break chart from closing prices.

    A close above the top of the last line extends an up trend; a close
    below its bottom extends a down trend.  Reversing the trend requires
    the close to break the extreme of the last ``lines`` lines.  New
    lines start at the edge of the previous line, so consecutive lines
    touch.
    """
    if lines < 1:
        raise ValueError(f"lines must be at least 1, got {lines}")
    if not series:
        return []
    result: List[RenkoBrick] = []
    base = series[0].close
    for candle in series[1:]:
        close = candle.close
        if not result:
            if close > base:
                result.append(_line(candle.time, base, close, 1))
            elif close < base:
                result.append(_line(candle.time, base, close, -1))
            continue
        last = result[-1]
        recent = result[-lines:]
        if last.direction > 0:
            up_threshold = last.high
            down_threshold = min(b.low for b in recent)
        else:
            up_threshold = max(b.high for b in recent)
            down_threshold = last.low
        if close > up_threshold:
            result.append(_line(candle.time, last.high, close, 1))
        elif close < down_threshold:
            result.append(_line(candle.time, last.low, close, -1))
    return result


_TRANSFORMS: Dict[ChartType, Callable[..., List[Candle]]] = {
    ChartType.CANDLESTICK: identity,
    ChartType.LINE: identity,
    ChartType.AREA: identity,
    ChartType.HEIKIN_ASHI: heikin_ashi,
}


def transform_series(
    chart_type: ChartType,
    series: Sequence[Candle],
    brick_size: float = RENKO_BRICK_SIZE,
    line_count: int = LINE_BREAK_COUNT,
) -> List[Candle]:
    """Return the series drawn for ``chart_type``.

    Raises:
        ValueError: If ``chart_type`` is not a known chart type.
    """
    chart_type = ChartType(chart_type)
    if chart_type is ChartType.RENKO:
        return list(renko(series, brick_size))
    if chart_type is ChartType.LINE_BREAK:
        return list(line_break(series, line_count))
    return _TRANSFORMS[chart_type](series)


__all__ = [
    "identity",
    "heikin_ashi",
    "renko",
    "line_break",
    "transform_series",
]
