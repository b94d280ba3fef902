"""Overlay indicators computed from the original candle series.

Indicators never look at the transformed series: a Heikin-Ashi or Renko
chart still overlays the VWAP, EMA and SMA of the raw candles.  Results
are aligned with the input in chronological order; VWAP and EMA yield
one point per candle, SMA yields ``len(series) - period + 1`` points.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Sequence

import pandas as pd  # type: ignore

from .models import Candle, IndicatorPoint, RenderOptions


def _to_dataframe(series: Iterable[Candle]) -> pd.DataFrame:
    """Convert candles to a DataFrame with ``time``, OHLC and ``volume`` columns.

    Missing volume is treated as zero.
    """
    records = [
        {
            "time": c.time,
            "open": c.open,
            "high": c.high,
            "low": c.low,
            "close": c.close,
            "volume": float(c.volume or 0.0),
        }
        for c in series
    ]
    return pd.DataFrame.from_records(
        records, columns=["time", "open", "high", "low", "close", "volume"]
    )


def _to_points(times: pd.Series, values: pd.Series) -> List[IndicatorPoint]:
    return [IndicatorPoint(time=int(t), value=float(v)) for t, v in zip(times, values)]


def has_volume_data(series: Sequence[Candle]) -> bool:
    """Whether any candle reports a positive volume."""
    return any((c.volume or 0) > 0 for c in series)


def vwap(series: Sequence[Candle]) -> List[IndicatorPoint]:
    """Cumulative volume weighted average price.

    Uses the typical price ``(high + low + close) / 3``.  Where the
    cumulative volume is still zero the typical price itself is used.
    """
    df = _to_dataframe(series)
    if df.empty:
        return []
    typical = (df["high"] + df["low"] + df["close"]) / 3.0
    cum_vol = df["volume"].cumsum()
    cum_tpv = (typical * df["volume"]).cumsum()
    values = (cum_tpv / cum_vol).where(cum_vol != 0, typical)
    return _to_points(df["time"], values)


def ema(series: Sequence[Candle], period: int) -> List[IndicatorPoint]:
    """Exponential moving average of closes seeded with the first close.

    ``k = 2 / (period + 1)``; there is no warm-up gap.
    """
    if period < 1:
        raise ValueError(f"EMA period must be at least 1, got {period}")
    df = _to_dataframe(series)
    if df.empty:
        return []
    values = df["close"].ewm(span=period, adjust=False).mean()
    return _to_points(df["time"], values)


def sma(series: Sequence[Candle], period: int) -> List[IndicatorPoint]:
    """Simple moving average of closes over a trailing window of ``period``."""
    if period < 1:
        raise ValueError(f"SMA period must be at least 1, got {period}")
    df = _to_dataframe(series)
    if len(df) < period:
        return []
    values = df["close"].rolling(window=period).mean()
    # Drop the warm-up rows that have no full window
    return _to_points(df["time"].iloc[period - 1:], values.iloc[period - 1:])


def compute_overlays(series: Sequence[Candle], options: RenderOptions) -> Dict[str, List[IndicatorPoint]]:
    """Compute the overlays enabled in ``options``.

    VWAP is only computed when the series carries meaningful volume.
    The returned mapping preserves drawing order: ``vwap``, ``ema``,
    ``sma``.
    """
    overlays: Dict[str, List[IndicatorPoint]] = {}
    if options.show_vwap and has_volume_data(series):
        overlays["vwap"] = vwap(series)
    if options.show_ema:
        overlays["ema"] = ema(series, options.ema_period)
    if options.show_sma:
        overlays["sma"] = sma(series, options.sma_period)
    return overlays


__all__ = ["has_volume_data", "vwap", "ema", "sma", "compute_overlays"]
