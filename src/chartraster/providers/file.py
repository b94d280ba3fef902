"""Offline provider reading OHLCV candles from a local file.

Supports JSON (a list of objects or ``[time, open, high, low, close,
volume]`` rows, optionally under a ``"candles"`` key) and CSV with a
header row.  CSV timestamps may be epoch milliseconds or ISO strings.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Union

import pandas as pd  # type: ignore

from ..errors import DataFetchError
from ..models import Candle, candles_from_records
from .base import DataProvider

logger = logging.getLogger(__name__)

_TIME_COLUMNS = ("time", "timestamp", "ts", "date", "datetime")


def _read_csv(path: Path) -> list:
    df = pd.read_csv(path)
    df.columns = [str(c).strip().lower() for c in df.columns]
    time_col = next((c for c in _TIME_COLUMNS if c in df.columns), None)
    if time_col is None:
        raise DataFetchError(f"{path}: no time column (expected one of {', '.join(_TIME_COLUMNS)})")
    times = df[time_col]
    if not pd.api.types.is_numeric_dtype(times):
        parsed = pd.to_datetime(times, utc=True)
        times = parsed.map(lambda ts: int(ts.timestamp() * 1000))
    df = df.assign(time=times.astype("int64"))
    if "volume" not in df.columns:
        df["volume"] = None
    return df[["time", "open", "high", "low", "close", "volume"]].to_dict(orient="records")


class FileDataProvider(DataProvider):
    """Serve candles from ``path``; ``symbol`` and ``timeframe`` are not used for lookup."""

    name = "file"

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def fetch_ohlcv(self, symbol: str, timeframe: str, limit: int = 100) -> List[Candle]:
        if not self.path.exists():
            raise DataFetchError(f"Data file not found: {self.path}")
        try:
            if self.path.suffix.lower() == ".csv":
                records = _read_csv(self.path)
            else:
                with self.path.open("r", encoding="utf-8") as f:
                    payload = json.load(f)
                records = payload.get("candles", []) if isinstance(payload, dict) else payload
            candles = candles_from_records(records)
        except DataFetchError:
            raise
        except (OSError, KeyError, TypeError, ValueError) as exc:
            raise DataFetchError(f"Could not read candles from {self.path}: {exc}") from exc
        if limit and len(candles) > limit:
            candles = candles[-limit:]
        logger.debug("Loaded %d candles from %s", len(candles), self.path)
        return candles
