"""Abstract base class for OHLCV data providers.

This module defines the interface that all data providers must implement.
Providers return chronological lists of :class:`~chartraster.models.Candle`
and signal every failure with :class:`~chartraster.errors.DataFetchError`.
"""

from __future__ import annotations

import abc
from typing import List

from ..config import SUPPORTED_TIMEFRAMES
from ..models import Candle


class DataProvider(abc.ABC):
    """Interface for OHLCV data providers."""

    name: str = "base"

    @abc.abstractmethod
    def fetch_ohlcv(self, symbol: str, timeframe: str, limit: int = 100) -> List[Candle]:
        """Fetch the most recent ``limit`` candles for ``symbol``.

        Args:
            symbol: Market symbol in ``BASE/QUOTE`` form, e.g. ``BTC/USDT``.
            timeframe: A string such as "1m", "15m", "1h", "1d".
            limit: Maximum number of candles to return.

        Returns:
            A list of :class:`Candle` instances in chronological order.

        Raises:
            DataFetchError: On network, authentication, decoding or
                unsupported-symbol failures.
        """
        raise NotImplementedError

    def is_symbol_supported(self, symbol: str) -> bool:
        """Whether ``symbol`` can be fetched; providers may override."""
        return "/" in symbol

    def supported_timeframes(self) -> List[str]:
        return list(SUPPORTED_TIMEFRAMES)
