"""Exchange data provider backed by ccxt.

Used for the venues without a dedicated REST client in this package
(Coinbase, Kraken, KuCoin, OKX).  ccxt handles venue-specific symbol and
timeframe mapping and its own rate limiting; failures are re-raised as
:class:`~chartraster.errors.DataFetchError`.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

import ccxt

from ..errors import ConfigurationError, DataFetchError
from ..models import Candle, candles_from_records
from .base import DataProvider

logger = logging.getLogger(__name__)


class CcxtDataProvider(DataProvider):
    """Fetch OHLCV candles through a ccxt exchange instance."""

    def __init__(self, exchange_id: str, client: Optional[Any] = None) -> None:
        self.name = exchange_id
        if client is None:
            exchange_class = getattr(ccxt, exchange_id, None)
            if exchange_class is None:
                raise ConfigurationError(f"Unsupported exchange: {exchange_id}")
            client = exchange_class({"enableRateLimit": True})
        self.client = client
        self._markets_loaded = False

    def _load_markets(self) -> None:
        if not self._markets_loaded:
            self.client.load_markets()
            self._markets_loaded = True

    def fetch_ohlcv(self, symbol: str, timeframe: str, limit: int = 100) -> List[Candle]:
        try:
            self._load_markets()
            rows = self.client.fetch_ohlcv(symbol, timeframe, limit=limit)
        except ccxt.BaseError as exc:
            raise DataFetchError(f"Failed to fetch data: {exc}") from exc
        try:
            candles = candles_from_records(rows or [])
        except (KeyError, TypeError, ValueError) as exc:
            raise DataFetchError(f"{self.name} returned malformed candles: {exc}") from exc
        logger.debug("Fetched %d candles for %s %s from %s", len(candles), symbol, timeframe, self.name)
        return candles

    def is_symbol_supported(self, symbol: str) -> bool:
        try:
            self._load_markets()
        except ccxt.BaseError as exc:
            logger.warning("Could not load %s markets: %s", self.name, exc)
            return False
        return symbol in (self.client.markets or {})

    def supported_timeframes(self) -> List[str]:
        return list((getattr(self.client, "timeframes", None) or {}).keys())
