"""Binance public market data provider.

Fetches klines from Binance's public REST API (no credentials required).
Transient errors such as rate limits (HTTP 429) and server errors (5xx)
are automatically retried with exponential backoff by the session's
adapter; anything still failing afterwards raises
:class:`~chartraster.errors.DataFetchError`.

Environment variables:
    CHARTRASTER_BINANCE_URL: Base URL for the API (defaults to
        ``https://api.binance.com``).
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..config import ENV_BINANCE_BASE_URL, SUPPORTED_TIMEFRAMES
from ..errors import DataFetchError
from ..models import Candle, candles_from_records
from .base import DataProvider

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.binance.com"
KLINES_PATH = "/api/v3/klines"
# Binance caps a single klines request at this many rows.
MAX_LIMIT = 1000


class BinanceDataProvider(DataProvider):
    """Concrete data provider using Binance's public klines endpoint."""

    name = "binance"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = 10.0,
        max_retries: int = 3,
        backoff_factor: float = 0.5,
    ) -> None:
        """Initialize the provider.

        Args:
            base_url: Base URL for the API.  Defaults to the value of
                ``CHARTRASTER_BINANCE_URL`` or ``https://api.binance.com``.
            timeout: Default request timeout in seconds.
            max_retries: Maximum number of retry attempts for rate limits and
                transient errors.
            backoff_factor: Backoff factor for exponential backoff between retries.
        """
        self.base_url = (base_url or os.getenv(ENV_BINANCE_BASE_URL) or DEFAULT_BASE_URL).rstrip("/")
        self.timeout = timeout
        # Configure a requests session with retry/backoff
        self.session = requests.Session()
        retries = Retry(
            total=max_retries,
            backoff_factor=backoff_factor,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET", "HEAD", "OPTIONS"],
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retries)
        self.session.mount("https://", adapter)
        self.session.mount("http://", adapter)

    @staticmethod
    def _market_id(symbol: str) -> str:
        """Map ``BTC/USDT`` to Binance's ``BTCUSDT``."""
        return symbol.replace("/", "").upper()

    def _get(self, path: str, params: Dict[str, str]) -> Any:
        """Perform an HTTP GET request and return the decoded JSON.

        Raises:
            DataFetchError: If the request fails or the response cannot be decoded.
        """
        url = f"{self.base_url}{path}"
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            raise DataFetchError(f"Binance request failed: {exc}") from exc
        if response.status_code in (401, 403):
            raise DataFetchError(
                f"Binance rejected the request: {response.status_code} {response.text}"
            )
        if response.status_code == 400:
            # Binance reports unknown symbols and bad intervals as 400 with a JSON body
            raise DataFetchError(f"Binance rejected the request parameters: {response.text}")
        try:
            response.raise_for_status()
        except requests.HTTPError as exc:
            raise DataFetchError(f"Binance API request failed: {exc}") from exc
        try:
            return response.json()
        except Exception as exc:
            raise DataFetchError(f"Failed to decode Binance JSON response: {exc}") from exc

    def fetch_ohlcv(self, symbol: str, timeframe: str, limit: int = 100) -> List[Candle]:
        if timeframe not in SUPPORTED_TIMEFRAMES:
            raise DataFetchError(f"Unsupported timeframe for Binance: {timeframe}")
        params = {
            "symbol": self._market_id(symbol),
            "interval": timeframe,
            "limit": str(max(1, min(limit, MAX_LIMIT))),
        }
        payload = self._get(KLINES_PATH, params)
        if not isinstance(payload, list):
            raise DataFetchError(f"Unexpected Binance klines payload: {payload!r}")
        try:
            # [open time, open, high, low, close, volume, close time, ...]
            candles = candles_from_records([float(v) for v in row[:6]] for row in payload)
        except (KeyError, TypeError, ValueError) as exc:
            raise DataFetchError(f"Binance returned malformed candles: {exc}") from exc
        logger.debug("Fetched %d candles for %s %s from Binance", len(candles), symbol, timeframe)
        return candles
