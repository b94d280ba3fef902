"""Data providers for ChartRaster.

:func:`build_provider` maps an exchange name to a provider instance.
Binance is served by a dedicated REST client; the other supported venues
go through ccxt.
"""

from __future__ import annotations

from ..config import SUPPORTED_EXCHANGES
from ..errors import ConfigurationError
from .base import DataProvider
from .binance import BinanceDataProvider
from .exchange import CcxtDataProvider
from .file import FileDataProvider


def build_provider(exchange: str) -> DataProvider:
    """Return a provider for ``exchange``.

    Raises:
        ConfigurationError: If the exchange is not supported.
    """
    name = (exchange or "").strip().lower()
    if name not in SUPPORTED_EXCHANGES:
        raise ConfigurationError(
            f"Unsupported exchange: {exchange}. Supported: {', '.join(SUPPORTED_EXCHANGES)}"
        )
    if name == "binance":
        return BinanceDataProvider()
    return CcxtDataProvider(name)


__all__ = [
    "DataProvider",
    "BinanceDataProvider",
    "CcxtDataProvider",
    "FileDataProvider",
    "build_provider",
]
