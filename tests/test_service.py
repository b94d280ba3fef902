"""Tests for the chart generation services."""

from __future__ import annotations

from typing import List, Tuple

from PIL import Image

from chartraster.errors import ConfigurationError, DataFetchError
from chartraster.models import Candle
from chartraster.providers.base import DataProvider
from chartraster.service import (
    ComparisonConfig,
    ComparisonService,
    generate_chart,
    generate_multiple_charts,
)
from chartraster.settings import load_chart_config


def _candles(count: int = 30, base: float = 100.0) -> List[Candle]:
    out = []
    price = base
    for i in range(count):
        close = price * (1.01 if i % 2 else 0.995)
        out.append(
            Candle(
                time=1_704_067_200_000 + i * 3_600_000,
                open=price,
                high=max(price, close) * 1.002,
                low=min(price, close) * 0.998,
                close=close,
                volume=5.0,
            )
        )
        price = close
    return out


class DummyProvider(DataProvider):
    """Serves synthetic candles and records every request."""

    name = "dummy"

    def __init__(self, failing: Tuple[str, ...] = ()) -> None:
        self.failing = failing
        self.calls: List[Tuple[str, str, int]] = []

    def fetch_ohlcv(self, symbol: str, timeframe: str, limit: int = 100) -> List[Candle]:
        self.calls.append((symbol, timeframe, limit))
        if symbol in self.failing:
            raise DataFetchError(f"Failed to fetch data: {symbol} unavailable")
        return _candles()


def test_generate_chart_writes_image(tmp_path) -> None:
    out = tmp_path / "charts" / "btc.png"
    config = load_chart_config(output_path=str(out), width=400, height=300, show_ema=True)
    provider = DummyProvider()
    result = generate_chart(config, provider=provider, include_data_url=True)
    assert result.success, result.error
    assert result.output_path == str(out)
    assert out.read_bytes() == result.image
    assert result.data_url.startswith("data:image/png;base64,")
    assert provider.calls == [("BTC/USDT", "1h", 100)]
    with Image.open(out) as img:
        assert img.size == (400, 300)


def test_generate_chart_with_given_candles_skips_the_provider(tmp_path) -> None:
    config = load_chart_config(output_path=str(tmp_path / "c.jpg"), width=200, height=200)
    result = generate_chart(config, candles=_candles(5), write=False)
    assert result.success
    assert result.output_path is None
    assert result.image.startswith(b"\xff\xd8")
    assert not (tmp_path / "c.jpg").exists()


def test_generate_chart_reports_fetch_failures(tmp_path) -> None:
    config = load_chart_config(symbol="BAD/USDT", output_path=str(tmp_path / "bad.png"))
    result = generate_chart(config, provider=DummyProvider(failing=("BAD/USDT",)))
    assert not result.success
    assert result.error_type == "DataFetchError"
    assert "BAD/USDT unavailable" in result.error
    assert not (tmp_path / "bad.png").exists()


def test_generate_chart_reports_render_failures(tmp_path) -> None:
    out = tmp_path / "broken.png"
    config = load_chart_config(output_path=str(out), background_color="not-a-colour")
    result = generate_chart(config, provider=DummyProvider())
    assert not result.success
    assert result.error_type == "RenderFailure"
    assert not out.exists()


def test_generate_multiple_charts_continues_past_failures(tmp_path) -> None:
    configs = [
        load_chart_config(symbol="BTC/USDT", exchange="binance", output_path=str(tmp_path / "a.png"), width=200, height=200),
        load_chart_config(symbol="ETH/USDT", exchange="kraken", output_path=str(tmp_path / "b.png"), width=200, height=200),
        load_chart_config(symbol="SOL/USDT", exchange="binance", output_path=str(tmp_path / "c.png"), width=200, height=200),
    ]
    built: List[str] = []

    def factory(exchange: str) -> DataProvider:
        built.append(exchange)
        if exchange == "kraken":
            raise ConfigurationError("kraken is offline")
        return DummyProvider()

    results = generate_multiple_charts(configs, provider_factory=factory)
    assert [r.success for r in results] == [True, False, True]
    assert results[1].error_type == "ConfigurationError"
    assert results[1].output_path == str(tmp_path / "b.png")
    # providers are shared per exchange
    assert built == ["binance", "kraken"]


def test_grid_rejects_three_symbols_before_fetching() -> None:
    provider = DummyProvider()
    result = ComparisonService.grid(["BTC/USDT", "ETH/USDT", "SOL/USDT"], columns=2, provider=provider)
    assert not result.success
    assert result.error_type == "LayoutConstraintError"
    assert "maximum 2 symbols" in result.error
    assert "BTC/USDT, ETH/USDT, SOL/USDT" in result.error
    assert provider.calls == []


def test_grid_rejects_three_columns() -> None:
    result = ComparisonService.grid(["BTC/USDT", "ETH/USDT"], columns=3, provider=DummyProvider())
    assert not result.success
    assert "maximum 2 columns" in result.error


def test_side_by_side_writes_one_canvas(tmp_path) -> None:
    out = tmp_path / "compare.png"
    result = ComparisonService.side_by_side(
        ["BTC/USDT", "ETH/USDT"], output_path=str(out), provider=DummyProvider()
    )
    assert result.success, result.error
    with Image.open(out) as img:
        assert img.size == (1600, 800)


def test_grid_in_one_column(tmp_path) -> None:
    result = ComparisonService.grid(
        ["BTC/USDT", "ETH/USDT"],
        columns=1,
        provider=DummyProvider(),
        width=600,
        height=600,
    )
    assert result.success, result.error
    assert result.image.startswith(b"\x89PNG")


def test_timeframe_comparison_fetches_each_timeframe() -> None:
    provider = DummyProvider()
    result = ComparisonService.timeframe_comparison(
        "BTC/USDT", ["15m", "1h", "4h"], provider=provider, width=900, height=300
    )
    assert result.success, result.error
    assert [(s, tf) for s, tf, _ in provider.calls] == [
        ("BTC/USDT", "15m"),
        ("BTC/USDT", "1h"),
        ("BTC/USDT", "4h"),
    ]


def test_comparison_skips_symbols_that_fail() -> None:
    provider = DummyProvider(failing=("ETH/USDT",))
    config = ComparisonConfig(symbols=["BTC/USDT", "ETH/USDT"], width=800, height=400)
    result = ComparisonService(config, provider=provider).generate_comparison()
    assert result.success


def test_comparison_fails_when_nothing_renders() -> None:
    provider = DummyProvider(failing=("BTC/USDT", "ETH/USDT"))
    config = ComparisonConfig(symbols=["BTC/USDT", "ETH/USDT"])
    result = ComparisonService(config, provider=provider).generate_comparison()
    assert not result.success
    assert result.error_type == "RenderFailure"
    assert "No charts could be rendered" in result.error


def test_cell_targets_with_timeframes() -> None:
    config = ComparisonConfig(symbols=["BTC/USDT", "ETH/USDT"], timeframes=["1h", "4h", "1d"])
    assert ComparisonService(config).cell_targets() == [("BTC/USDT", "1h"), ("BTC/USDT", "4h")]
