"""Tests for the ChartRaster command-line interface."""

from __future__ import annotations

import json
from typing import List

from click.testing import CliRunner
from PIL import Image

from chartraster.cli import cli
from chartraster.errors import DataFetchError
from chartraster.models import Candle
from chartraster.providers.base import DataProvider


def _candles(count: int = 24) -> List[Candle]:
    return [
        Candle(
            time=1_704_067_200_000 + i * 3_600_000,
            open=100 + i,
            high=102 + i,
            low=99 + i,
            close=101 + i if i % 4 else 99.5 + i,
            volume=3,
        )
        for i in range(count)
    ]


class DummyProvider(DataProvider):
    name = "dummy"

    def __init__(self) -> None:
        self.calls = []

    def fetch_ohlcv(self, symbol, timeframe, limit=100):
        self.calls.append((symbol, timeframe, limit))
        if symbol.startswith("BAD"):
            raise DataFetchError(f"Failed to fetch data: {symbol}")
        return _candles()


def _patch_provider(monkeypatch) -> DummyProvider:
    provider = DummyProvider()
    monkeypatch.setattr("chartraster.cli._build_provider", lambda exchange, data_file=None: provider)
    return provider


def test_render_writes_chart(monkeypatch, tmp_path) -> None:
    provider = _patch_provider(monkeypatch)
    out = tmp_path / "eth.png"
    runner = CliRunner()
    result = runner.invoke(
        cli,
        [
            "render",
            "--symbol", "eth/usdt",
            "--timeframe", "4h",
            "--output", str(out),
            "--width", "400",
            "--height", "300",
            "--type", "heikin-ashi",
            "--ema", "--sma", "--sma-period", "5", "--vwap",
            "--levels", "110:#ff0000:dotted:R1",
            "--custom-colors", "bullish=#00ff00",
            "--watermark", "chartraster",
            "--watermark-position", "top-left",
            "--auto-scale",
        ],
    )
    assert result.exit_code == 0, result.output
    assert "ETH/USDT 4h: WROTE" in result.output
    assert provider.calls == [("ETH/USDT", "4h", 100)]
    with Image.open(out) as img:
        assert img.size == (400, 300)


def test_render_rejects_invalid_symbol(monkeypatch, tmp_path) -> None:
    _patch_provider(monkeypatch)
    runner = CliRunner()
    result = runner.invoke(cli, ["render", "--symbol", "BTCUSDT", "--output", str(tmp_path / "x.png")])
    assert result.exit_code != 0
    assert "Invalid symbol format" in result.output


def test_render_rejects_bad_levels(monkeypatch, tmp_path) -> None:
    _patch_provider(monkeypatch)
    runner = CliRunner()
    result = runner.invoke(cli, ["render", "--levels", "abc", "--output", str(tmp_path / "x.png")])
    assert result.exit_code != 0
    assert "Invalid levels format" in result.output


def test_render_reports_fetch_failure(monkeypatch, tmp_path) -> None:
    _patch_provider(monkeypatch)
    runner = CliRunner()
    result = runner.invoke(cli, ["render", "--symbol", "BAD/USDT", "--output", str(tmp_path / "x.png")])
    assert result.exit_code == 1
    assert "Failed to fetch data" in result.output
    assert not (tmp_path / "x.png").exists()


def test_render_accepts_brick_size_and_line_break_count(monkeypatch, tmp_path) -> None:
    _patch_provider(monkeypatch)
    runner = CliRunner()
    for chart_type, extra in (("renko", ["--brick-size", "0.005"]), ("line-break", ["--line-break-count", "2"])):
        out = tmp_path / f"{chart_type}.png"
        result = runner.invoke(
            cli,
            ["render", "--type", chart_type, "--output", str(out), "-w", "300", "-h", "200", *extra],
        )
        assert result.exit_code == 0, result.output
        assert out.exists()


def test_render_rejects_zero_brick_size(monkeypatch, tmp_path) -> None:
    _patch_provider(monkeypatch)
    runner = CliRunner()
    result = runner.invoke(cli, ["render", "--brick-size", "0", "--output", str(tmp_path / "x.png")])
    assert result.exit_code == 2
    assert "renko_brick_size" in result.output
    assert not (tmp_path / "x.png").exists()


def test_render_from_data_file(tmp_path) -> None:
    data = tmp_path / "candles.json"
    data.write_text(json.dumps([c.model_dump() for c in _candles()]), encoding="utf-8")
    out = tmp_path / "file.svg"
    runner = CliRunner()
    result = runner.invoke(
        cli,
        ["render", "--data", str(data), "--output", str(out), "-w", "300", "-h", "200", "--type", "line"],
    )
    assert result.exit_code == 0, result.output
    assert out.read_text(encoding="utf-8").startswith("<svg")


def test_compare_grid_rejects_three_symbols(monkeypatch, tmp_path) -> None:
    provider = _patch_provider(monkeypatch)
    runner = CliRunner()
    result = runner.invoke(
        cli,
        [
            "compare",
            "--symbols", "BTC/USDT,ETH/USDT,SOL/USDT",
            "--layout", "grid",
            "--output", str(tmp_path / "grid.png"),
        ],
    )
    assert result.exit_code != 0
    assert "maximum 2 symbols" in result.output
    assert provider.calls == []


def test_compare_grid_rejects_three_columns(monkeypatch, tmp_path) -> None:
    _patch_provider(monkeypatch)
    runner = CliRunner()
    result = runner.invoke(
        cli,
        [
            "compare",
            "--symbols", "BTC/USDT,ETH/USDT",
            "--layout", "grid",
            "--columns", "3",
            "--output", str(tmp_path / "grid.png"),
        ],
    )
    assert result.exit_code != 0
    assert "maximum 2 columns" in result.output


def test_compare_side_by_side(monkeypatch, tmp_path) -> None:
    _patch_provider(monkeypatch)
    out = tmp_path / "side.png"
    runner = CliRunner()
    result = runner.invoke(
        cli,
        [
            "compare",
            "--symbols", "BTC/USDT,ETH/USDT",
            "--width", "800",
            "--height", "300",
            "--output", str(out),
        ],
    )
    assert result.exit_code == 0, result.output
    with Image.open(out) as img:
        assert img.size == (800, 300)


def test_compare_timeframes_for_one_symbol(monkeypatch, tmp_path) -> None:
    provider = _patch_provider(monkeypatch)
    runner = CliRunner()
    result = runner.invoke(
        cli,
        [
            "compare",
            "--symbols", "BTC/USDT",
            "--timeframes", "1h,4h",
            "--width", "800",
            "--height", "300",
            "--output", str(tmp_path / "tf.png"),
        ],
    )
    assert result.exit_code == 0, result.output
    assert [tf for _, tf, _ in provider.calls] == ["1h", "4h"]


def test_fetch_prints_summary(monkeypatch) -> None:
    _patch_provider(monkeypatch)
    runner = CliRunner()
    result = runner.invoke(cli, ["fetch", "--symbol", "btc/usdt", "--limit", "24"])
    assert result.exit_code == 0, result.output
    assert "BTC/USDT 1h: 24 candles from dummy" in result.output


def test_batch_reports_each_chart(monkeypatch, tmp_path) -> None:
    _patch_provider(monkeypatch)
    batch_file = tmp_path / "batch.json"
    batch_file.write_text(
        json.dumps(
            [
                {"symbol": "BTC/USDT", "output_path": str(tmp_path / "a.png"), "width": 200, "height": 200},
                {"symbol": "BAD/USDT", "output_path": str(tmp_path / "b.png"), "width": 200, "height": 200},
                {"symbol": "nope", "output_path": str(tmp_path / "c.png")},
            ]
        ),
        encoding="utf-8",
    )
    runner = CliRunner()
    result = runner.invoke(cli, ["batch", str(batch_file)])
    assert result.exit_code == 1
    assert "1 succeeded, 2 failed" in result.output
    assert (tmp_path / "a.png").exists()
    assert not (tmp_path / "b.png").exists()


def test_unknown_exchange_is_a_usage_error(tmp_path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["render", "--exchange", "mtgox", "--output", str(tmp_path / "x.png")])
    assert result.exit_code == 2
    assert "Unsupported exchange" in result.output
