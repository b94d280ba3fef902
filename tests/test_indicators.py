"""Tests for the VWAP, EMA and SMA overlays."""

from __future__ import annotations

import pytest

from chartraster.indicators import compute_overlays, ema, has_volume_data, sma, vwap
from chartraster.models import Candle, RenderOptions


def _flat(closes, volumes=None) -> list[Candle]:
    volumes = volumes or [None] * len(closes)
    return [
        Candle(time=i * 1000, open=c, high=c, low=c, close=c, volume=v)
        for i, (c, v) in enumerate(zip(closes, volumes))
    ]


def test_ema_is_seeded_with_first_close() -> None:
    points = ema(_flat([1, 2, 3]), period=3)
    assert [p.value for p in points] == pytest.approx([1.0, 1.5, 2.25])
    assert [p.time for p in points] == [0, 1000, 2000]


def test_ema_period_one_tracks_closes() -> None:
    assert [p.value for p in ema(_flat([5, 7, 6]), period=1)] == pytest.approx([5, 7, 6])


def test_ema_rejects_zero_period() -> None:
    with pytest.raises(ValueError):
        ema(_flat([1, 2]), period=0)


def test_sma_starts_after_a_full_window() -> None:
    points = sma(_flat([1, 2, 3, 4, 5]), period=3)
    assert [p.value for p in points] == pytest.approx([2.0, 3.0, 4.0])
    assert [p.time for p in points] == [2000, 3000, 4000]
    assert sma(_flat([1, 2]), period=3) == []


def test_vwap_uses_typical_price_and_cumulative_volume() -> None:
    series = [
        Candle(time=0, open=10, high=12, low=8, close=10, volume=1),
        Candle(time=1, open=20, high=22, low=18, close=20, volume=3),
    ]
    assert [p.value for p in vwap(series)] == pytest.approx([10.0, 17.5])


def test_vwap_falls_back_to_typical_price_before_any_volume() -> None:
    series = [
        Candle(time=0, open=10, high=12, low=8, close=10, volume=0),
        Candle(time=1, open=20, high=22, low=18, close=20, volume=2),
    ]
    assert [p.value for p in vwap(series)] == pytest.approx([10.0, 20.0])


def test_sma_of_constant_series_is_exact() -> None:
    points = sma(_flat([0.1] * 50), period=7)
    assert len(points) == 44
    assert all(p.value == 0.1 for p in points)


def test_vwap_with_no_volume_is_typical_price() -> None:
    series = [
        Candle(time=i, open=10 + i, high=13 + 2 * i, low=8 + i, close=11 + i, volume=0)
        for i in range(5)
    ]
    expected = [(c.high + c.low + c.close) / 3 for c in series]
    assert [p.value for p in vwap(series)] == pytest.approx(expected)


def test_has_volume_data() -> None:
    assert not has_volume_data(_flat([1, 2]))
    assert not has_volume_data(_flat([1, 2], [0, 0]))
    assert has_volume_data(_flat([1, 2], [0, 5]))


def test_compute_overlays_respects_flags_and_order() -> None:
    series = _flat([1, 2, 3, 4], [1, 1, 1, 1])
    options = RenderOptions(show_vwap=True, show_ema=True, ema_period=2, show_sma=True, sma_period=2)
    overlays = compute_overlays(series, options)
    assert list(overlays) == ["vwap", "ema", "sma"]
    assert len(overlays["sma"]) == 3
    assert compute_overlays(series, RenderOptions()) == {}


def test_vwap_is_skipped_without_volume() -> None:
    overlays = compute_overlays(_flat([1, 2, 3]), RenderOptions(show_vwap=True))
    assert "vwap" not in overlays
