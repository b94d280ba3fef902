"""Tests for the price/time to pixel mapping."""

from __future__ import annotations

import pytest

from chartraster.models import Candle, Margin, ScaleConfig
from chartraster.scaling import (
    build_dimensions,
    compute_range,
    is_point_style,
    slot_width,
    to_pixel_x,
    to_pixel_y,
)


def _candle(t: int, o: float, h: float, l: float, c: float) -> Candle:
    return Candle(time=t, open=o, high=h, low=l, close=c)


SERIES = [
    _candle(0, 95, 100, 90, 98),
    _candle(1, 98, 110, 97, 105),
]


def test_range_covers_lows_and_highs() -> None:
    pr = compute_range(SERIES)
    assert (pr.min, pr.max) == (90, 110)
    assert pr.range == 20


def test_auto_scale_pads_five_percent() -> None:
    pr = compute_range(SERIES, ScaleConfig(auto_scale=True))
    assert pr.min == pytest.approx(89.0)
    assert pr.max == pytest.approx(111.0)


def test_multipliers_apply_in_order_around_the_center() -> None:
    pr = compute_range(SERIES, ScaleConfig(x=2.0))
    assert (pr.min, pr.max) == (pytest.approx(80.0), pytest.approx(120.0))
    # x then y: 20 -> 40 -> 20 around the same midpoint
    pr = compute_range(SERIES, ScaleConfig(x=2.0, y=0.5))
    assert (pr.min, pr.max) == (pytest.approx(90.0), pytest.approx(110.0))


def test_clamps_only_shrink_the_range() -> None:
    pr = compute_range(SERIES, ScaleConfig(min_scale=95, max_scale=200))
    assert pr.min == 95
    assert pr.max == 110


def test_flat_series_gets_a_positive_range() -> None:
    flat = [_candle(0, 100, 100, 100, 100), _candle(1, 100, 100, 100, 100)]
    pr = compute_range(flat)
    assert pr.min == pytest.approx(99.0)
    assert pr.max == pytest.approx(101.0)
    zero = [_candle(0, 0, 0, 0, 0)]
    pr = compute_range(zero)
    assert (pr.min, pr.max) == (-1.0, 1.0)


def test_clamps_that_cross_are_widened() -> None:
    pr = compute_range(SERIES, ScaleConfig(min_scale=105, max_scale=100))
    assert pr.range > 0


def test_empty_series_has_no_range() -> None:
    with pytest.raises(ValueError):
        compute_range([])


def test_pixel_y_maps_range_onto_chart_area() -> None:
    dims = build_dimensions(800, 600)
    pr = compute_range(SERIES)
    assert to_pixel_y(110, pr, dims) == pytest.approx(60.0)
    assert to_pixel_y(90, pr, dims) == pytest.approx(560.0)
    assert to_pixel_y(100, pr, dims) == pytest.approx(310.0)


def test_bar_style_centres_elements_in_slots() -> None:
    dims = build_dimensions(800, 600)
    assert slot_width(7, dims) == pytest.approx(100.0)
    assert to_pixel_x(0, 7, dims) == pytest.approx(110.0)
    assert to_pixel_x(6, 7, dims) == pytest.approx(710.0)
    # a single candle sits in the middle of the chart area
    assert to_pixel_x(0, 1, dims) == pytest.approx(410.0)


def test_point_style_spans_the_chart_width() -> None:
    dims = build_dimensions(800, 600)
    assert to_pixel_x(0, 3, dims, point_style=True) == pytest.approx(60.0)
    assert to_pixel_x(2, 3, dims, point_style=True) == pytest.approx(760.0)
    assert to_pixel_x(0, 1, dims, point_style=True) == pytest.approx(410.0)


def test_custom_margins_move_the_chart_area() -> None:
    dims = build_dimensions(400, 300, Margin(top=10, bottom=10, left=20, right=20))
    assert dims.chart_width == 360
    assert dims.chart_height == 280
    assert dims.chart_bottom == 290


def test_point_style_chart_types() -> None:
    assert is_point_style("line")
    assert is_point_style("area")
    assert not is_point_style("candlestick")
    assert not is_point_style("renko")
