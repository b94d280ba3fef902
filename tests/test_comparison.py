"""Tests for comparison layouts and compositing."""

from __future__ import annotations

import numpy as np
import pytest

from chartraster.errors import LayoutConstraintError
from chartraster.models import Candle, Margin, RenderOptions
from chartraster.rendering.comparison import (
    CellJob,
    ComparisonLayout,
    ComparisonRenderer,
    compute_cells,
    fit_to_cell,
    scale_margins,
    validate_layout,
)

DARK_BG = (30, 34, 45)


def _series(count: int = 20) -> list[Candle]:
    return [
        Candle(time=i * 60_000, open=100 + i, high=102 + i, low=99 + i, close=101 + i, volume=1)
        for i in range(count)
    ]


def test_grid_rejects_more_than_two_symbols() -> None:
    layout = ComparisonLayout(type="grid", columns=2)
    with pytest.raises(LayoutConstraintError) as excinfo:
        validate_layout(layout, 3, ["BTC/USDT", "ETH/USDT", "SOL/USDT"])
    message = str(excinfo.value)
    assert "Grid layout supports maximum 2 symbols" in message
    assert "Got 3 symbols: BTC/USDT, ETH/USDT, SOL/USDT" in message


def test_grid_rejects_more_than_two_columns() -> None:
    layout = ComparisonLayout(type="grid", columns=3)
    with pytest.raises(LayoutConstraintError, match="maximum 2 columns. Got 3 columns"):
        validate_layout(layout, 2)


def test_side_by_side_has_no_chart_limit() -> None:
    validate_layout(ComparisonLayout(type="side-by-side"), 5)


def test_side_by_side_cells_share_the_width() -> None:
    cells = compute_cells(ComparisonLayout(type="side-by-side", gap=20), 2, 1600, 800)
    assert [(c.x, c.y, c.width, c.height) for c in cells] == [
        (0, 0, 790, 800),
        (810, 0, 790, 800),
    ]


def test_grid_cells_stack_in_one_column() -> None:
    cells = compute_cells(ComparisonLayout(type="grid", columns=1, gap=10), 2, 1600, 800)
    assert [(c.x, c.y, c.width, c.height) for c in cells] == [
        (0, 0, 1600, 395),
        (0, 405, 1600, 395),
    ]


def test_grid_cells_fill_two_columns() -> None:
    cells = compute_cells(ComparisonLayout(type="grid", columns=2, gap=10), 2, 810, 400)
    assert [(c.x, c.width) for c in cells] == [(0, 400), (410, 400)]
    assert all(c.height == 400 for c in cells)


def test_canvas_too_small_for_layout() -> None:
    with pytest.raises(LayoutConstraintError):
        compute_cells(ComparisonLayout(type="side-by-side", gap=50), 3, 100, 100)


def test_margins_scale_with_the_cell() -> None:
    margin = scale_margins(Margin(), 790, 800)
    assert margin.top == pytest.approx(59.25)
    assert margin.bottom == pytest.approx(39.5)
    assert margin.left == pytest.approx(59.25)
    assert margin.right == pytest.approx(39.5)


def test_margins_have_floors_in_small_cells() -> None:
    margin = scale_margins(Margin(), 200, 150)
    assert (margin.top, margin.bottom, margin.left, margin.right) == (20, 15, 20, 15)


def test_fit_to_cell_keeps_other_options() -> None:
    options = RenderOptions(chart_type="line", show_ema=True, title="ETH/USDT 1h")
    cells = compute_cells(ComparisonLayout(gap=20), 2, 820, 300)
    fitted = fit_to_cell(options, cells[0])
    assert (fitted.width, fitted.height) == (400, 300)
    assert fitted.margin == Margin(top=30, bottom=20, left=30, right=20)
    assert fitted.show_ema and fitted.title == "ETH/USDT 1h"
    # the source options are left alone
    assert options.width == 800


def test_compose_places_cells_and_leaves_gaps_blank() -> None:
    renderer = ComparisonRenderer(820, 300, layout=ComparisonLayout(gap=20))
    jobs = [
        CellJob(label="A", series=_series(), options=RenderOptions(title="A")),
        CellJob(label="B", series=_series(), options=RenderOptions(chart_type="line", title="B")),
    ]
    composition = renderer.compose(jobs)
    image = composition.image
    assert image.shape == (300, 820, 4)
    assert composition.rendered == ["A", "B"]
    assert composition.failed == []
    assert tuple(int(v) for v in image[150, 410, :3]) == DARK_BG
    assert not np.array_equal(image[:, :400], image[:, 420:])


def test_compose_skips_failing_cells() -> None:
    class FlakyRenderer(ComparisonRenderer):
        def _render_cell(self, job, cell):
            if job.label == "BAD":
                raise RuntimeError("boom")
            return super()._render_cell(job, cell)

    renderer = FlakyRenderer(820, 300, layout=ComparisonLayout(gap=20))
    composition = renderer.compose(
        [
            CellJob(label="BAD", series=_series(), options=RenderOptions()),
            CellJob(label="GOOD", series=_series(), options=RenderOptions()),
        ]
    )
    assert composition.rendered == ["GOOD"]
    assert composition.failed == [("BAD", "boom")]
    # the failed cell keeps the canvas background
    assert (composition.image[:, :400, :3] == np.array(DARK_BG, dtype=np.uint8)).all()


def test_compose_validates_grid_limits() -> None:
    renderer = ComparisonRenderer(800, 400, layout=ComparisonLayout(type="grid", columns=2))
    jobs = [CellJob(label=str(i), series=_series(), options=RenderOptions()) for i in range(3)]
    with pytest.raises(LayoutConstraintError):
        renderer.compose(jobs)
