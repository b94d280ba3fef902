"""Compose several independently rendered charts into one raster.

Rendering is split into two phases.  First every cell job is rendered
on its own (own options, own price range, own margins); this phase may
run on a thread pool.  Then the resulting rasters are copied into the
shared destination array one at a time, in job order, under a lock.
"""

from __future__ import annotations

import logging
import math
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np
from pydantic import BaseModel, Field

from ..config import (
    GRID_MAX_CHARTS,
    GRID_MAX_COLUMNS,
    LAYOUT_GAP_DEFAULT,
    MIN_MARGIN_BOTTOM,
    MIN_MARGIN_LEFT,
    MIN_MARGIN_RIGHT,
    MIN_MARGIN_TOP,
    REFERENCE_HEIGHT,
    REFERENCE_WIDTH,
)
from ..errors import LayoutConstraintError
from ..models import Candle, Margin, RenderOptions
from .pipeline import ChartRenderer
from .surface import to_rgba
from .theme import THEMES

logger = logging.getLogger(__name__)


class ComparisonLayout(BaseModel):
    """How cells are arranged on the comparison canvas."""

    type: str = Field(default="side-by-side", pattern="^(side-by-side|grid)$")
    columns: Optional[int] = Field(default=None, ge=1)
    rows: Optional[int] = Field(default=None, ge=1)
    gap: int = Field(default=LAYOUT_GAP_DEFAULT, ge=0)


@dataclass(frozen=True)
class Cell:
    x: int
    y: int
    width: int
    height: int


@dataclass
class CellJob:
    """One chart to render into one cell."""

    label: str
    series: Sequence[Candle]
    options: RenderOptions


@dataclass
class Composition:
    image: np.ndarray
    rendered: List[str] = field(default_factory=list)
    failed: List[Tuple[str, str]] = field(default_factory=list)


def validate_layout(layout: ComparisonLayout, chart_count: int, labels: Optional[Sequence[str]] = None) -> None:
    """Reject grid layouts beyond two charts or two columns.

    ``labels`` only enrich the error message.

    Raises:
        LayoutConstraintError: If the grid limits are exceeded.
    """
    if layout.type != "grid":
        return
    if chart_count > GRID_MAX_CHARTS:
        names = f": {', '.join(labels)}" if labels else ""
        raise LayoutConstraintError(
            f"Grid layout supports maximum {GRID_MAX_CHARTS} symbols. Got {chart_count} symbols{names}"
        )
    columns = layout.columns if layout.columns is not None else GRID_MAX_COLUMNS
    if columns > GRID_MAX_COLUMNS:
        raise LayoutConstraintError(
            f"Grid layout supports maximum {GRID_MAX_COLUMNS} columns. Got {columns} columns"
        )


def compute_cells(layout: ComparisonLayout, count: int, width: int, height: int) -> List[Cell]:
    """Split a ``width`` x ``height`` canvas into ``count`` cells.

    Side-by-side cells share the width evenly after ``count - 1`` gaps
    and take the full height.  Grid cells fill ``columns`` columns and
    ``ceil(count / columns)`` rows.  Cell sizes are floored to whole
    pixels.
    """
    if count <= 0:
        return []
    gap = layout.gap
    if layout.type == "grid":
        columns = min(layout.columns or GRID_MAX_COLUMNS, GRID_MAX_COLUMNS)
        rows = math.ceil(count / columns)
    else:
        columns = count
        rows = 1
    cell_w = (width - (columns - 1) * gap) / columns
    cell_h = (height - (rows - 1) * gap) / rows
    if cell_w < 1 or cell_h < 1:
        raise LayoutConstraintError(
            f"Canvas {width}x{height} is too small for {count} charts with gap {gap}"
        )
    cells = []
    for index in range(count):
        row, col = divmod(index, columns)
        cells.append(
            Cell(
                x=int(round(col * (cell_w + gap))),
                y=int(round(row * (cell_h + gap))),
                width=int(cell_w),
                height=int(cell_h),
            )
        )
    return cells


def scale_margins(margin: Optional[Margin], width: float, height: float) -> Margin:
    """Rescale ``margin`` to a cell relative to the 800x600 reference.

    Floors keep labels legible in small cells.
    """
    margin = margin or Margin()
    scale = min(width / REFERENCE_WIDTH, height / REFERENCE_HEIGHT)
    return Margin(
        top=max(margin.top * scale, MIN_MARGIN_TOP),
        bottom=max(margin.bottom * scale, MIN_MARGIN_BOTTOM),
        left=max(margin.left * scale, MIN_MARGIN_LEFT),
        right=max(margin.right * scale, MIN_MARGIN_RIGHT),
    )


def fit_to_cell(options: RenderOptions, cell: Cell) -> RenderOptions:
    """Copy of ``options`` resized to ``cell`` with rescaled margins."""
    return options.model_copy(
        update={
            "width": cell.width,
            "height": cell.height,
            "margin": scale_margins(options.margin, cell.width, cell.height),
        }
    )


class ComparisonRenderer:
    """Lay out and composite cell jobs on a ``width`` x ``height`` canvas.

    ``max_workers`` greater than one renders cells on a thread pool; the
    copy into the destination raster is always serialized.
    """

    def __init__(
        self,
        width: int,
        height: int,
        layout: Optional[ComparisonLayout] = None,
        background: Optional[str] = None,
        max_workers: int = 1,
    ) -> None:
        self.width = int(width)
        self.height = int(height)
        self.layout = layout or ComparisonLayout()
        self.background = background or THEMES["dark"].background
        self.max_workers = max(1, max_workers)
        self._lock = threading.Lock()

    def _blank(self) -> np.ndarray:
        rgba = np.array([round(c * 255) for c in to_rgba(self.background)], dtype=np.uint8)
        canvas = np.empty((self.height, self.width, 4), dtype=np.uint8)
        canvas[:, :] = rgba
        return canvas

    def _render_cell(self, job: CellJob, cell: Cell) -> np.ndarray:
        return ChartRenderer(fit_to_cell(job.options, cell)).render(job.series)

    def _paste(self, canvas: np.ndarray, raster: np.ndarray, cell: Cell) -> None:
        with self._lock:
            h = min(raster.shape[0], self.height - cell.y)
            w = min(raster.shape[1], self.width - cell.x)
            if h <= 0 or w <= 0:
                return
            canvas[cell.y:cell.y + h, cell.x:cell.x + w] = raster[:h, :w]

    def compose(self, jobs: Sequence[CellJob]) -> Composition:
        """Render every job into its cell and return the composite.

        A job that fails to render leaves its cell blank and is reported
        in ``Composition.failed``; the others are still composited.

        Raises:
            LayoutConstraintError: If the layout rejects ``len(jobs)`` charts.
        """
        validate_layout(self.layout, len(jobs), [job.label for job in jobs])
        cells = compute_cells(self.layout, len(jobs), self.width, self.height)
        canvas = self._blank()
        result = Composition(image=canvas)

        def run(pair):
            job, cell = pair
            try:
                return self._render_cell(job, cell), None
            except Exception as exc:
                return None, exc

        pairs = list(zip(jobs, cells))
        if self.max_workers > 1 and len(pairs) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                outcomes = list(pool.map(run, pairs))
        else:
            outcomes = [run(pair) for pair in pairs]

        for (job, cell), (raster, error) in zip(pairs, outcomes):
            if error is not None:
                logger.warning("Skipping comparison cell %s: %s", job.label, error)
                result.failed.append((job.label, str(error)))
                continue
            self._paste(canvas, raster, cell)
            result.rendered.append(job.label)
        return result


__all__ = [
    "ComparisonLayout",
    "Cell",
    "CellJob",
    "Composition",
    "validate_layout",
    "compute_cells",
    "scale_margins",
    "fit_to_cell",
    "ComparisonRenderer",
]
