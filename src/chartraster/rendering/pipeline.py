"""Single-chart drawing pipeline.

One call to :meth:`ChartRenderer.render` performs one linear pass over a
fresh surface, painting layers in a fixed order:

1. background
2. primary shape (from the transformed series)
3. VWAP, when enabled and the series carries volume
4. EMA, then SMA, when enabled
5. horizontal levels
6. grid, unless hidden
7. axes and labels (time labels honour their own flag)
8. title, unless hidden
9. watermark

The price range is computed from the transformed series.  If the
transform produced nothing (for example Renko bricks on a quiet
series) the original candles frame the axes and the primary shape is
skipped.  An empty input series still yields a valid image with only
the background, title and watermark.
"""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from ..errors import RenderFailure, failure_result
from ..exporter import encode_image
from ..indicators import compute_overlays
from ..models import Candle, RenderOptions, RenderResult
from ..scaling import compute_range, is_point_style
from ..transforms import transform_series
from . import elements
from .shapes import draw_primary
from .surface import RasterSurface
from .theme import resolve_palette

logger = logging.getLogger(__name__)


class ChartRenderer:
    """Render one chart for a fixed set of options.

    Instances hold no per-render state, so one renderer may be reused for
    any number of series.
    """

    def __init__(self, options: RenderOptions) -> None:
        self.options = options
        self.palette = resolve_palette(options)

    def render(self, series: Sequence[Candle]) -> np.ndarray:
        """Draw ``series`` and return an ``(height, width, 4)`` RGBA array."""
        options = self.options
        palette = self.palette
        dims = options.dimensions
        if dims.chart_width <= 0 or dims.chart_height <= 0:
            raise RenderFailure(
                f"margins leave no chart area in a {options.width}x{options.height} canvas"
            )
        surface = RasterSurface(options.width, options.height)
        try:
            surface.fill_rect(0, 0, options.width, options.height, palette.background)
            if series:
                self._draw_chart(surface, list(series))
            else:
                logger.debug("Empty series; drawing frame only")
            if options.show_title and options.title:
                elements.draw_title(surface, options.title, palette)
            if options.watermark is not None:
                elements.draw_watermark(surface, options.watermark, palette)
            return surface.to_array()
        finally:
            surface.close()

    def _draw_chart(self, surface: RasterSurface, series: Sequence[Candle]) -> None:
        options = self.options
        palette = self.palette
        dims = options.dimensions
        chart_type = options.chart_type
        drawn = transform_series(
            chart_type,
            series,
            brick_size=options.renko_brick_size,
            line_count=options.line_break_count,
        )
        frame = drawn if drawn else series
        price_range = compute_range(frame, options.scale)
        point_style = is_point_style(chart_type)
        logger.debug(
            "Rendering %s: %d candles -> %d drawn, range [%s, %s]",
            chart_type.value,
            len(series),
            len(drawn),
            price_range.min,
            price_range.max,
        )

        draw_primary(chart_type, surface, drawn, price_range, dims, palette)

        overlays = compute_overlays(series, options)
        overlay_styles = {
            "vwap": (palette.vwap, elements.overlay_label("vwap")),
            "ema": (palette.ema, elements.overlay_label("ema", options.ema_period)),
            "sma": (palette.sma, elements.overlay_label("sma", options.sma_period)),
        }
        for name, points in overlays.items():
            color, label = overlay_styles[name]
            elements.draw_overlay(
                surface,
                name,
                points,
                series,
                price_range,
                dims,
                color,
                label,
                point_style=point_style,
            )

        if options.levels:
            elements.draw_levels(surface, options.levels, price_range, dims)
        if options.show_grid:
            elements.draw_grid(surface, dims, palette)
        elements.draw_axes(
            surface,
            frame,
            price_range,
            dims,
            palette,
            show_time_axis=options.show_time_axis,
            point_style=point_style,
        )


def render_chart(series: Sequence[Candle], options: RenderOptions) -> np.ndarray:
    """Render ``series`` with ``options``; convenience wrapper."""
    return ChartRenderer(options).render(series)


def render_to_result(series: Sequence[Candle], options: RenderOptions, fmt: str = "png") -> RenderResult:
    """Render and encode ``series``, reporting failures instead of raising.

    Any exception raised while drawing or encoding yields
    ``RenderResult(success=False)`` with ``error_type`` ``RenderFailure``.
    On success ``image`` holds the encoded bytes.
    """
    try:
        data = encode_image(render_chart(series, options), fmt)
    except RenderFailure as exc:
        logger.error("Render failed: %s", exc)
        return failure_result(exc)
    except Exception as exc:
        logger.exception("Unexpected failure while rendering")
        return failure_result(RenderFailure(f"{type(exc).__name__}: {exc}"))
    return RenderResult(success=True, image=data)


__all__ = ["ChartRenderer", "render_chart", "render_to_result"]
