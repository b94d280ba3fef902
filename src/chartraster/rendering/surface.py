"""Pixel-addressed raster surface backed by matplotlib's Agg renderer.

The surface exposes the handful of 2D primitives the chart pipeline
needs (rectangles, paths, gradient-filled polygons and aligned text) in
plain pixel coordinates: the origin is the top-left corner, ``y`` grows
downwards and one unit is one pixel.  Primitives are painted in call
order, later calls over earlier ones.

Internally each surface owns a standalone :class:`matplotlib.figure.Figure`
(no pyplot state), sized so that the axes data coordinates coincide with
Agg's pixel grid.  Sizes, line widths and font sizes are given in pixels
and converted to points here.
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

import numpy as np
from matplotlib import colors as mcolors
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure
from matplotlib.lines import Line2D
from matplotlib.patches import Polygon, Rectangle

Point = Tuple[float, float]

DPI = 100
# Agg truncates the figure size to whole pixels; the extra fraction keeps
# float error from dropping the last row or column.
_SIZE_PAD = 0.25
_GRADIENT_STEPS = 256


def _points(px: float) -> float:
    return px * 72.0 / DPI


def to_rgba(color: str, alpha: Optional[float] = None) -> Tuple[float, float, float, float]:
    """Parse a CSS hex or named colour, optionally overriding its alpha."""
    return mcolors.to_rgba(color, alpha=alpha)


def with_alpha(color: str, alpha: float) -> Tuple[float, float, float, float]:
    """Return ``color`` with its alpha multiplied by ``alpha``."""
    r, g, b, a = mcolors.to_rgba(color)
    return (r, g, b, a * alpha)


class RasterSurface:
    """An RGBA drawing surface of ``width`` x ``height`` pixels."""

    def __init__(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"surface size must be positive, got {width}x{height}")
        self.width = int(width)
        self.height = int(height)
        self._figure = Figure(
            figsize=((self.width + _SIZE_PAD) / DPI, (self.height + _SIZE_PAD) / DPI),
            dpi=DPI,
        )
        self._figure.patch.set_alpha(0.0)
        self._canvas = FigureCanvasAgg(self._figure)
        self._ax = self._figure.add_axes((0.0, 0.0, 1.0, 1.0))
        self._ax.set_axis_off()
        self._reset_limits()
        self._z = 0

    def _reset_limits(self) -> None:
        # y is inverted so that data y equals the Agg pixel row
        self._ax.set_xlim(0.0, self.width + _SIZE_PAD)
        self._ax.set_ylim(self.height, -_SIZE_PAD)

    def _next_z(self) -> int:
        self._z += 1
        return self._z

    def fill_rect(self, x: float, y: float, width: float, height: float, color: str, alpha: float = 1.0) -> None:
        """Fill an axis-aligned rectangle with its top-left corner at ``(x, y)``."""
        self._ax.add_patch(
            Rectangle(
                (x, y),
                width,
                height,
                facecolor=with_alpha(color, alpha),
                edgecolor="none",
                linewidth=0,
                zorder=self._next_z(),
            )
        )

    def stroke_rect(self, x: float, y: float, width: float, height: float, color: str, line_width: float = 1.0) -> None:
        """Outline a rectangle; the stroke is centred on its edges."""
        self._ax.add_patch(
            Rectangle(
                (x, y),
                width,
                height,
                facecolor="none",
                edgecolor=to_rgba(color),
                linewidth=_points(line_width),
                joinstyle="miter",
                zorder=self._next_z(),
            )
        )

    def stroke_path(
        self,
        points: Sequence[Point],
        color: str,
        line_width: float = 1.0,
        dash: Optional[Sequence[float]] = None,
        alpha: float = 1.0,
    ) -> None:
        """Stroke an open polyline through ``points``.

        Args:
            points: Vertices in pixel coordinates.
            color: Stroke colour.
            line_width: Stroke width in pixels.
            dash: Optional on/off dash lengths in pixels.
            alpha: Extra opacity multiplier.
        """
        if len(points) < 2:
            return
        xs = [p[0] for p in points]
        ys = [p[1] for p in points]
        linestyle = "-"
        if dash:
            # matplotlib scales dash lengths by the line width
            linestyle = (0, tuple(d / line_width for d in dash))
        self._ax.add_line(
            Line2D(
                xs,
                ys,
                color=with_alpha(color, alpha),
                linewidth=_points(line_width),
                linestyle=linestyle,
                solid_capstyle="butt",
                dash_capstyle="butt",
                solid_joinstyle="miter",
                zorder=self._next_z(),
            )
        )

    def stroke_line(self, x0: float, y0: float, x1: float, y1: float, color: str, line_width: float = 1.0,
                    dash: Optional[Sequence[float]] = None) -> None:
        self.stroke_path([(x0, y0), (x1, y1)], color, line_width=line_width, dash=dash)

    def fill_gradient_polygon(
        self,
        points: Sequence[Point],
        top: float,
        bottom: float,
        top_color,
        bottom_color,
    ) -> None:
        """Fill a polygon with a vertical linear gradient.

        The gradient runs from ``top_color`` at pixel row ``top`` to
        ``bottom_color`` at pixel row ``bottom``; colours may be colour
        strings or RGBA tuples.
        """
        if len(points) < 3 or bottom <= top:
            return
        start = np.array(mcolors.to_rgba(top_color))
        end = np.array(mcolors.to_rgba(bottom_color))
        steps = np.linspace(0.0, 1.0, _GRADIENT_STEPS)[:, None]
        gradient = (start + (end - start) * steps).reshape(_GRADIENT_STEPS, 1, 4)
        xs = [p[0] for p in points]
        z = self._next_z()
        clip = Polygon(list(points), closed=True, facecolor="none", edgecolor="none", linewidth=0)
        self._ax.add_patch(clip)
        image = self._ax.imshow(
            gradient,
            extent=(min(xs), max(xs), bottom, top),
            origin="upper",
            aspect="auto",
            interpolation="bilinear",
            zorder=z,
        )
        image.set_clip_path(clip)
        self._reset_limits()

    def draw_text(
        self,
        x: float,
        y: float,
        text: str,
        color: str,
        size: float = 12,
        align: str = "left",
        bold: bool = False,
        alpha: float = 1.0,
        baseline: str = "baseline",
    ) -> None:
        """Draw ``text`` anchored at ``(x, y)``.

        ``align`` is ``left``, ``center`` or ``right``; ``baseline`` is a
        matplotlib vertical alignment (``baseline``, ``top``, ``center``
        or ``bottom``).  ``size`` is the font size in pixels.
        """
        if not text:
            return
        self._ax.text(
            x,
            y,
            text,
            color=with_alpha(color, alpha),
            fontsize=_points(size),
            fontweight="bold" if bold else "normal",
            ha=align,
            va=baseline,
            clip_on=False,
            zorder=self._next_z(),
        )

    def to_array(self) -> np.ndarray:
        """Rasterise everything drawn so far into an ``(H, W, 4)`` uint8 array."""
        self._canvas.draw()
        buffer = np.asarray(self._canvas.buffer_rgba())
        return np.array(buffer[: self.height, : self.width], dtype=np.uint8, copy=True)

    def close(self) -> None:
        self._figure.clear()

    def __enter__(self) -> "RasterSurface":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


__all__ = ["RasterSurface", "to_rgba", "with_alpha", "DPI"]
