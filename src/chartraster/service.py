"""Chart generation services.

These functions tie the pieces together: fetch candles from a provider,
render them, encode the raster and write it.  They never raise for
per-chart problems; every outcome is reported as a
:class:`~chartraster.models.RenderResult` so that batch and comparison
callers can continue with the remaining items.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field, ValidationError

from .config import (
    COMPARISON_HEIGHT,
    COMPARISON_WIDTH,
    DEFAULT_CHART_TYPE,
    DEFAULT_EMA_PERIOD,
    DEFAULT_EXCHANGE,
    DEFAULT_LIMIT,
    DEFAULT_SMA_PERIOD,
    DEFAULT_THEME,
    DEFAULT_TIMEFRAME,
    GRID_GAP,
    REFERENCE_HEIGHT,
    REFERENCE_WIDTH,
    SIDE_BY_SIDE_GAP,
)
from .errors import ChartRasterError, ConfigurationError, DataFetchError, RenderFailure, failure_result
from .exporter import encode_image, format_from_path, to_data_url, write_image
from .models import BarColors, Candle, RenderResult
from .providers import DataProvider, build_provider
from .rendering.comparison import CellJob, ComparisonLayout, ComparisonRenderer, validate_layout
from .rendering.pipeline import render_to_result
from .rendering.theme import THEMES
from .settings import ChartConfig, load_chart_config

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[str], DataProvider]


def generate_chart(
    config: ChartConfig,
    provider: Optional[DataProvider] = None,
    candles: Optional[Sequence[Candle]] = None,
    write: bool = True,
    include_data_url: bool = False,
) -> RenderResult:
    """Render one chart described by ``config``.

    Args:
        config: Validated chart configuration.
        provider: Source of candles; defaults to the provider for
            ``config.exchange``.  Ignored when ``candles`` is given.
        candles: Pre-fetched candles to render instead of fetching.
        write: Write the encoded image to ``config.output_path``.
        include_data_url: Attach a ``data:`` URL of the image.

    Returns:
        A successful result with the encoded image, or a failure result
        describing the error.
    """
    try:
        if candles is None:
            provider = provider or build_provider(config.exchange)
            candles = provider.fetch_ohlcv(config.symbol, config.timeframe, config.limit)
        fmt = format_from_path(config.output_path)
    except ChartRasterError as exc:
        logger.error("Chart %s failed: %s", config, exc)
        return failure_result(exc)
    except Exception as exc:
        logger.exception("Unexpected failure fetching %s", config)
        return failure_result(DataFetchError(f"{type(exc).__name__}: {exc}"))
    result = render_to_result(candles, config.to_render_options(), fmt)
    if not result.success:
        logger.error("Chart %s failed: %s", config, result.error)
        return result
    if write:
        try:
            write_image(result.image, config.output_path)
        except OSError as exc:
            logger.error("Could not write %s: %s", config.output_path, exc)
            return failure_result(RenderFailure(f"Could not write {config.output_path}: {exc}"))
    logger.info("Rendered %s (%d candles)", config, len(candles))
    return result.model_copy(
        update={
            "output_path": config.output_path if write else None,
            "data_url": to_data_url(result.image, fmt) if include_data_url else None,
        }
    )


def generate_multiple_charts(
    configs: Sequence[ChartConfig],
    provider_factory: ProviderFactory = build_provider,
) -> List[RenderResult]:
    """Render every config in order, continuing past failures.

    Providers are built once per exchange and shared between configs.
    """
    providers = {}
    results: List[RenderResult] = []
    for config in configs:
        try:
            provider = providers.get(config.exchange)
            if provider is None:
                provider = providers[config.exchange] = provider_factory(config.exchange)
        except ChartRasterError as exc:
            results.append(failure_result(exc, output_path=config.output_path))
            continue
        results.append(generate_chart(config, provider=provider))
    return results


class ComparisonConfig(BaseModel):
    """Configuration for a comparison image.

    When ``timeframes`` is non-empty the cells show the first symbol at
    each timeframe, capped at ``min(len(symbols), len(timeframes))``
    cells; otherwise each cell shows one symbol at ``timeframe``.
    """

    symbols: List[str] = Field(min_length=1)
    timeframe: str = DEFAULT_TIMEFRAME
    timeframes: List[str] = Field(default_factory=list)
    exchange: str = DEFAULT_EXCHANGE
    layout: ComparisonLayout = Field(default_factory=ComparisonLayout)
    width: int = Field(default=COMPARISON_WIDTH, ge=1)
    height: int = Field(default=COMPARISON_HEIGHT, ge=1)
    theme: str = DEFAULT_THEME
    chart_type: str = DEFAULT_CHART_TYPE
    show_vwap: bool = False
    show_ema: bool = False
    ema_period: int = Field(default=DEFAULT_EMA_PERIOD, ge=1)
    show_sma: bool = False
    sma_period: int = Field(default=DEFAULT_SMA_PERIOD, ge=1)
    custom_colors: BarColors = Field(default_factory=BarColors)
    background_color: Optional[str] = None
    text_color: Optional[str] = None
    limit: int = Field(default=DEFAULT_LIMIT, ge=1)
    output_path: Optional[str] = None
    max_workers: int = Field(default=1, ge=1)


class ComparisonService:
    """Render several charts side by side or in a grid."""

    def __init__(self, config: ComparisonConfig, provider: Optional[DataProvider] = None) -> None:
        self.config = config
        self._provider = provider

    @property
    def provider(self) -> DataProvider:
        if self._provider is None:
            self._provider = build_provider(self.config.exchange)
        return self._provider

    def cell_targets(self) -> List[Tuple[str, str]]:
        """``(symbol, timeframe)`` for every cell, in layout order."""
        config = self.config
        if config.timeframes:
            count = min(len(config.symbols), len(config.timeframes))
            return [(config.symbols[0], config.timeframes[i]) for i in range(count)]
        return [(symbol, config.timeframe) for symbol in config.symbols]

    def _cell_config(self, symbol: str, timeframe: str) -> ChartConfig:
        config = self.config
        return load_chart_config(
            symbol=symbol,
            timeframe=timeframe,
            exchange=config.exchange,
            width=REFERENCE_WIDTH,
            height=REFERENCE_HEIGHT,
            theme=config.theme,
            chart_type=config.chart_type,
            custom_colors=config.custom_colors,
            show_vwap=config.show_vwap,
            show_ema=config.show_ema,
            ema_period=config.ema_period,
            show_sma=config.show_sma,
            sma_period=config.sma_period,
            background_color=config.background_color,
            text_color=config.text_color,
            limit=config.limit,
        )

    def _build_jobs(self, targets: Sequence[Tuple[str, str]], provider: DataProvider) -> List[CellJob]:
        jobs: List[CellJob] = []
        for symbol, timeframe in targets:
            label = f"{symbol} {timeframe}"
            try:
                cell_config = self._cell_config(symbol, timeframe)
                candles = provider.fetch_ohlcv(symbol, timeframe, self.config.limit)
            except ChartRasterError as exc:
                logger.warning("Failed to generate chart for %s: %s", label, exc)
                continue
            jobs.append(CellJob(label=label, series=candles, options=cell_config.to_render_options()))
        return jobs

    def generate_comparison(self) -> RenderResult:
        """Fetch, render and composite every cell.

        Cells whose data cannot be fetched or rendered are skipped with
        a warning.  Grid limits are checked before anything is fetched.
        """
        config = self.config
        try:
            targets = self.cell_targets()
            validate_layout(config.layout, len(targets), [symbol for symbol, _ in targets])
            provider = self.provider
            jobs = self._build_jobs(targets, provider)
            if not jobs:
                raise RenderFailure("No charts could be rendered for the comparison")
            background = config.background_color or THEMES.get(config.theme, THEMES["dark"]).background
            renderer = ComparisonRenderer(
                config.width,
                config.height,
                layout=config.layout,
                background=background,
                max_workers=config.max_workers,
            )
            composition = renderer.compose(jobs)
            if not composition.rendered:
                raise RenderFailure(
                    "No charts could be rendered for the comparison: "
                    + "; ".join(f"{label}: {err}" for label, err in composition.failed)
                )
            fmt = format_from_path(config.output_path) if config.output_path else "png"
            data = encode_image(composition.image, fmt)
            if config.output_path:
                write_image(data, config.output_path)
        except ChartRasterError as exc:
            logger.error("Comparison failed: %s", exc)
            return failure_result(exc, output_path=None)
        except Exception as exc:
            logger.exception("Unexpected comparison failure")
            return failure_result(RenderFailure(f"{type(exc).__name__}: {exc}"))
        logger.info("Rendered comparison of %s", ", ".join(composition.rendered))
        return RenderResult(success=True, output_path=config.output_path, image=data)

    @staticmethod
    def _run(provider: Optional[DataProvider] = None, **fields) -> RenderResult:
        try:
            config = ComparisonConfig(**fields)
        except ValidationError as exc:
            return failure_result(ConfigurationError(str(exc)))
        return ComparisonService(config, provider=provider).generate_comparison()

    @staticmethod
    def side_by_side(
        symbols: Sequence[str],
        output_path: Optional[str] = None,
        provider: Optional[DataProvider] = None,
        **overrides,
    ) -> RenderResult:
        """One row of charts, one per symbol, 20px apart."""
        fields = dict(
            symbols=list(symbols),
            output_path=output_path,
            layout=ComparisonLayout(type="side-by-side", gap=SIDE_BY_SIDE_GAP),
        )
        fields.update(overrides)
        return ComparisonService._run(provider, **fields)

    @staticmethod
    def grid(
        symbols: Sequence[str],
        columns: int,
        output_path: Optional[str] = None,
        provider: Optional[DataProvider] = None,
        **overrides,
    ) -> RenderResult:
        """Grid of at most two charts in at most two columns, 15px apart."""
        symbols = list(symbols)
        try:
            layout = ComparisonLayout(type="grid", columns=columns, gap=GRID_GAP)
            validate_layout(layout, len(symbols), symbols)
        except ValidationError as exc:
            return failure_result(ConfigurationError(str(exc)))
        except ChartRasterError as exc:
            return failure_result(exc)
        fields = dict(symbols=symbols, output_path=output_path, layout=layout)
        fields.update(overrides)
        return ComparisonService._run(provider, **fields)

    @staticmethod
    def timeframe_comparison(
        symbol: str,
        timeframes: Sequence[str],
        output_path: Optional[str] = None,
        provider: Optional[DataProvider] = None,
        **overrides,
    ) -> RenderResult:
        """One symbol at several timeframes, side by side.

        The symbol is repeated once per timeframe so that every timeframe
        gets a cell.  Passing ``[symbol]`` straight to
        :class:`ComparisonConfig` would cap the cells at
        ``min(len(symbols), len(timeframes))``, which is a single cell;
        this helper deliberately departs from that cap.
        """
        timeframes = list(timeframes)
        fields = dict(
            symbols=[symbol] * max(1, len(timeframes)),
            timeframes=timeframes,
            output_path=output_path,
            layout=ComparisonLayout(type="side-by-side", gap=SIDE_BY_SIDE_GAP),
        )
        fields.update(overrides)
        return ComparisonService._run(provider, **fields)


__all__ = [
    "generate_chart",
    "generate_multiple_charts",
    "ComparisonConfig",
    "ComparisonService",
]
