"""Command-line interface for ChartRaster.

This module uses the :mod:`click` library to expose commands for
rendering a single chart, composing comparison charts, inspecting
fetched data and rendering a batch of charts from a JSON file.

Data comes from the exchange named by ``--exchange`` (default from the
``CHARTRASTER_EXCHANGE`` env var, else ``binance``) or, with
``--data``, from a local JSON/CSV file.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import click
from pydantic import ValidationError

from .config import (
    DEFAULT_EXCHANGE,
    DEFAULT_LIMIT,
    DEFAULT_OUTPUT,
    DEFAULT_SYMBOL,
    DEFAULT_TIMEFRAME,
    ENV_EXCHANGE,
    ENV_LOG_LEVEL,
    GRID_GAP,
    PROJECT_NAME,
    SIDE_BY_SIDE_GAP,
    SUPPORTED_CHART_TYPES,
    SUPPORTED_THEMES,
    WATERMARK_POSITIONS,
)
from .errors import ChartRasterError, ConfigurationError
from .models import ScaleConfig, WatermarkConfig
from .providers import DataProvider, FileDataProvider, build_provider
from .service import ComparisonConfig, ComparisonService, generate_chart, generate_multiple_charts
from .settings import load_chart_config, parse_csv_list, parse_custom_colors, parse_levels


def _default_exchange() -> str:
    return os.getenv(ENV_EXCHANGE) or DEFAULT_EXCHANGE


def _build_provider(exchange: str, data_file: Optional[str] = None) -> DataProvider:
    """Construct the data provider for the CLI.

    A ``data_file`` takes precedence over the exchange.  This function is
    factored out so tests can monkeypatch it easily.
    """
    if data_file:
        return FileDataProvider(data_file)
    return build_provider(exchange)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=lambda: os.getenv(ENV_LOG_LEVEL, "WARNING"),
    show_default="WARNING or $CHARTRASTER_LOG_LEVEL",
    help="Logging verbosity.",
)
def cli(log_level: str) -> None:
    """ChartRaster command-line interface."""
    _configure_logging(log_level)


def _scale_config(
    scale_x: Optional[float],
    scale_y: Optional[float],
    auto_scale: bool,
    min_scale: Optional[float],
    max_scale: Optional[float],
) -> Optional[ScaleConfig]:
    if scale_x is None and scale_y is None and not auto_scale and min_scale is None and max_scale is None:
        return None
    return ScaleConfig(
        x=scale_x,
        y=scale_y,
        auto_scale=auto_scale,
        min_scale=min_scale,
        max_scale=max_scale,
    )


def _watermark_config(
    text: Optional[str],
    position: Optional[str],
    color: Optional[str],
    size: Optional[float],
    opacity: Optional[float],
) -> Optional[WatermarkConfig]:
    if not text:
        return None
    fields: Dict[str, Any] = {"text": text}
    if position:
        fields["position"] = position
    if color:
        fields["color"] = color
    if size is not None:
        fields["font_size"] = size
    if opacity is not None:
        fields["opacity"] = opacity
    return WatermarkConfig(**fields)


@cli.command()
@click.option("--symbol", "-s", type=str, default=DEFAULT_SYMBOL, show_default=True, help="Trading symbol in BASE/QUOTE form.")
@click.option("--timeframe", "-t", type=str, default=DEFAULT_TIMEFRAME, show_default=True, help="Candle timeframe (1m, 5m, 15m, 30m, 1h, 4h, 1d, 1w).")
@click.option("--exchange", "-e", type=str, default=None, help="Exchange to fetch from (default: $CHARTRASTER_EXCHANGE or binance).")
@click.option("--output", "-o", "output", type=str, default=DEFAULT_OUTPUT, show_default=True, help="Output image path (.png, .jpg, .jpeg, .svg).")
@click.option("--width", "-w", type=int, default=None, help="Image width in pixels (default: 1200).")
@click.option("--height", "-h", type=int, default=None, help="Image height in pixels (default: 800).")
@click.option("--theme", type=click.Choice(SUPPORTED_THEMES), default=None, help="Colour theme (default: dark).")
@click.option("--chart-type", "--type", "chart_type", type=click.Choice(SUPPORTED_CHART_TYPES), default=None, help="Chart type (default: candlestick).")
@click.option("--limit", "-l", type=int, default=DEFAULT_LIMIT, show_default=True, help="Number of candles to fetch.")
@click.option("--data", "data_file", type=click.Path(exists=True, dir_okay=False), default=None, help="Read candles from a JSON or CSV file instead of an exchange.")
@click.option("--scale-x", type=float, default=None, help="Centered multiplier applied to the price range.")
@click.option("--scale-y", type=float, default=None, help="Second centered multiplier applied to the price range.")
@click.option("--auto-scale", is_flag=True, default=False, help="Pad the price range by 5% on both sides.")
@click.option("--min-scale", type=float, default=None, help="Lowest price shown.")
@click.option("--max-scale", type=float, default=None, help="Highest price shown.")
@click.option("--custom-colors", type=str, default=None, help="Bar colours, e.g. bullish=#00ff00,bearish=#ff0000,wick=#888,border=#fff.")
@click.option("--levels", type=str, default=None, help="Levels as value:color:style:label, comma separated.")
@click.option("--title", type=str, default=None, help="Chart title (default: '<symbol> <timeframe>').")
@click.option("--watermark", type=str, default=None, help="Watermark text.")
@click.option("--watermark-position", type=click.Choice(WATERMARK_POSITIONS), default=None, help="Watermark position (default: bottom-right).")
@click.option("--watermark-color", type=str, default=None, help="Watermark colour.")
@click.option("--watermark-size", type=float, default=None, help="Watermark font size in pixels.")
@click.option("--watermark-opacity", type=float, default=None, help="Watermark opacity (0-1).")
@click.option("--hide-title", is_flag=True, default=False, help="Do not draw the title.")
@click.option("--hide-time-axis", is_flag=True, default=False, help="Do not draw time labels.")
@click.option("--hide-grid", is_flag=True, default=False, help="Do not draw the grid.")
@click.option("--vwap", is_flag=True, default=False, help="Overlay VWAP (requires volume).")
@click.option("--ema", is_flag=True, default=False, help="Overlay an EMA.")
@click.option("--ema-period", type=int, default=None, help="EMA period (default: 20).")
@click.option("--sma", is_flag=True, default=False, help="Overlay an SMA.")
@click.option("--sma-period", type=int, default=None, help="SMA period (default: 20).")
@click.option("--brick-size", type=float, default=None, help="Renko brick size as a fraction of price (default: 0.02).")
@click.option("--line-break-count", type=int, default=None, help="Lines a line-break reversal must exceed (default: 3).")
@click.option("--background-color", type=str, default=None, help="Background colour override.")
@click.option("--text-color", type=str, default=None, help="Text colour override.")
def render(
    symbol: str,
    timeframe: str,
    exchange: Optional[str],
    output: str,
    width: Optional[int],
    height: Optional[int],
    theme: Optional[str],
    chart_type: Optional[str],
    limit: int,
    data_file: Optional[str],
    scale_x: Optional[float],
    scale_y: Optional[float],
    auto_scale: bool,
    min_scale: Optional[float],
    max_scale: Optional[float],
    custom_colors: Optional[str],
    levels: Optional[str],
    title: Optional[str],
    watermark: Optional[str],
    watermark_position: Optional[str],
    watermark_color: Optional[str],
    watermark_size: Optional[float],
    watermark_opacity: Optional[float],
    hide_title: bool,
    hide_time_axis: bool,
    hide_grid: bool,
    vwap: bool,
    ema: bool,
    ema_period: Optional[int],
    sma: bool,
    sma_period: Optional[int],
    brick_size: Optional[float],
    line_break_count: Optional[int],
    background_color: Optional[str],
    text_color: Optional[str],
) -> None:
    """Render a single chart image."""
    exchange = exchange or _default_exchange()
    try:
        config = load_chart_config(
            symbol=symbol,
            timeframe=timeframe,
            exchange=exchange,
            output_path=output,
            width=width,
            height=height,
            theme=theme,
            chart_type=chart_type,
            limit=limit,
            custom_colors=parse_custom_colors(custom_colors) if custom_colors else None,
            levels=parse_levels(levels) if levels else None,
            title=title,
            show_title=not hide_title,
            show_time_axis=not hide_time_axis,
            show_grid=not hide_grid,
            show_vwap=vwap,
            show_ema=ema,
            ema_period=ema_period,
            show_sma=sma,
            sma_period=sma_period,
            renko_brick_size=brick_size,
            line_break_count=line_break_count,
            background_color=background_color,
            text_color=text_color,
            watermark=_watermark_config(
                watermark, watermark_position, watermark_color, watermark_size, watermark_opacity
            ),
            scale=_scale_config(scale_x, scale_y, auto_scale, min_scale, max_scale),
        )
        provider = _build_provider(exchange, data_file)
    except ConfigurationError as exc:
        raise click.UsageError(str(exc))
    except ValidationError as exc:
        raise click.UsageError(str(exc))
    result = generate_chart(config, provider=provider)
    if not result.success:
        raise click.ClickException(f"{config.symbol} {config.timeframe}: {result.error}")
    click.echo(f"{config.symbol} {config.timeframe}: WROTE {result.output_path}")


@cli.command()
@click.option("--symbols", type=str, required=True, help="Comma-separated symbols to compare.")
@click.option("--timeframe", "-t", type=str, default=DEFAULT_TIMEFRAME, show_default=True, help="Timeframe used for every symbol.")
@click.option("--timeframes", type=str, default=None, help="Comma-separated timeframes; compares the first symbol across them.")
@click.option("--exchange", "-e", type=str, default=None, help="Exchange to fetch from (default: $CHARTRASTER_EXCHANGE or binance).")
@click.option("--layout", "layout_type", type=click.Choice(["side-by-side", "grid"]), default="side-by-side", show_default=True, help="Comparison layout.")
@click.option("--columns", type=int, default=None, help="Grid columns (maximum 2).")
@click.option("--rows", type=int, default=None, help="Grid rows (derived from the chart count when omitted).")
@click.option("--gap", type=int, default=None, help="Gap between charts in pixels (default: 20 side-by-side, 15 grid).")
@click.option("--output", "-o", "output", type=str, default="comparison.png", show_default=True, help="Output image path.")
@click.option("--width", "-w", type=int, default=None, help="Canvas width (default: 1600).")
@click.option("--height", "-h", type=int, default=None, help="Canvas height (default: 800).")
@click.option("--theme", type=click.Choice(SUPPORTED_THEMES), default="dark", show_default=True)
@click.option("--chart-type", "--type", "chart_type", type=click.Choice(SUPPORTED_CHART_TYPES), default="candlestick", show_default=True)
@click.option("--limit", "-l", type=int, default=DEFAULT_LIMIT, show_default=True, help="Number of candles per chart.")
@click.option("--data", "data_file", type=click.Path(exists=True, dir_okay=False), default=None, help="Read candles for every cell from a JSON or CSV file.")
@click.option("--vwap", is_flag=True, default=False)
@click.option("--ema", is_flag=True, default=False)
@click.option("--ema-period", type=int, default=None)
@click.option("--sma", is_flag=True, default=False)
@click.option("--sma-period", type=int, default=None)
@click.option("--workers", type=int, default=1, show_default=True, help="Render cells on this many threads.")
def compare(
    symbols: str,
    timeframe: str,
    timeframes: Optional[str],
    exchange: Optional[str],
    layout_type: str,
    columns: Optional[int],
    rows: Optional[int],
    gap: Optional[int],
    output: str,
    width: Optional[int],
    height: Optional[int],
    theme: str,
    chart_type: str,
    limit: int,
    data_file: Optional[str],
    vwap: bool,
    ema: bool,
    ema_period: Optional[int],
    sma: bool,
    sma_period: Optional[int],
    workers: int,
) -> None:
    """Render several charts into one comparison image."""
    symbol_list = [s.upper() for s in parse_csv_list(symbols)]
    if not symbol_list:
        raise click.UsageError("--symbols must name at least one symbol")
    timeframe_list = parse_csv_list(timeframes)
    if timeframe_list and len(symbol_list) == 1:
        # Compare one symbol across every requested timeframe
        symbol_list = symbol_list * len(timeframe_list)
    exchange = exchange or _default_exchange()
    if gap is None:
        gap = GRID_GAP if layout_type == "grid" else SIDE_BY_SIDE_GAP
    fields: Dict[str, Any] = {
        "symbols": symbol_list,
        "timeframe": timeframe,
        "timeframes": timeframe_list,
        "exchange": exchange,
        "layout": {"type": layout_type, "columns": columns, "rows": rows, "gap": gap},
        "theme": theme,
        "chart_type": chart_type,
        "show_vwap": vwap,
        "show_ema": ema,
        "ema_period": ema_period,
        "show_sma": sma,
        "sma_period": sma_period,
        "limit": limit,
        "output_path": output,
        "max_workers": workers,
        "width": width,
        "height": height,
    }
    try:
        config = ComparisonConfig(**{k: v for k, v in fields.items() if v is not None})
        provider = _build_provider(exchange, data_file)
    except ValidationError as exc:
        raise click.UsageError(str(exc))
    except ConfigurationError as exc:
        raise click.UsageError(str(exc))
    result = ComparisonService(config, provider=provider).generate_comparison()
    if not result.success:
        raise click.ClickException(result.error or "comparison failed")
    click.echo(f"WROTE {result.output_path}")


@cli.command()
@click.option("--symbol", "-s", type=str, default=DEFAULT_SYMBOL, show_default=True)
@click.option("--timeframe", "-t", type=str, default=DEFAULT_TIMEFRAME, show_default=True)
@click.option("--exchange", "-e", type=str, default=None)
@click.option("--limit", "-l", type=int, default=DEFAULT_LIMIT, show_default=True)
@click.option("--data", "data_file", type=click.Path(exists=True, dir_okay=False), default=None)
def fetch(symbol: str, timeframe: str, exchange: Optional[str], limit: int, data_file: Optional[str]) -> None:
    """Fetch candles and print a short summary."""
    exchange = exchange or _default_exchange()
    try:
        provider = _build_provider(exchange, data_file)
    except ConfigurationError as exc:
        raise click.UsageError(str(exc))
    try:
        candles = provider.fetch_ohlcv(symbol.upper(), timeframe, limit)
    except ChartRasterError as exc:
        raise click.ClickException(str(exc))
    click.echo(f"{symbol.upper()} {timeframe}: {len(candles)} candles from {provider.name}")
    if candles:
        last = candles[-1]
        click.echo(
            f"last: time={last.time} open={last.open} high={last.high} "
            f"low={last.low} close={last.close} volume={last.volume}"
        )


@cli.command()
@click.argument("config_file", type=click.Path(exists=True, dir_okay=False))
def batch(config_file: str) -> None:
    """Render every chart listed in a JSON file.

    The file holds a list of chart configurations (or an object with a
    ``charts`` list) using the same field names as the render options,
    e.g. ``{"symbol": "ETH/USDT", "timeframe": "4h", "output_path": "eth.png"}``.
    Failures are reported per chart; the remaining charts still render.
    """
    try:
        payload = json.loads(Path(config_file).read_text(encoding="utf-8"))
    except ValueError as exc:
        raise click.UsageError(f"Could not parse {config_file}: {exc}")
    entries: List[Dict[str, Any]] = payload.get("charts", []) if isinstance(payload, dict) else payload
    if not isinstance(entries, list):
        raise click.UsageError(f"{config_file} must contain a list of chart configurations")
    configs = []
    invalid = 0
    for index, entry in enumerate(entries):
        try:
            if not isinstance(entry, dict):
                raise ConfigurationError("chart configuration must be a JSON object")
            configs.append(load_chart_config(entry))
        except ConfigurationError as exc:
            invalid += 1
            click.echo(f"#{index}: INVALID {exc}", err=True)
    results = generate_multiple_charts(configs, provider_factory=lambda name: _build_provider(name))
    failed = invalid
    for config, result in zip(configs, results):
        if result.success:
            click.echo(f"{config.symbol} {config.timeframe}: WROTE {result.output_path}")
        else:
            failed += 1
            click.echo(f"{config.symbol} {config.timeframe}: FAILED {result.error}", err=True)
    click.echo(f"{PROJECT_NAME}: {len(entries) - failed} succeeded, {failed} failed")
    if failed:
        raise SystemExit(1)


__all__ = ["cli"]
