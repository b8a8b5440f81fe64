"""PortLab — application entry point.

Boots the FastAPI internal server and provides the CLI entry point for
serve, sweep, and trend modes.
"""

import json
import logging
import pathlib

from fastapi import FastAPI

from portlab.api.routers import router

app = FastAPI(title="PortLab Internal API", version="0.1.0")
app.include_router(router)

logger = logging.getLogger("portlab")


@app.get("/health")
async def health():
    """Liveness probe."""
    return {"status": "ok"}


def load_series_file(path: str):
    """Read a ``[{date, close, volume?}, ...]`` JSON file into a ``PriceSeries``."""
    from portlab.data.models import parse_series

    records = json.loads(pathlib.Path(path).read_text(encoding="utf-8"))
    if not isinstance(records, list):
        raise ValueError(f"{path}: expected a JSON array of price records")
    return parse_series(records)


# ── CLI ──────────────────────────────────────────────────────────────────


def _run_cli() -> None:
    """Parse CLI arguments and dispatch to the appropriate mode."""
    import argparse

    from portlab.config import load_config

    parser = argparse.ArgumentParser(description="PortLab portfolio analyser")
    parser.add_argument(
        "--mode",
        choices=["serve", "sweep", "trend"],
        default="serve",
        help="Run mode (default: serve)",
    )
    parser.add_argument("--series1", help="JSON price file for asset 1")
    parser.add_argument("--series2", help="JSON price file for asset 2")
    parser.add_argument("--symbol1", default="", help="Asset-1 symbol")
    parser.add_argument("--symbol2", default="", help="Asset-2 symbol")
    parser.add_argument("--as-of", help="Horizon end date (YYYY-MM-DD)")
    parser.add_argument(
        "--above", type=float, default=100.0,
        help="Asset-1 weight above the MA (trend mode)",
    )
    parser.add_argument(
        "--below", type=float, default=0.0,
        help="Asset-1 weight below the MA (trend mode)",
    )
    parser.add_argument(
        "--workers", type=int, default=None,
        help="Thread pool size for the sweep",
    )
    args = parser.parse_args()

    config = load_config()
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if args.mode == "serve":
        _run_server(config)
        return

    if not args.series1 or not args.series2:
        parser.error("--series1 and --series2 are required for this mode")

    series1 = load_series_file(args.series1)
    series2 = load_series_file(args.series2)

    if args.mode == "sweep":
        result = _run_sweep(config, series1, series2, args)
    else:
        result = _run_trend(config, series1, series2, args)
    print(json.dumps(result, indent=2))


def _run_server(config) -> None:
    """Start uvicorn with a fresh series cache."""
    import uvicorn

    from portlab.api.routers import configure_routers
    from portlab.data.cache import SeriesCache

    configure_routers(
        cache=SeriesCache(ttl_seconds=config.cache_ttl_seconds),
        config=config,
    )
    logger.info("API available at http://localhost:%d", config.health_port)
    uvicorn.run(app, host="0.0.0.0", port=config.health_port, log_level="info")


def _run_sweep(config, series1, series2, args) -> list[dict]:
    """Fixed-weight grid over the configured weights and horizons."""
    from portlab.backtest.sweep import sweep_fixed
    from portlab.backtest.yields import DIVIDEND_YIELDS

    return sweep_fixed(
        series1,
        series2,
        weights=config.weights,
        horizons=config.horizons,
        as_of=args.as_of,
        rebalance_threshold=config.rebalance_threshold,
        risk_free_rate=config.risk_free_rate,
        symbols=(args.symbol1, args.symbol2),
        yield_table=DIVIDEND_YIELDS if config.apply_dividend_yields else None,
        max_workers=args.workers,
    )


def _run_trend(config, series1, series2, args) -> dict:
    """Trend-following report switching on asset 1's moving average."""
    from portlab.backtest.sweep import trend_report
    from portlab.strategy.indicators import is_above_ma, moving_average

    ma = moving_average(series1, config.ma_period)
    report = trend_report(
        series1,
        series2,
        ma,
        above_weight=args.above,
        below_weight=args.below,
        horizons=config.horizons,
        as_of=args.as_of,
        cooldown_days=config.cooldown_days,
        rebalance_threshold=config.rebalance_threshold,
        risk_free_rate=config.risk_free_rate,
    )
    logger.info(
        "Trend report: %d horizon(s), currently %s the %d-day MA",
        len(report), "above" if is_above_ma(ma) else "below", config.ma_period,
    )
    return {"isAboveMA": is_above_ma(ma), "results": report}


if __name__ == "__main__":
    _run_cli()
