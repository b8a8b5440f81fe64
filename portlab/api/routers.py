"""Internal API routers — /api/stock, /api/analyze, /api/strategy, /api/moving-average.

No business logic.  Delegates to the series cache and the backtest
package; dependencies are injected with ``configure_routers``.
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from portlab.backtest.sweep import sweep_fixed, trend_report
from portlab.backtest.yields import DIVIDEND_YIELDS
from portlab.config import Config
from portlab.data.cache import SeriesCache
from portlab.data.models import PriceSeries, parse_series
from portlab.strategy.indicators import is_above_ma
from portlab.strategy.models import MASeries

logger = logging.getLogger("portlab")
router = APIRouter()

# ── Injected dependencies (set during app startup) ───────────────────────

_cache: Optional[SeriesCache] = None
_config: Optional[Config] = None


def configure_routers(cache: SeriesCache, config: Config) -> None:
    """Inject the series cache and configuration.

    Args:
        cache: Shared ``SeriesCache`` owned by the application.
        config: Loaded ``Config``.
    """
    global _cache, _config  # noqa: PLW0603
    _cache = cache
    _config = config


def _require_ready() -> tuple[SeriesCache, Config]:
    if _cache is None or _config is None:
        raise HTTPException(status_code=503, detail="Service not configured")
    return _cache, _config


def _require_series(cache: SeriesCache, symbol: str) -> PriceSeries:
    series = cache.get(symbol)
    if series is None:
        raise HTTPException(
            status_code=404, detail=f"No cached data for {symbol.upper()}",
        )
    return series


def _require_ma(cache: SeriesCache, symbol: str, period: int) -> MASeries:
    ma = cache.get_ma(symbol, period)
    if ma is None:
        raise HTTPException(
            status_code=404, detail=f"No cached data for {symbol.upper()}",
        )
    return ma


def _check_as_of(as_of: Optional[str]) -> None:
    if as_of is None:
        return
    try:
        date.fromisoformat(as_of)
    except ValueError as exc:
        raise HTTPException(
            status_code=422, detail=f"as_of must be YYYY-MM-DD, got {as_of!r}",
        ) from exc


# ── Series ───────────────────────────────────────────────────────────────


@router.put("/api/stock/{symbol}")
async def put_stock(symbol: str, body: list[dict]):
    """Store a ``[{date, close, volume?}, ...]`` series for *symbol*."""
    cache, _ = _require_ready()
    try:
        series = parse_series(body)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    cache.put(symbol, series)
    return {
        "symbol": symbol.upper(),
        "points": len(series),
        "start": series[0].date if series else None,
        "end": series[-1].date if series else None,
    }


@router.get("/api/stock/{symbol}")
async def get_stock(symbol: str):
    """Return the cached series for *symbol*."""
    cache, _ = _require_ready()
    series = _require_series(cache, symbol)
    return [
        {"date": p.date, "close": p.close, "volume": p.volume} for p in series
    ]


@router.get("/api/stocks")
async def list_stocks():
    """Return the symbols with fresh cached data."""
    cache, _ = _require_ready()
    return {"symbols": cache.symbols()}


# ── Analysis ─────────────────────────────────────────────────────────────


@router.get("/api/moving-average/{symbol}")
def get_moving_average(
    symbol: str,
    period: Optional[int] = Query(default=None, ge=1, le=1000),
):
    """Return MA observations, crossovers and the current regime for *symbol*."""
    cache, config = _require_ready()
    ma = _require_ma(cache, symbol, period or config.ma_period)
    return {**ma.to_dict(), "symbol": symbol.upper(), "aboveMA": is_above_ma(ma)}


@router.get("/api/analyze")
def analyze(
    asset1: str = Query(default="TQQQ"),
    asset2: str = Query(default="GLD"),
    as_of: Optional[str] = Query(default=None),
):
    """Fixed-weight grid of asset1/asset2 mixes across all horizons."""
    cache, config = _require_ready()
    _check_as_of(as_of)
    series1 = _require_series(cache, asset1)
    series2 = _require_series(cache, asset2)

    portfolios = sweep_fixed(
        series1,
        series2,
        weights=config.weights,
        horizons=config.horizons,
        as_of=as_of,
        rebalance_threshold=config.rebalance_threshold,
        risk_free_rate=config.risk_free_rate,
        symbols=(asset1, asset2),
        yield_table=DIVIDEND_YIELDS if config.apply_dividend_yields else None,
    )
    ma = _require_ma(cache, asset1, config.ma_period)
    return {
        "asset1": asset1.upper(),
        "asset2": asset2.upper(),
        "portfolios": portfolios,
        "maData": {**ma.to_dict(), "symbol": asset1.upper()},
    }


@router.get("/api/strategy")
def strategy(
    asset1: str = Query(default="TQQQ"),
    asset2: str = Query(default="GLD"),
    above: float = Query(default=100.0, ge=0.0, le=100.0),
    below: float = Query(default=0.0, ge=0.0, le=100.0),
    as_of: Optional[str] = Query(default=None),
):
    """Trend-following stats per horizon, switching on asset1's MA."""
    cache, config = _require_ready()
    _check_as_of(as_of)
    series1 = _require_series(cache, asset1)
    series2 = _require_series(cache, asset2)
    ma = _require_ma(cache, asset1, config.ma_period)

    report = trend_report(
        series1,
        series2,
        ma,
        above_weight=above,
        below_weight=below,
        horizons=config.horizons,
        as_of=as_of,
        cooldown_days=config.cooldown_days,
        rebalance_threshold=config.rebalance_threshold,
        risk_free_rate=config.risk_free_rate,
    )
    return {
        "asset1": asset1.upper(),
        "asset2": asset2.upper(),
        "aboveWeight": above,
        "belowWeight": below,
        "isAboveMA": is_above_ma(ma),
        "results": report,
    }
