"""Grid sweep — fixed-weight stats across a weight grid and look-back horizons.

Each (weight, horizon) cell is computed independently.  A cell that lacks
data or hits a ``SimulationError`` is logged and left out of its row; the
other cells are unaffected.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date as _date
from typing import Iterable, Mapping, Optional, Sequence, Union

from portlab.backtest.engine import REBALANCE_THRESHOLD, simulate_fixed, simulate_trend
from portlab.backtest.models import SimulationError
from portlab.backtest.stats import RISK_FREE_RATE, compute_stats
from portlab.backtest.yields import blended_yield
from portlab.data.align import align, filter_since
from portlab.data.models import AlignedPair, InsufficientData, PriceSeries
from portlab.strategy.models import MASeries

logger = logging.getLogger("portlab.sweep")

DEFAULT_WEIGHTS: tuple[int, ...] = tuple(range(0, 101, 5))
DEFAULT_HORIZONS: tuple[int, ...] = (1, 3, 5, 10)
MIN_WINDOW_POINTS = 10
STATS_PRECISION = 4


def horizon_key(years: int) -> str:
    """Row key for a horizon, e.g. ``"3year"``."""
    return f"{years}year"


def horizon_cutoff(as_of: str, years: int) -> str:
    """The date *years* calendar years before *as_of* (Feb 29 maps to Feb 28)."""
    end = _date.fromisoformat(as_of)
    try:
        start = end.replace(year=end.year - years)
    except ValueError:
        start = end.replace(year=end.year - years, day=28)
    return start.isoformat()


def latest_common_date(series1: PriceSeries, series2: PriceSeries) -> Optional[str]:
    """Most recent date present in both series, or ``None``."""
    dates2 = {p.date for p in series2}
    common = [p.date for p in series1 if p.date in dates2]
    return max(common) if common else None


def horizon_windows(
    series1: PriceSeries,
    series2: PriceSeries,
    horizons: Iterable[int],
    as_of: Optional[str] = None,
    min_points: int = MIN_WINDOW_POINTS,
) -> dict[int, Union[AlignedPair, InsufficientData]]:
    """Align both series over each trailing horizon ending at *as_of*."""
    if as_of is None:
        as_of = latest_common_date(series1, series2)

    windows: dict[int, Union[AlignedPair, InsufficientData]] = {}
    for years in horizons:
        if as_of is None:
            windows[years] = InsufficientData(reason="No common dates")
            continue
        cutoff = horizon_cutoff(as_of, years)
        w1 = [p for p in filter_since(series1, cutoff) if p.date <= as_of]
        w2 = [p for p in filter_since(series2, cutoff) if p.date <= as_of]
        if len(w1) < min_points or len(w2) < min_points:
            windows[years] = InsufficientData(
                reason=(
                    f"{horizon_key(years)} window too short: "
                    f"{len(w1)}/{len(w2)} points"
                )
            )
            continue
        windows[years] = align(w1, w2)
    return windows


# ── Fixed-weight grid ────────────────────────────────────────────────────


def sweep_fixed(
    series1: PriceSeries,
    series2: PriceSeries,
    weights: Sequence[float] = DEFAULT_WEIGHTS,
    horizons: Sequence[int] = DEFAULT_HORIZONS,
    as_of: Optional[str] = None,
    rebalance_threshold: float = REBALANCE_THRESHOLD,
    risk_free_rate: float = RISK_FREE_RATE,
    symbols: tuple[str, str] = ("", ""),
    yield_table: Optional[Mapping[str, float]] = None,
    max_workers: Optional[int] = None,
) -> list[dict]:
    """Compute fixed-weight stats for every (weight, horizon) cell.

    Args:
        series1: Prices of asset 1 (the weighted asset).
        series2: Prices of asset 2.
        weights: Asset-1 weights in percent.
        horizons: Look-back windows in whole years.
        as_of: Window end date; defaults to the latest common date.
        rebalance_threshold: Drift that triggers a rebalance trade.
        risk_free_rate: Annual rate used for Sharpe.
        symbols: Asset symbols, used to look up *yield_table*.
        yield_table: Optional per-symbol annual yields added to CAGR.
        max_workers: Run cells on a thread pool of this size when > 1.

    Returns:
        One row per weight: ``{"weight1", "weight2", "<N>year": stats...}``.
        Stats are rounded to 4 decimals; cells without a result are absent.
    """
    windows = horizon_windows(series1, series2, horizons, as_of)
    for years, window in windows.items():
        if isinstance(window, InsufficientData):
            logger.warning("Skipping %s: %s", horizon_key(years), window.reason)

    cells = [(w, years) for w in weights for years in horizons]

    def _run(cell: tuple[float, int]) -> Optional[dict]:
        weight1, years = cell
        window = windows[years]
        if isinstance(window, InsufficientData):
            return None
        adjustment = blended_yield(symbols[0], symbols[1], weight1, yield_table)
        return _fixed_cell(
            window, weight1, rebalance_threshold, risk_free_rate, adjustment,
        )

    if max_workers and max_workers > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            results = list(pool.map(_run, cells))
    else:
        results = [_run(c) for c in cells]

    rows: dict[float, dict] = {
        w: {"weight1": w, "weight2": 100 - w} for w in weights
    }
    for (weight1, years), stats in zip(cells, results):
        if stats is not None:
            rows[weight1][horizon_key(years)] = stats

    logger.info(
        "Sweep complete: %d weights x %d horizons, %d cells filled",
        len(weights), len(horizons), sum(r is not None for r in results),
    )
    return [rows[w] for w in weights]


def _fixed_cell(
    pair: AlignedPair,
    weight1: float,
    rebalance_threshold: float,
    risk_free_rate: float,
    yield_adjustment: float,
) -> Optional[dict]:
    try:
        curve = simulate_fixed(pair, weight1, rebalance_threshold)
    except SimulationError as exc:
        logger.warning(
            "Fixed simulation failed (weight1=%s, %s..%s): %s",
            weight1, pair.start_date, pair.end_date, exc,
        )
        return None
    stats = compute_stats(curve, risk_free_rate, yield_adjustment)
    return stats.to_dict(STATS_PRECISION) if stats is not None else None


# ── Trend-following report ───────────────────────────────────────────────


def trend_report(
    series1: PriceSeries,
    series2: PriceSeries,
    ma_series: MASeries,
    above_weight: float,
    below_weight: float,
    horizons: Sequence[int] = DEFAULT_HORIZONS,
    as_of: Optional[str] = None,
    cooldown_days: int = 2,
    rebalance_threshold: float = REBALANCE_THRESHOLD,
    risk_free_rate: float = RISK_FREE_RATE,
) -> dict[str, dict]:
    """Trend-following stats and switch counts for each horizon.

    *ma_series* should be computed on the full asset-1 history so that MA
    observations exist from the start of every window.

    Returns ``{"<N>year": {stats..., "totalCrossovers", "limitedCrossovers",
    "switchDates"}}``; horizons without a result are absent.
    """
    report: dict[str, dict] = {}
    windows = horizon_windows(series1, series2, horizons, as_of)
    for years, window in windows.items():
        key = horizon_key(years)
        if isinstance(window, InsufficientData):
            logger.warning("Skipping trend %s: %s", key, window.reason)
            continue
        try:
            curve, summary = simulate_trend(
                window, ma_series, above_weight, below_weight,
                cooldown_days=cooldown_days,
                rebalance_threshold=rebalance_threshold,
            )
        except SimulationError as exc:
            logger.warning("Trend simulation failed (%s): %s", key, exc)
            continue
        stats = compute_stats(curve, risk_free_rate)
        if stats is None:
            continue
        report[key] = {**stats.to_dict(STATS_PRECISION), **summary.to_dict()}
    return report
