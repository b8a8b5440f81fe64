"""Performance statistics — pure functions over an equity curve."""

import math
from datetime import date as _date
from typing import Optional, Sequence

import numpy as np

from portlab.backtest.models import EquityCurve, PerformanceStats

TRADING_DAYS_YEAR = 252
RISK_FREE_RATE = 0.02
MIN_YEARS = 0.08  # about 29 days; shorter spans report zero CAGR


def compute_stats(
    curve: EquityCurve,
    risk_free_rate: float = RISK_FREE_RATE,
    yield_adjustment: float = 0.0,
) -> Optional[PerformanceStats]:
    """Compute CAGR, volatility, Sharpe ratio and max drawdown for *curve*.

    Args:
        curve: Equity curve with strictly positive values.
        risk_free_rate: Annual rate subtracted from CAGR for Sharpe.
        yield_adjustment: Annual yield added to CAGR (e.g. dividends not
            reflected in closes).  Ignored when CAGR is zeroed for a short
            span.

    Returns:
        ``PerformanceStats``, or ``None`` when *curve* has fewer than 2 points.
    """
    if len(curve) < 2:
        return None

    values = curve.values
    if not all(0 < v < math.inf for v in values):
        raise ValueError("Equity curve values must be positive and finite")

    cagr = _cagr(values[0], values[-1], curve.points[0].date, curve.points[-1].date)
    if cagr is None:
        annual_return = 0.0
    else:
        annual_return = cagr + yield_adjustment

    volatility = _volatility(values)
    sharpe = _sharpe(annual_return, volatility, risk_free_rate)

    return PerformanceStats(
        annual_return=annual_return,
        volatility=volatility,
        sharpe_ratio=sharpe,
        mdd=_max_drawdown(values),
    )


# ── Helpers ──────────────────────────────────────────────────────────────


def _cagr(
    first_value: float, last_value: float, first_date: str, last_date: str,
) -> Optional[float]:
    """Compound annual growth rate on a 365-day year.

    Returns ``None`` when the span is under ``MIN_YEARS``.
    """
    days = (_date.fromisoformat(last_date) - _date.fromisoformat(first_date)).days
    years = days / 365.0
    if years < MIN_YEARS:
        return None
    return (last_value / first_value) ** (1.0 / years) - 1.0


def _volatility(values: Sequence[float]) -> float:
    """Annualised population standard deviation of daily simple returns."""
    arr = np.asarray(values, dtype=float)
    returns = arr[1:] / arr[:-1] - 1.0
    return float(np.std(returns)) * math.sqrt(TRADING_DAYS_YEAR)


def _sharpe(annual_return: float, volatility: float, risk_free_rate: float) -> float:
    """Excess return per unit of volatility; 0.0 when volatility is zero."""
    if volatility == 0:
        return 0.0
    return (annual_return - risk_free_rate) / volatility


def _max_drawdown(values: Sequence[float]) -> float:
    """Largest peak-to-trough decline as a fraction of the running peak."""
    peak = values[0]
    max_dd = 0.0
    for v in values:
        if v > peak:
            peak = v
        dd = (peak - v) / peak
        if dd > max_dd:
            max_dd = dd
    return max_dd
