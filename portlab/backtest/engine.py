"""Portfolio simulator — replays an aligned price pair through an allocation policy.

A single loop serves both the fixed-weight and the trend-following
portfolios: each day the holdings are revalued, the policy supplies the
target asset-1 fraction, and a full rebalance trade is made when the
actual fraction drifts more than the threshold away from it.
"""

import logging
import math

from portlab.backtest.models import EquityCurve, EquityPoint, SimulationError, SwitchSummary
from portlab.backtest.policies import AllocationPolicy, FixedWeightPolicy, TrendPolicy
from portlab.data.models import AlignedPair
from portlab.strategy.indicators import crossovers_between
from portlab.strategy.models import MASeries

logger = logging.getLogger("portlab")

REBALANCE_THRESHOLD = 0.03
INITIAL_VALUE = 100.0


def run_simulation(
    pair: AlignedPair,
    policy: AllocationPolicy,
    rebalance_threshold: float = REBALANCE_THRESHOLD,
    initial_value: float = INITIAL_VALUE,
) -> EquityCurve:
    """Simulate a two-asset portfolio over every date of *pair*.

    Args:
        pair: Aligned closes for asset 1 and asset 2.
        policy: Supplies the asset-1 target fraction per date.
        rebalance_threshold: Drift (as a fraction) that triggers a trade.
            The comparison is strict: drift equal to the threshold holds.
        initial_value: Portfolio value on the first date.

    Returns:
        ``EquityCurve`` with one point per aligned date.

    Raises:
        SimulationError: A price or the portfolio total is not positive.
    """
    if initial_value <= 0:
        raise ValueError(f"initial_value must be positive, got {initial_value}")

    first = pair.dates[0]
    price1, price2 = pair.closes1[0], pair.closes2[0]
    _check_prices(first, price1, price2)

    target = policy.initial_weight(first)
    shares1 = initial_value * target / price1
    shares2 = initial_value * (1.0 - target) / price2

    points: list[EquityPoint] = [EquityPoint(first, initial_value)]
    rebalances: list[str] = []

    for i in range(1, len(pair)):
        date = pair.dates[i]
        price1, price2 = pair.closes1[i], pair.closes2[i]
        _check_prices(date, price1, price2)

        value1 = shares1 * price1
        value2 = shares2 * price2
        total = value1 + value2
        if not 0 < total < math.inf:
            raise SimulationError(
                f"Portfolio value {total} is not positive and finite on {date}", date,
            )

        target = policy.target_weight(date)
        if abs(value1 / total - target) > rebalance_threshold:
            shares1 = total * target / price1
            shares2 = total * (1.0 - target) / price2
            rebalances.append(date)

        points.append(EquityPoint(date, total))

    return EquityCurve(points=tuple(points), rebalance_dates=tuple(rebalances))


def simulate_fixed(
    pair: AlignedPair,
    weight1: float,
    rebalance_threshold: float = REBALANCE_THRESHOLD,
    initial_value: float = INITIAL_VALUE,
) -> EquityCurve:
    """Fixed-weight portfolio with threshold rebalancing.

    *weight1* is the asset-1 weight in percent; asset 2 holds ``100 - weight1``.
    """
    return run_simulation(
        pair, FixedWeightPolicy(weight1), rebalance_threshold, initial_value,
    )


def simulate_trend(
    pair: AlignedPair,
    ma_series: MASeries,
    above_weight: float,
    below_weight: float,
    cooldown_days: int = 2,
    rebalance_threshold: float = REBALANCE_THRESHOLD,
    initial_value: float = INITIAL_VALUE,
) -> tuple[EquityCurve, SwitchSummary]:
    """Trend-following portfolio driven by *ma_series*.

    Returns the equity curve and a summary of raw crossovers within the
    simulated range versus switches accepted after the cooldown.
    """
    policy = TrendPolicy(ma_series, above_weight, below_weight, cooldown_days)
    curve = run_simulation(pair, policy, rebalance_threshold, initial_value)

    summary = SwitchSummary(
        total_crossovers=crossovers_between(
            ma_series, pair.start_date, pair.end_date,
        ),
        limited_crossovers=len(policy.switch_dates),
        switch_dates=policy.switch_dates,
    )
    logger.debug(
        "Trend run %s..%s: %d crossovers, %d switches, %d rebalances",
        pair.start_date, pair.end_date,
        summary.total_crossovers, summary.limited_crossovers,
        len(curve.rebalance_dates),
    )
    return curve, summary


# ── Helpers ──────────────────────────────────────────────────────────────


def _check_prices(date: str, price1: float, price2: float) -> None:
    if not (0 < price1 < math.inf and 0 < price2 < math.inf):
        raise SimulationError(
            f"Non-positive or non-finite price on {date}: asset1={price1}, asset2={price2}",
            date,
        )
