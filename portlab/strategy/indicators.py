"""Trend indicators — simple moving average and crossover detection. Pure functions, no I/O."""

from portlab.data.models import PriceSeries
from portlab.strategy.models import Crossover, MAPoint, MASeries


def moving_average(series: PriceSeries, period: int = 200) -> MASeries:
    """Calculate a trailing simple moving average with crossover events.

    For every index ``i >= period - 1``:
        ``ma[i] = mean(close[i - period + 1 .. i])``
        ``above_ma[i] = close[i] > ma[i]``  (a tie is *not* above)

    A crossover is recorded whenever ``above_ma`` differs from the previous
    observation's, tagged ``"up"`` when moving above and ``"down"``
    otherwise.

    Returns an empty ``MASeries`` when fewer than *period* closes are
    available.  Raises ``ValueError`` if *period* is less than 1.
    """
    if period < 1:
        raise ValueError(f"period must be >= 1, got {period}")
    if len(series) < period:
        return MASeries(period=period)

    closes = [p.close for p in series]
    values: list[MAPoint] = []
    crossovers: list[Crossover] = []
    prev_above: bool | None = None

    for i in range(period - 1, len(closes)):
        window = closes[i - period + 1 : i + 1]
        ma = sum(window) / period
        price = closes[i]
        above = price > ma

        if prev_above is not None and above != prev_above:
            crossovers.append(
                Crossover(
                    date=series[i].date,
                    price=price,
                    ma=ma,
                    cross_type="up" if above else "down",
                )
            )

        values.append(
            MAPoint(date=series[i].date, price=price, ma=ma, above_ma=above)
        )
        prev_above = above

    return MASeries(
        values=tuple(values), crossovers=tuple(crossovers), period=period,
    )


def is_above_ma(ma_series: MASeries) -> bool:
    """Whether the latest observation is above its moving average.

    Defaults to ``True`` when there are no observations.
    """
    if not ma_series.values:
        return True
    return ma_series.values[-1].above_ma


def crossovers_between(ma_series: MASeries, start: str, end: str) -> int:
    """Count crossovers dated within ``[start, end]`` inclusive."""
    return sum(1 for c in ma_series.crossovers if start <= c.date <= end)
