"""Series alignment — intersect two price series on common trading days.

Pure functions, no I/O.  Dates are matched by exact string equality; ISO
dates sort lexicographically in chronological order.
"""

from typing import Union

from portlab.data.models import AlignedPair, InsufficientData, PriceSeries


def align(
    series_a: PriceSeries, series_b: PriceSeries,
) -> Union[AlignedPair, InsufficientData]:
    """Reduce two series to the sorted set of dates present in both.

    Returns ``InsufficientData`` when fewer than 2 dates are shared.
    """
    closes_a = {p.date: p.close for p in series_a}
    closes_b = {p.date: p.close for p in series_b}

    common = sorted(d for d in closes_a if d in closes_b)
    if len(common) < 2:
        return InsufficientData(
            reason=f"Need at least 2 common dates, got {len(common)}"
        )

    return AlignedPair(
        dates=tuple(common),
        closes1=tuple(closes_a[d] for d in common),
        closes2=tuple(closes_b[d] for d in common),
    )


def filter_since(series: PriceSeries, cutoff: str) -> PriceSeries:
    """Keep points dated on or after *cutoff* (``YYYY-MM-DD``)."""
    return [p for p in series if p.date >= cutoff]


def normalize(series: PriceSeries, base: float = 100.0) -> list[float]:
    """Rescale closes so the first one equals *base*.

    Returns an empty list for an empty series.
    """
    if not series:
        return []
    first = series[0].close
    if first <= 0:
        raise ValueError(f"Cannot normalise from non-positive close {first}")
    return [p.close / first * base for p in series]
