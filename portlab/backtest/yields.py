"""Per-symbol yield adjustments added on top of price-only CAGR.

Some assets distribute income that adjusted closes may not fully carry.
Adjustments are opt-in: callers pass a table, nothing applies by default.
"""

from typing import Mapping, Optional

# Annual dividend yield assumptions, keyed by upper-case symbol.
DIVIDEND_YIELDS: dict[str, float] = {
    "SCHD": 0.035,
}


def symbol_yield(symbol: str, table: Optional[Mapping[str, float]] = None) -> float:
    """Annual yield for *symbol* from *table*, 0.0 when not listed."""
    if not table or not symbol:
        return 0.0
    return table.get(symbol.upper(), 0.0)


def blended_yield(
    symbol1: str,
    symbol2: str,
    weight1: float,
    table: Optional[Mapping[str, float]] = None,
) -> float:
    """Portfolio yield for a two-asset mix with asset-1 weight *weight1* (percent)."""
    fraction = weight1 / 100.0
    return (
        fraction * symbol_yield(symbol1, table)
        + (1.0 - fraction) * symbol_yield(symbol2, table)
    )
