"""Backtest data models — equity curves, performance stats, switch summaries."""

from dataclasses import dataclass
from typing import Optional


class SimulationError(ValueError):
    """A simulation hit a non-positive price or portfolio value."""

    def __init__(self, message: str, date: Optional[str] = None) -> None:
        super().__init__(message)
        self.date = date


@dataclass(frozen=True)
class EquityPoint:
    """Portfolio value at the close of one trading day."""

    date: str
    value: float


@dataclass(frozen=True)
class EquityCurve:
    """Day-by-day portfolio values plus the dates a rebalance trade occurred."""

    points: tuple[EquityPoint, ...]
    rebalance_dates: tuple[str, ...] = ()

    def __len__(self) -> int:
        return len(self.points)

    @property
    def values(self) -> list[float]:
        return [p.value for p in self.points]

    @property
    def dates(self) -> list[str]:
        return [p.date for p in self.points]


@dataclass(frozen=True)
class PerformanceStats:
    """Risk/return metrics derived from one equity curve.

    All values are fractions (``0.1`` = 10 %).
    """

    annual_return: float
    volatility: float
    sharpe_ratio: float
    mdd: float

    def to_dict(self, precision: Optional[int] = None) -> dict:
        """Serialise with caller field names, optionally rounded."""
        fields = {
            "annualReturn": self.annual_return,
            "volatility": self.volatility,
            "sharpeRatio": self.sharpe_ratio,
            "mdd": self.mdd,
        }
        if precision is None:
            return fields
        return {k: round(v, precision) for k, v in fields.items()}


@dataclass(frozen=True)
class SwitchSummary:
    """Crossover counts for one trend-following run.

    ``total_crossovers`` counts raw MA crossovers in the simulated range;
    ``limited_crossovers`` counts the switches the cooldown let through.
    """

    total_crossovers: int
    limited_crossovers: int
    switch_dates: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "totalCrossovers": self.total_crossovers,
            "limitedCrossovers": self.limited_crossovers,
            "switchDates": list(self.switch_dates),
        }
