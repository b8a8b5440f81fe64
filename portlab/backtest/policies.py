"""Allocation policies — decide the asset-1 target fraction for each date.

The simulation loop asks a policy for ``initial_weight`` on the first
aligned date and ``target_weight`` on every later date, in order.
"""

from __future__ import annotations

from datetime import date as _date
from typing import Protocol, runtime_checkable

from portlab.strategy.models import MASeries


@runtime_checkable
class AllocationPolicy(Protocol):
    """Interface that all allocation policies must satisfy."""

    def initial_weight(self, date: str) -> float:
        """Asset-1 fraction to buy on the first simulated date."""
        ...

    def target_weight(self, date: str) -> float:
        """Asset-1 fraction to rebalance toward on *date*."""
        ...


def _to_fraction(weight_pct: float, name: str) -> float:
    if not 0.0 <= weight_pct <= 100.0:
        raise ValueError(f"{name} must be within [0, 100], got {weight_pct}")
    return weight_pct / 100.0


class FixedWeightPolicy:
    """Constant target allocation.

    Args:
        weight1: Asset-1 weight in percent; asset 2 gets the remainder.
    """

    def __init__(self, weight1: float) -> None:
        self._fraction = _to_fraction(weight1, "weight1")

    def initial_weight(self, date: str) -> float:
        return self._fraction

    def target_weight(self, date: str) -> float:
        return self._fraction


class TrendPolicy:
    """Switch between two allocations on moving-average regime changes.

    States are ABOVE and BELOW (the trend asset's close relative to its
    MA).  The initial state is the MA observation on the first simulated
    date, ABOVE when there is none.  A later observation that disagrees
    with the current state is accepted only once *cooldown_days* calendar
    days have passed since the last accepted switch; the first simulated
    date counts as a switch for this purpose.  Dates without an MA
    observation keep the current target.

    Args:
        ma_series: Moving average of the trend asset.
        above_weight: Asset-1 weight (percent) while above the MA.
        below_weight: Asset-1 weight (percent) while below the MA.
        cooldown_days: Minimum calendar days between accepted switches.
    """

    def __init__(
        self,
        ma_series: MASeries,
        above_weight: float,
        below_weight: float,
        cooldown_days: int = 2,
    ) -> None:
        if cooldown_days < 0:
            raise ValueError(f"cooldown_days must be >= 0, got {cooldown_days}")
        self._ma = ma_series
        self._above = _to_fraction(above_weight, "above_weight")
        self._below = _to_fraction(below_weight, "below_weight")
        self._cooldown = cooldown_days
        self._state_above = True
        self._last_switch: _date | None = None
        self._switch_dates: list[str] = []

    # ── Policy interface ─────────────────────────────────────────────────

    def initial_weight(self, date: str) -> float:
        obs = self._ma.at(date)
        self._state_above = obs.above_ma if obs is not None else True
        self._last_switch = _date.fromisoformat(date)
        self._switch_dates = []
        return self.current_weight

    def target_weight(self, date: str) -> float:
        obs = self._ma.at(date)
        if obs is not None and obs.above_ma != self._state_above:
            today = _date.fromisoformat(date)
            elapsed = (today - self._last_switch).days if self._last_switch else None
            if elapsed is None or elapsed >= self._cooldown:
                self._state_above = obs.above_ma
                self._last_switch = today
                self._switch_dates.append(date)
        return self.current_weight

    # ── Queries ──────────────────────────────────────────────────────────

    @property
    def current_weight(self) -> float:
        return self._above if self._state_above else self._below

    @property
    def is_above(self) -> bool:
        return self._state_above

    @property
    def switch_dates(self) -> tuple[str, ...]:
        """Dates of switches accepted since the last ``initial_weight`` call."""
        return tuple(self._switch_dates)
