"""Price data models — typed representations of caller-supplied series."""

import math
from dataclasses import dataclass, field
from datetime import date as _date
from typing import Iterable, Optional


@dataclass(frozen=True)
class PricePoint:
    """A single daily close for one asset."""

    date: str  # "YYYY-MM-DD"
    close: float
    volume: Optional[int] = None


# Ordered by date, unique dates.
PriceSeries = list[PricePoint]


@dataclass(frozen=True)
class InsufficientData:
    """Returned in place of a result when there is too little data."""

    reason: str


@dataclass(frozen=True)
class AlignedPair:
    """Two series reduced to the trading days present in both.

    ``closes1[i]`` and ``closes2[i]`` are the closes on ``dates[i]``.
    """

    dates: tuple[str, ...]
    closes1: tuple[float, ...]
    closes2: tuple[float, ...]
    _index: dict[str, int] = field(
        default_factory=dict, init=False, repr=False, compare=False,
    )

    def __post_init__(self) -> None:
        if not (len(self.dates) == len(self.closes1) == len(self.closes2)):
            raise ValueError(
                "AlignedPair projections must have equal length, got "
                f"{len(self.dates)}/{len(self.closes1)}/{len(self.closes2)}"
            )
        self._index.update({d: i for i, d in enumerate(self.dates)})

    def __len__(self) -> int:
        return len(self.dates)

    @property
    def start_date(self) -> str:
        return self.dates[0]

    @property
    def end_date(self) -> str:
        return self.dates[-1]

    def price1(self, date: str) -> float:
        """Asset-1 close on *date*.  Raises ``KeyError`` if not aligned."""
        return self.closes1[self._index[date]]

    def price2(self, date: str) -> float:
        """Asset-2 close on *date*.  Raises ``KeyError`` if not aligned."""
        return self.closes2[self._index[date]]

    def __contains__(self, date: object) -> bool:
        return date in self._index


# ── Parsing ──────────────────────────────────────────────────────────────


def parse_series(records: Iterable[dict]) -> PriceSeries:
    """Build a date-sorted ``PriceSeries`` from ``{date, close, volume?}`` dicts.

    Raises ``ValueError`` for malformed records: missing keys, a date that
    is not ``YYYY-MM-DD``, a non-numeric or non-finite close, a volume that
    is not a whole number, or a duplicated date.
    Non-positive closes are accepted here; the simulators reject them.
    """
    points: dict[str, PricePoint] = {}
    for i, rec in enumerate(records):
        try:
            raw_date = rec["date"]
            raw_close = rec["close"]
        except (KeyError, TypeError) as exc:
            raise ValueError(
                f"Record {i} must have 'date' and 'close' fields: {rec!r}"
            ) from exc

        day = _parse_iso_date(raw_date, i)
        try:
            close = float(raw_close)
        except (TypeError, ValueError) as exc:
            raise ValueError(
                f"Record {i} has non-numeric close: {raw_close!r}"
            ) from exc
        if not math.isfinite(close):
            raise ValueError(f"Record {i} has non-finite close: {raw_close!r}")

        volume = _parse_volume(rec.get("volume"), i)

        if day in points:
            raise ValueError(f"Duplicate date in series: {day}")
        points[day] = PricePoint(date=day, close=close, volume=volume)

    return [points[d] for d in sorted(points)]


def _parse_volume(value: object, index: int) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError(f"Record {index} has non-numeric volume: {value!r}")
    if isinstance(value, int) and value >= 0:
        return value
    try:
        number = float(value)
    except ValueError as exc:
        raise ValueError(
            f"Record {index} has non-numeric volume: {value!r}"
        ) from exc
    if not math.isfinite(number) or number != int(number) or number < 0:
        raise ValueError(
            f"Record {index} volume must be a whole non-negative number: {value!r}"
        )
    return int(number)


def _parse_iso_date(value: object, index: int) -> str:
    if not isinstance(value, str):
        raise ValueError(f"Record {index} date must be a string, got {value!r}")
    try:
        parsed = _date.fromisoformat(value[:10])
    except ValueError as exc:
        raise ValueError(
            f"Record {index} date is not YYYY-MM-DD: {value!r}"
        ) from exc
    return parsed.isoformat()
