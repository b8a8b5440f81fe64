"""Strategy data models — moving-average observations and crossovers."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class MAPoint:
    """Price and trailing moving average on one trading day."""

    date: str
    price: float
    ma: float
    above_ma: bool  # strict: price > ma


@dataclass(frozen=True)
class Crossover:
    """A day-over-day flip of the price's position relative to its MA."""

    date: str
    price: float
    ma: float
    cross_type: str  # "up" or "down"


@dataclass(frozen=True)
class MASeries:
    """Moving-average observations plus the crossovers detected in them."""

    values: tuple[MAPoint, ...] = ()
    crossovers: tuple[Crossover, ...] = ()
    period: int = 200
    _by_date: dict[str, MAPoint] = field(
        default_factory=dict, init=False, repr=False, compare=False,
    )

    def __post_init__(self) -> None:
        self._by_date.update({p.date: p for p in self.values})

    def __len__(self) -> int:
        return len(self.values)

    def at(self, date: str) -> MAPoint | None:
        """The observation on *date*, or ``None`` if there is none."""
        return self._by_date.get(date)

    def to_dict(self) -> dict:
        """Serialise using the field names existing callers expect."""
        return {
            "period": self.period,
            "values": [
                {
                    "date": p.date,
                    "price": p.price,
                    "ma": p.ma,
                    "aboveMA": p.above_ma,
                }
                for p in self.values
            ],
            "crossovers": [
                {
                    "date": c.date,
                    "price": c.price,
                    "ma": c.ma,
                    "crossType": c.cross_type,
                }
                for c in self.crossovers
            ],
        }
