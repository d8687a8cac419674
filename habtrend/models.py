"""
Data model
==========

Each row of the bloom event table becomes a `BloomEvent`. Records are
immutable (`frozen=True`): aggregations and fits build new objects and
never edit the loaded events.

Derived results (`ToxicityRate`, `LinearFit`, `LogisticSimulation`) are
frozen too, so one run's statistics cannot drift between figures.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class BloomEvent:
    """One observed harmful algal bloom."""
    event_id: int
    event_year: int
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    # True = associated with toxin accumulation in seafood
    seafood_toxin: Optional[bool] = None

    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


@dataclass(frozen=True)
class ToxicityRate:
    """Toxic / non-toxic split for one year."""
    year: int
    toxic: int
    nontoxic: int
    total: int
    fraction: float


@dataclass(frozen=True)
class LinearFit:
    """Ordinary least-squares result of value on year."""
    intercept: float
    slope: float
    p_value: float
    r_squared: float
    stderr: float
    n: int

    def predict(self, x: float) -> float:
        return self.intercept + self.slope * x


@dataclass(frozen=True)
class LogisticSimulation:
    """Logistic ODE trajectory sampled once per year."""
    rate: float
    capacity: float
    initial_population: float
    years: Tuple[int, ...]
    values: Tuple[float, ...]

    def as_series(self) -> Dict[int, float]:
        """Return the trajectory as a year -> simulated count mapping."""
        return dict(zip(self.years, self.values))
