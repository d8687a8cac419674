"""
Trend fitting
=============

Three pieces, all pure functions over year-keyed series:

- `fit_linear`: OLS of value on year (scipy.stats.linregress).
- `simulate_logistic`: integrate dN/dt = r N (1 - N/K) once per year
  (scipy.integrate.solve_ivp, RK45 with tight tolerances).
- `sum_squared_error`: compare an observed and a simulated series on the
  years they share.

Series are plain dicts {year: value}; years are sorted before fitting.
"""

from __future__ import annotations
import logging
import math
from typing import Dict, Mapping, Sequence

import numpy as np
from scipy import stats
from scipy.integrate import solve_ivp

from .errors import InsufficientDataError, IntegrationError
from .models import LinearFit, LogisticSimulation

logger = logging.getLogger(__name__)


def _xy(series: Mapping[int, float]):
    years = sorted(series)
    x = np.array(years, dtype=float)
    y = np.array([float(series[k]) for k in years], dtype=float)
    return x, y


def fit_linear(series: Mapping[int, float]) -> LinearFit:
    """
    Ordinary least squares of value on year.

    Returns slope, intercept, the two-sided p-value of the slope and R^2.
    Needs at least two years; with exactly two the line fits perfectly and
    scipy reports p=0 (or p=1 for a flat pair).
    """
    if len(series) < 2:
        raise InsufficientDataError(f"Linear fit needs at least 2 years, got {len(series)}")
    x, y = _xy(series)
    if not np.all(np.isfinite(y)):
        raise InsufficientDataError("Series contains non-finite values")

    res = stats.linregress(x, y)
    r_squared = float(res.rvalue) ** 2 if math.isfinite(res.rvalue) else 0.0
    return LinearFit(
        intercept=float(res.intercept),
        slope=float(res.slope),
        p_value=float(res.pvalue),
        r_squared=r_squared,
        stderr=float(res.stderr),
        n=len(x),
    )


def _logistic_rhs(rate: float, capacity: float):
    def rhs(t, n):
        return rate * n * (1.0 - n / capacity)
    return rhs


def simulate_logistic(
    initial_population: float,
    rate: float,
    capacity: float,
    start_year: int,
    end_year: int,
    *,
    rtol: float = 1e-8,
    atol: float = 1e-8,
) -> LogisticSimulation:
    """
    Integrate the logistic growth ODE from `start_year` to `end_year`.

    N(start_year) = initial_population; the trajectory is sampled at every
    whole year. The integrator is deterministic, so identical parameters give
    identical trajectories.
    """
    if capacity <= 0:
        raise ValueError("capacity must be positive")
    if initial_population < 0:
        raise ValueError("initial_population must be non-negative")
    if end_year < start_year:
        raise ValueError("end_year must not be before start_year")

    years = tuple(range(start_year, end_year + 1))
    if len(years) == 1:
        return LogisticSimulation(rate, capacity, initial_population, years, (float(initial_population),))

    sol = solve_ivp(
        _logistic_rhs(rate, capacity),
        (float(start_year), float(end_year)),
        [float(initial_population)],
        method="RK45",
        t_eval=np.array(years, dtype=float),
        rtol=rtol,
        atol=atol,
    )
    if not sol.success:
        raise IntegrationError(f"Logistic integration failed (r={rate}, K={capacity}): {sol.message}")
    values = sol.y[0]
    if len(values) != len(years) or not np.all(np.isfinite(values)):
        raise IntegrationError(f"Logistic integration produced invalid output (r={rate}, K={capacity})")

    logger.debug("Logistic r=%s K=%s: N(%d)=%.3f", rate, capacity, end_year, values[-1])
    return LogisticSimulation(
        rate=rate,
        capacity=capacity,
        initial_population=initial_population,
        years=years,
        values=tuple(float(v) for v in values),
    )


def logistic_closed_form(
    initial_population: float,
    rate: float,
    capacity: float,
    years: Sequence[int],
) -> Dict[int, float]:
    """Analytic logistic solution N(t) = K / (1 + ((K - N0)/N0) e^{-r t})."""
    if not years:
        return {}
    t0 = years[0]
    out: Dict[int, float] = {}
    for y in years:
        if initial_population == 0:
            out[y] = 0.0
            continue
        a = (capacity - initial_population) / initial_population
        out[y] = capacity / (1.0 + a * math.exp(-rate * (y - t0)))
    return out


def sum_squared_error(observed: Mapping[int, float], simulated: Mapping[int, float]) -> float:
    """
    Sum of squared differences over the years both series share.

    Years present in only one series are ignored (inner join).
    """
    shared = sorted(set(observed) & set(simulated))
    dropped = sorted(set(observed) ^ set(simulated))
    if dropped:
        logger.warning("SSE ignores %d unmatched years: %s", len(dropped), dropped)
    return float(sum((float(observed[y]) - float(simulated[y])) ** 2 for y in shared))
