"""
Year aggregation
================

Both aggregations group the (already year-filtered) events by
`event_year`, in the same way the year index is built: a dict from year to
a tally, filled with `setdefault`, then emitted with ascending keys so the
fitters always see the same ordering.
"""

from __future__ import annotations
import logging
from typing import Dict, Iterable, List, Optional

from .errors import InsufficientDataError
from .models import BloomEvent, ToxicityRate

logger = logging.getLogger(__name__)


def count_by_year(events: Iterable[BloomEvent], exclude_year: Optional[int] = None) -> Dict[int, int]:
    """Return {year: number of events}, without `exclude_year`.

    `exclude_year` is used to drop a final year whose data is still coming in.
    """
    counts: Dict[int, int] = {}
    for e in events:
        if exclude_year is not None and e.event_year == exclude_year:
            continue
        counts[e.event_year] = counts.get(e.event_year, 0) + 1
    return {y: counts[y] for y in sorted(counts)}


def toxicity_fraction(year: int, toxic: int, nontoxic: int) -> ToxicityRate:
    """Build the ToxicityRate for one year.

    Raises InsufficientDataError when the year has no classified events.
    """
    total = toxic + nontoxic
    if total <= 0:
        raise InsufficientDataError("No classified events to compute a toxicity fraction", year=year)
    return ToxicityRate(year=year, toxic=toxic, nontoxic=nontoxic, total=total, fraction=toxic / total)


def toxicity_rate_by_year(
    events: Iterable[BloomEvent],
    missing_policy: str = "nontoxic",
) -> Dict[int, ToxicityRate]:
    """Per-year share of events flagged as seafood-toxic.

    A missing flag is never its own category. With `missing_policy`
    "nontoxic" it counts as no confirmed toxicity; with "exclude" it is
    left out of both counts (and a year with only missing flags is dropped).
    """
    if missing_policy not in ("nontoxic", "exclude"):
        raise ValueError("missing_policy must be 'nontoxic' or 'exclude'")

    # year -> [toxic, nontoxic]
    tally: Dict[int, List[int]] = {}
    missing = 0
    for e in events:
        bucket = tally.setdefault(e.event_year, [0, 0])
        if e.seafood_toxin is None:
            missing += 1
            if missing_policy == "nontoxic":
                bucket[1] += 1
        elif e.seafood_toxin:
            bucket[0] += 1
        else:
            bucket[1] += 1

    if missing:
        logger.info("%d events have no seafood-toxin flag (policy: %s)", missing, missing_policy)

    out: Dict[int, ToxicityRate] = {}
    for year in sorted(tally):
        toxic, nontoxic = tally[year]
        try:
            out[year] = toxicity_fraction(year, toxic, nontoxic)
        except InsufficientDataError as err:
            logger.warning("Skipping toxicity rate: %s", err)
    return out


def fraction_series(rates: Dict[int, ToxicityRate]) -> Dict[int, float]:
    """Flatten a toxicity-rate mapping to {year: fraction} for fitting/plotting."""
    return {y: r.fraction for y, r in rates.items()}
