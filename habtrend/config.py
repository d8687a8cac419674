"""
Configuration
=============

All knobs of a report run live here, as plain dataclasses, so that a run is
fully described by one `AnalysisConfig` object.

The logistic-growth parameters are named, versioned presets rather than
literals: the two figures of the original report used different growth
rates (0.325 and 0.2) with the same capacity and starting population.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
import logging
from typing import Dict, Optional, Tuple

logger = logging.getLogger(__name__)


# Natural Earth 1:50m ("medium" scale) country polygons
NATURAL_EARTH_50M = "https://naciscdn.org/naturalearth/50m/cultural/ne_50m_admin_0_countries.zip"

MISSING_TOXIN_POLICIES = ("nontoxic", "exclude")
ANIMATION_MODES = ("per_year", "cumulative")


@dataclass(frozen=True)
class LogisticPreset:
    """A named parameterization of the logistic growth model."""
    name: str
    version: str
    rate: float
    capacity: float
    initial_population: float


LOGISTIC_PRESETS: Dict[str, LogisticPreset] = {
    "primary": LogisticPreset("primary", "v1", rate=0.325, capacity=500.0, initial_population=40.0),
    "alternate": LogisticPreset("alternate", "v1", rate=0.2, capacity=500.0, initial_population=40.0),
}


def get_preset(name: str) -> LogisticPreset:
    try:
        return LOGISTIC_PRESETS[name]
    except KeyError:
        raise ValueError(f"Unknown logistic preset {name!r}. Known: {sorted(LOGISTIC_PRESETS)}") from None


@dataclass
class AnalysisConfig:
    """Everything one analysis run needs."""
    input_path: str
    # Final, still-incomplete year dropped from the frequency series
    exclude_year: Optional[int] = 2022
    # Events with event_year < min_year are dropped at load time
    min_year: int = 1990

    # Logistic simulation horizon and parameters
    start_year: int = 1990
    end_year: int = 2021
    logistic_rate: float = 0.325
    logistic_capacity: float = 500.0
    initial_population: float = 40.0
    preset_name: str = "primary"
    # Extra presets simulated next to the main one, for comparison
    compare_presets: Tuple[str, ...] = ("alternate",)

    # How a missing seafood-toxin flag is counted: as "nontoxic"
    # (no confirmed toxicity) or dropped from the year's total ("exclude")
    missing_toxin_policy: str = "nontoxic"

    # Animation
    frames_per_second: float = 2.0
    frames_per_year: int = 1

    # World country polygons (path or URL readable by geopandas)
    world_boundaries: str = NATURAL_EARTH_50M
    output_dir: str = "outputs"
    render_maps: bool = True
    write_report: bool = True

    def __post_init__(self) -> None:
        # A preset name only labels parameters that match the preset
        preset = LOGISTIC_PRESETS.get(self.preset_name)
        if preset is not None and (self.logistic_rate, self.logistic_capacity, self.initial_population) != (
            preset.rate, preset.capacity, preset.initial_population,
        ):
            logger.info("Logistic parameters differ from preset %r; labelling them custom", self.preset_name)
            self.preset_name = "custom"

    @classmethod
    def from_preset(cls, input_path: str, preset: str = "primary", **overrides) -> "AnalysisConfig":
        """Build a config whose logistic parameters come from a named preset."""
        p = get_preset(preset)
        cfg = cls(
            input_path=input_path,
            logistic_rate=p.rate,
            logistic_capacity=p.capacity,
            initial_population=p.initial_population,
            preset_name=p.name,
        )
        return replace(cfg, **overrides) if overrides else cfg

    def validate(self) -> "AnalysisConfig":
        """Raise ValueError on inconsistent settings; return self otherwise."""
        if self.end_year < self.start_year:
            raise ValueError(f"end_year ({self.end_year}) is before start_year ({self.start_year})")
        if self.logistic_capacity <= 0:
            raise ValueError("logistic_capacity must be positive")
        if self.initial_population < 0:
            raise ValueError("initial_population must be non-negative")
        if self.frames_per_second <= 0:
            raise ValueError("frames_per_second must be positive")
        if self.frames_per_year < 1:
            raise ValueError("frames_per_year must be at least 1")
        if self.missing_toxin_policy not in MISSING_TOXIN_POLICIES:
            raise ValueError(f"missing_toxin_policy must be one of {MISSING_TOXIN_POLICIES}")
        for name in self.compare_presets:
            get_preset(name)
        return self


@dataclass
class DatasetCitation:
    """Minimal dataset citation metadata for the DOCX report."""
    database_name: str = "Harmful Algae Event Database (HAEDAT)"
    institutional_author: str = "IOC-UNESCO / ICES / PICES"
    website: str = "https://haedat.iode.org"
    access_date_iso: Optional[str] = None
    file_name: Optional[str] = None


@dataclass
class ReportConfig:
    """High-level knobs to control how the report is written."""
    title: str = "Global Harmful Algal Bloom Trends"
    subtitle: str = "Bloom frequency, logistic growth and seafood toxicity"
    dataset_name: str = "HAB event table"
    citation: DatasetCitation = field(default_factory=DatasetCitation)
