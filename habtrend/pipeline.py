"""
Analysis pipeline
=================

One report run, start to finish:

1) Load events -> list of BloomEvent records (immutable)
2) Project geolocated events -> GeoDataFrame in the report CRS
3) Aggregate -> yearly counts, yearly toxicity rates
4) Fit -> OLS lines, logistic trajectories, sum of squared errors
5) Render -> figures, statistics JSON, DOCX report

Each stage returns new objects; nothing upstream is modified. Any error
stops the run (there is no partial report).
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import os
import shutil
import tempfile
from typing import Dict, List, Optional, Tuple

import geopandas as gpd

from .aggregate import count_by_year, fraction_series, toxicity_rate_by_year
from .config import AnalysisConfig, ReportConfig, get_preset
from .fit import fit_linear, simulate_logistic, sum_squared_error
from .geo import load_world_boundaries, project_events
from .loader import load_events
from .models import BloomEvent, LinearFit, LogisticSimulation, ToxicityRate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisResult:
    """Everything the renderers and the report need."""
    config: AnalysisConfig
    events: Tuple[BloomEvent, ...]
    points: gpd.GeoDataFrame
    yearly_counts: Dict[int, int]
    toxicity_rates: Dict[int, ToxicityRate]
    frequency_fit: LinearFit
    toxicity_fit: LinearFit
    # label -> simulation; the first entry is the configured model
    simulations: Dict[str, LogisticSimulation] = field(default_factory=dict)
    # label -> SSE of yearly counts vs. that simulation
    sse: Dict[str, float] = field(default_factory=dict)

    @property
    def missing_coordinates(self) -> int:
        return sum(1 for e in self.events if not e.has_coordinates())

    @property
    def missing_toxin_flags(self) -> int:
        return sum(1 for e in self.events if e.seafood_toxin is None)

    @property
    def primary_label(self) -> str:
        return next(iter(self.simulations))


def _simulate_all(config: AnalysisConfig) -> Dict[str, LogisticSimulation]:
    sims: Dict[str, LogisticSimulation] = {}
    sims[config.preset_name] = simulate_logistic(
        config.initial_population, config.logistic_rate, config.logistic_capacity,
        config.start_year, config.end_year,
    )
    for name in config.compare_presets:
        if name in sims:
            continue
        p = get_preset(name)
        sims[name] = simulate_logistic(p.initial_population, p.rate, p.capacity, config.start_year, config.end_year)
    return sims


def run_analysis(config: AnalysisConfig, events: Optional[List[BloomEvent]] = None) -> AnalysisResult:
    """Load (unless `events` is given), aggregate and fit."""
    config.validate()
    if events is None:
        events = load_events(config.input_path, min_year=config.min_year)

    points = project_events(events)
    counts = count_by_year(events, exclude_year=config.exclude_year)
    rates = toxicity_rate_by_year(events, missing_policy=config.missing_toxin_policy)

    frequency_fit = fit_linear(counts)
    toxicity_fit = fit_linear(fraction_series(rates))
    logger.info("Frequency trend: slope=%.3f/yr R2=%.3f p=%.3g",
                frequency_fit.slope, frequency_fit.r_squared, frequency_fit.p_value)
    logger.info("Toxicity trend: slope=%.4f/yr R2=%.3f p=%.3g",
                toxicity_fit.slope, toxicity_fit.r_squared, toxicity_fit.p_value)

    sims = _simulate_all(config)
    sse = {label: sum_squared_error(counts, sim.as_series()) for label, sim in sims.items()}
    for label, v in sse.items():
        logger.info("Logistic %s: SSE=%.1f", label, v)

    return AnalysisResult(
        config=config,
        events=tuple(events),
        points=points,
        yearly_counts=counts,
        toxicity_rates=rates,
        frequency_fit=frequency_fit,
        toxicity_fit=toxicity_fit,
        simulations=sims,
        sse=sse,
    )


def render_figures(
    result: AnalysisResult,
    world: Optional[gpd.GeoDataFrame] = None,
    out: Optional[str] = None,
) -> Dict[str, str]:
    """Write every figure into `out` (default: the output directory); return name -> path."""
    from . import render

    cfg = result.config
    out = out or cfg.output_dir
    figures: Dict[str, str] = {}

    figures["frequency_fit"] = render.render_scatter_with_fit(
        result.yearly_counts, result.frequency_fit, os.path.join(out, "frequency_fit.png"),
        title="Bloom events per year", ylabel="Events",
    )
    figures["logistic_fit"] = render.render_logistic_overlay(
        result.yearly_counts, list(result.simulations.items()), os.path.join(out, "logistic_fit.png"),
    )
    primary = result.simulations[result.primary_label]
    figures["logistic_residuals"] = render.render_residual_plot(
        result.yearly_counts, primary.as_series(), os.path.join(out, "logistic_residuals.png"),
    )
    figures["toxicity_fit"] = render.render_scatter_with_fit(
        fraction_series(result.toxicity_rates), result.toxicity_fit, os.path.join(out, "toxicity_fit.png"),
        title="Share of blooms with seafood toxicity", ylabel="Fraction of events",
    )

    if cfg.render_maps and len(result.points) == 0:
        logger.warning("No event has coordinates; skipping the map figures")
    elif cfg.render_maps:
        if world is None:
            world = load_world_boundaries(cfg.world_boundaries)
        figures["map"] = render.render_static_map(result.points, world, os.path.join(out, "map.png"))
        for mode in ("per_year", "cumulative"):
            figures[f"map_{mode}"] = render.render_animated_map(
                result.points, world, os.path.join(out, f"map_{mode}.gif"),
                mode=mode, frames_per_year=cfg.frames_per_year, fps=cfg.frames_per_second,
            )
    return figures


def write_artifacts(
    result: AnalysisResult,
    world: Optional[gpd.GeoDataFrame] = None,
    report_config: Optional[ReportConfig] = None,
) -> Dict[str, str]:
    """
    Figures, statistics JSON and (optionally) the DOCX report.

    Everything is written to a staging directory first and moved into the
    output directory only once every artifact exists, so a failed run
    leaves no partial output behind.
    """
    from .report import generate_docx_report, write_stats_json

    out_dir = result.config.output_dir
    staging = tempfile.mkdtemp(prefix="habtrend_")
    try:
        staged = render_figures(result, world, out=staging)
        staged["stats"] = write_stats_json(result, os.path.join(staging, "stats.json"))
        if result.config.write_report:
            staged["report"] = generate_docx_report(
                result, staged, os.path.join(staging, "report.docx"), config=report_config,
            )

        os.makedirs(out_dir, exist_ok=True)
        artifacts: Dict[str, str] = {}
        for name, path in staged.items():
            target = os.path.join(out_dir, os.path.basename(path))
            shutil.move(path, target)
            artifacts[name] = target
        return artifacts
    finally:
        shutil.rmtree(staging, ignore_errors=True)
