"""
HABTREND Command Line Interface (CLI)
=====================================

Runs one full report:

    python -m habtrend.cli --data "path/to/haedat.csv" --out outputs

It loads the event table once, fits the trends, writes the figures, a
statistics JSON and a DOCX report into --out, and prints the headline
numbers. The input file is never modified.
"""

from __future__ import annotations
import argparse
import logging
import os
import sys
from dataclasses import replace
from typing import List, Optional

from .config import LOGISTIC_PRESETS, AnalysisConfig, DatasetCitation, ReportConfig
from .errors import HabTrendError


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="habtrend", description="Harmful algal bloom trend report")
    ap.add_argument("--data", required=True, help="Path to the bloom event table (CSV/TSV/XLSX)")
    ap.add_argument("--out", default="outputs", help="Output directory")
    ap.add_argument("--world", default=None, help="World boundary polygons (path or URL)")
    ap.add_argument("--exclude-year", type=int, default=2022, help="Incomplete year left out of the counts")
    ap.add_argument("--keep-all-years", action="store_true", help="Do not exclude any year")
    ap.add_argument("--preset", default="primary", choices=sorted(LOGISTIC_PRESETS))
    ap.add_argument("--rate", type=float, default=None, help="Override the logistic growth rate")
    ap.add_argument("--capacity", type=float, default=None, help="Override the carrying capacity")
    ap.add_argument("--start-year", type=int, default=1990)
    ap.add_argument("--end-year", type=int, default=2021)
    ap.add_argument("--missing-toxin", default="nontoxic", choices=("nontoxic", "exclude"))
    ap.add_argument("--fps", type=float, default=2.0, help="Animation frames per second")
    ap.add_argument("--frames-per-year", type=int, default=1)
    ap.add_argument("--no-maps", action="store_true", help="Skip static and animated maps")
    ap.add_argument("--no-report", action="store_true", help="Skip the DOCX report")
    ap.add_argument("-v", "--verbose", action="store_true")
    return ap


def config_from_args(args: argparse.Namespace) -> AnalysisConfig:
    cfg = AnalysisConfig.from_preset(
        args.data,
        args.preset,
        exclude_year=None if args.keep_all_years else args.exclude_year,
        start_year=args.start_year,
        end_year=args.end_year,
        missing_toxin_policy=args.missing_toxin,
        frames_per_second=args.fps,
        frames_per_year=args.frames_per_year,
        output_dir=args.out,
        render_maps=not args.no_maps,
        write_report=not args.no_report,
    )
    if args.world:
        cfg = replace(cfg, world_boundaries=args.world)
    if args.rate is not None or args.capacity is not None:
        cfg = replace(
            cfg,
            preset_name="custom",
            logistic_rate=args.rate if args.rate is not None else cfg.logistic_rate,
            logistic_capacity=args.capacity if args.capacity is not None else cfg.logistic_capacity,
            compare_presets=(args.preset,) + tuple(p for p in cfg.compare_presets if p != args.preset),
        )
    return cfg.validate()


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the HABTREND CLI.

    1) Parse arguments into an AnalysisConfig
    2) Run the analysis
    3) Write artifacts and print the headline statistics
    """
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(levelname)s - %(message)s',
    )

    from .pipeline import run_analysis, write_artifacts

    try:
        cfg = config_from_args(args)
        print("Loading dataset...")
        result = run_analysis(cfg)
        print(f"Loaded {len(result.events)} events ({result.missing_coordinates} without coordinates).")
        report_cfg = ReportConfig(citation=DatasetCitation(file_name=os.path.basename(cfg.input_path)))
        artifacts = write_artifacts(result, report_config=report_cfg)
    except (HabTrendError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    f, t = result.frequency_fit, result.toxicity_fit
    print(f"Events/year: slope={f.slope:.3f} intercept={f.intercept:.1f} p={f.p_value:.3g} R2={f.r_squared:.3f}")
    print(f"Toxic fraction: slope={t.slope:.4f} intercept={t.intercept:.3f} p={t.p_value:.3g} R2={t.r_squared:.3f}")
    for label, sse in result.sse.items():
        print(f"Logistic {label}: SSE={sse:.1f}")
    for name, path in artifacts.items():
        print(f"  {name}: {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
