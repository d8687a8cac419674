from __future__ import annotations

"""
Report writer
-------------
Turns an `AnalysisResult` into:
- a JSON file of scalar statistics (slope, intercept, p-value, R², SSE),
- a DOCX report embedding the static figures and the same statistics.

python-docx is imported lazily, so the analysis can run without it.
"""

from datetime import datetime
import json
import os
from typing import Any, Dict, Mapping, Optional, TYPE_CHECKING

from .config import ReportConfig
from .models import LinearFit

if TYPE_CHECKING:
    from .pipeline import AnalysisResult


def _fit_dict(fit: LinearFit) -> Dict[str, Any]:
    return {
        "slope": fit.slope,
        "intercept": fit.intercept,
        "p_value": fit.p_value,
        "r_squared": fit.r_squared,
        "stderr": fit.stderr,
        "n": fit.n,
    }


def stats_dict(result: "AnalysisResult") -> Dict[str, Any]:
    """Scalar statistics of one run, ready for JSON."""
    cfg = result.config
    return {
        "input_path": cfg.input_path,
        "events": len(result.events),
        "events_without_coordinates": result.missing_coordinates,
        "events_without_toxin_flag": result.missing_toxin_flags,
        "missing_toxin_policy": cfg.missing_toxin_policy,
        "exclude_year": cfg.exclude_year,
        "yearly_counts": {str(y): n for y, n in result.yearly_counts.items()},
        "toxicity_rates": {
            str(y): {"toxic": r.toxic, "nontoxic": r.nontoxic, "total": r.total, "fraction": r.fraction}
            for y, r in result.toxicity_rates.items()
        },
        "frequency_fit": _fit_dict(result.frequency_fit),
        "toxicity_fit": _fit_dict(result.toxicity_fit),
        "logistic": {
            label: {
                "rate": sim.rate,
                "capacity": sim.capacity,
                "initial_population": sim.initial_population,
                "start_year": sim.years[0],
                "end_year": sim.years[-1],
                "sse": result.sse[label],
            }
            for label, sim in result.simulations.items()
        },
    }


def write_stats_json(result: "AnalysisResult", out_path: str) -> str:
    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(stats_dict(result), f, indent=2)
    return out_path


def generate_docx_report(
    result: "AnalysisResult",
    figures: Mapping[str, str],
    out_path: str,
    *,
    config: Optional[ReportConfig] = None,
) -> str:
    """
    Write the DOCX report for one analysis run.

    `figures` maps figure names to files; PNGs are embedded, animations are
    listed by path.
    """
    config = config or ReportConfig()

    # Lazy imports: only required when a report is written.
    try:
        from docx import Document
        from docx.shared import Inches, Pt
        from docx.enum.text import WD_ALIGN_PARAGRAPH
    except ImportError as e:
        raise ImportError(
            "Missing dependency: python-docx.\n"
            "Install it with: python -m pip install python-docx"
        ) from e

    cfg = result.config
    doc = Document()
    style = doc.styles["Normal"]
    style.font.name = "Calibri"
    style.font.size = Pt(11)

    def _center_title(text: str, size: int, bold: bool = False, italic: bool = False) -> None:
        p = doc.add_paragraph()
        r = p.add_run(text)
        r.bold = bold
        r.italic = italic
        r.font.size = Pt(size)
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER

    def _kv(key: str, value: str) -> None:
        p = doc.add_paragraph()
        r = p.add_run(f"{key}: ")
        r.bold = True
        p.add_run(value)

    def _table(header, rows) -> None:
        t = doc.add_table(rows=1, cols=len(header))
        for cell, text in zip(t.rows[0].cells, header):
            cell.text = text
        for row in rows:
            for cell, text in zip(t.add_row().cells, row):
                cell.text = text

    _center_title(config.title, 22, bold=True)
    _center_title(config.subtitle, 12, italic=True)

    doc.add_paragraph("")
    years = sorted(result.yearly_counts)
    _kv("Dataset", config.dataset_name)
    _kv("Events analysed", str(len(result.events)))
    if years:
        _kv("Years fitted", f"{years[0]} to {years[-1]}")
    if cfg.exclude_year is not None:
        _kv("Excluded (incomplete) year", str(cfg.exclude_year))

    doc.add_heading("Dataset citation", level=1)
    cit = config.citation
    if cit.file_name:
        doc.add_paragraph(f"Data file used: {cit.file_name}")
    accessed = f" (accessed {cit.access_date_iso})" if cit.access_date_iso else ""
    doc.add_paragraph(f"{cit.institutional_author}{accessed}. {cit.database_name}. {cit.website}.")

    doc.add_heading("Data completeness", level=1)
    _table(["Field", "Available", "Missing"], [
        ["Coordinates", str(len(result.events) - result.missing_coordinates), str(result.missing_coordinates)],
        ["Seafood-toxin flag", str(len(result.events) - result.missing_toxin_flags), str(result.missing_toxin_flags)],
    ])
    doc.add_paragraph(
        "Events without coordinates are left off the maps but counted in every yearly series. "
        f"Missing toxin flags are handled with the '{cfg.missing_toxin_policy}' policy."
    )

    doc.add_heading("Trend statistics", level=1)
    fmt = lambda v: f"{v:.4g}"
    _table(["Series", "Slope", "Intercept", "p-value", "R²", "n"], [
        [name, fmt(f.slope), fmt(f.intercept), fmt(f.p_value), fmt(f.r_squared), str(f.n)]
        for name, f in (("Events per year", result.frequency_fit),
                        ("Toxic fraction", result.toxicity_fit))
    ])

    doc.add_paragraph("")
    _table(["Logistic model", "Rate", "Capacity", "N0", "SSE"], [
        [label, fmt(sim.rate), fmt(sim.capacity), fmt(sim.initial_population), f"{result.sse[label]:.1f}"]
        for label, sim in result.simulations.items()
    ])

    doc.add_heading("Figures", level=1)
    for name, path in figures.items():
        if path.lower().endswith(".png"):
            doc.add_paragraph(name.replace("_", " ").capitalize())
            doc.add_picture(path, width=Inches(6.0))
        elif path.lower().endswith(".gif"):
            doc.add_paragraph(f"Animation ({name.replace('_', ' ')}): {os.path.basename(path)}")

    doc.add_heading("Reproducibility footer", level=1)
    from . import __version__
    doc.add_paragraph(f"habtrend version: {__version__}")
    doc.add_paragraph(f"Report generated at: {datetime.now().isoformat(timespec='seconds')}")
    doc.add_paragraph(f"Input: {cfg.input_path}")
    doc.add_paragraph(
        f"Logistic model '{cfg.preset_name}': r={cfg.logistic_rate}, K={cfg.logistic_capacity}, "
        f"N0={cfg.initial_population}, {cfg.start_year}-{cfg.end_year}"
    )

    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    doc.save(out_path)
    return out_path
