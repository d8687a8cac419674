"""
Figures
=======

Static plots and animated maps built from already-computed aggregates.
Nothing here changes data: every function takes series / GeoDataFrames,
writes one file and returns its path.

Animated maps have one renderer with two point-retention modes:
- "per_year": a frame shows only that year's blooms,
- "cumulative": earlier years stay on the map as a grey shadow.
"""

from __future__ import annotations
import logging
import os
from typing import List, Mapping, Optional, Sequence, Tuple

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from matplotlib import animation
import numpy as np

from .config import ANIMATION_MODES
from .errors import InsufficientDataError
from .models import LinearFit, LogisticSimulation

logger = logging.getLogger(__name__)

WORLD_STYLE = dict(color="#e6e6e6", edgecolor="#8c8c8c", linewidth=0.3)
POINT_COLOR = "#c0392b"
SHADOW_COLOR = "#7f8c8d"


def _prepare(out_path: str) -> str:
    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    return out_path


def _save(fig, out_path: str, dpi: int = 200) -> str:
    fig.tight_layout()
    fig.savefig(_prepare(out_path), dpi=dpi)
    plt.close(fig)
    logger.info("Saved %s", out_path)
    return out_path


def _map_axes(world, figsize=(10, 6)):
    fig, ax = plt.subplots(figsize=figsize)
    if world is not None and len(world):
        world.plot(ax=ax, **WORLD_STYLE)
    ax.set_axis_off()
    return fig, ax


def _xy(points) -> np.ndarray:
    if len(points) == 0:
        return np.empty((0, 2))
    return np.column_stack([points.geometry.x.to_numpy(), points.geometry.y.to_numpy()])


def render_static_map(points, world, out_path: str, *, title: str = "Harmful algal bloom events") -> str:
    """All projected events on one map, toxic events highlighted."""
    fig, ax = _map_axes(world)
    toxic = points["seafood_toxin"].eq(True).to_numpy(dtype=bool)
    xy = _xy(points)
    ax.scatter(xy[~toxic, 0], xy[~toxic, 1], s=6, color=SHADOW_COLOR, alpha=0.7, label="No seafood toxin")
    ax.scatter(xy[toxic, 0], xy[toxic, 1], s=6, color=POINT_COLOR, alpha=0.8, label="Seafood toxin")
    ax.set_title(title)
    ax.legend(loc="lower left", fontsize=8, frameon=False)
    return _save(fig, out_path)


def frame_points(xy: np.ndarray, event_years: np.ndarray, year: int, mode: str) -> Tuple[np.ndarray, np.ndarray]:
    """Points drawn for `year`: (current year, shadow of earlier years).

    The shadow is empty in "per_year" mode.
    """
    current = xy[event_years == year]
    if mode == "cumulative":
        return current, xy[event_years < year]
    return current, np.empty((0, 2))


def render_animated_map(
    points,
    world,
    out_path: str,
    *,
    mode: str = "per_year",
    frames_per_year: int = 1,
    fps: float = 2.0,
    years: Optional[Sequence[int]] = None,
    title: str = "Harmful algal blooms",
) -> str:
    """
    Write a GIF with one (or `frames_per_year`) frame(s) per year.

    `years` defaults to every year that has at least one projected event.
    """
    if mode not in ANIMATION_MODES:
        raise ValueError(f"mode must be one of {ANIMATION_MODES}")
    if frames_per_year < 1:
        raise ValueError("frames_per_year must be at least 1")
    if years is None:
        years = sorted({int(y) for y in points["event_year"]}) if len(points) else []
    if not years:
        raise InsufficientDataError("No geolocated events to animate")

    frames: List[int] = [y for y in years for _ in range(frames_per_year)]
    event_years = points["event_year"].to_numpy() if len(points) else np.array([], int)
    xy = _xy(points)

    fig, ax = _map_axes(world)
    if world is not None and len(world):
        x0, y0, x1, y1 = world.total_bounds
        ax.set_xlim(x0, x1)
        ax.set_ylim(y0, y1)
    shadow = ax.scatter([], [], s=5, color=SHADOW_COLOR, alpha=0.4)
    current = ax.scatter([], [], s=8, color=POINT_COLOR, alpha=0.9)
    title_obj = ax.set_title(title)

    def _update(i: int):
        year = frames[i]
        now, past = frame_points(xy, event_years, year, mode)
        current.set_offsets(now)
        shadow.set_offsets(past)
        title_obj.set_text(f"{title}: {year}")
        return shadow, current, title_obj

    ani = animation.FuncAnimation(fig, _update, frames=len(frames), interval=1000.0 / fps, blit=False)
    ani.save(_prepare(out_path), writer="pillow", fps=fps)
    plt.close(fig)
    logger.info("Saved %s (%s, %d frames)", out_path, mode, len(frames))
    return out_path


def render_scatter_with_fit(
    series: Mapping[int, float],
    fit: LinearFit,
    out_path: str,
    *,
    title: str = "Bloom events per year",
    ylabel: str = "Events",
) -> str:
    """Observed values as points, the OLS line over the same years."""
    years = sorted(series)
    x = np.array(years, dtype=float)
    y = np.array([series[k] for k in years], dtype=float)
    fig, ax = plt.subplots()
    ax.scatter(x, y, color="C0", label="Observed")
    ax.plot(x, fit.intercept + fit.slope * x, color="C1",
            label=f"OLS: slope={fit.slope:.3g}, R²={fit.r_squared:.3f}, p={fit.p_value:.2g}")
    ax.set_title(title)
    ax.set_xlabel("Year")
    ax.set_ylabel(ylabel)
    ax.legend(fontsize=8)
    return _save(fig, out_path)


def render_logistic_overlay(
    observed: Mapping[int, float],
    simulations: Sequence[Tuple[str, LogisticSimulation]],
    out_path: str,
    *,
    title: str = "Bloom events per year vs. logistic growth",
) -> str:
    """Observed counts with one curve per (label, simulation) pair."""
    years = sorted(observed)
    fig, ax = plt.subplots()
    ax.scatter(years, [observed[y] for y in years], color="C0", label="Observed")
    for i, (label, sim) in enumerate(simulations, start=1):
        ax.plot(sim.years, sim.values, color=f"C{i}",
                label=f"{label} (r={sim.rate:g}, K={sim.capacity:g})")
    ax.set_title(title)
    ax.set_xlabel("Year")
    ax.set_ylabel("Events")
    ax.legend(fontsize=8)
    return _save(fig, out_path)


def render_residual_plot(
    observed: Mapping[int, float],
    simulated: Mapping[int, float],
    out_path: str,
    *,
    title: str = "Residuals (observed − simulated)",
) -> str:
    """Residuals on the shared years, as stems around zero."""
    years = sorted(set(observed) & set(simulated))
    resid = [float(observed[y]) - float(simulated[y]) for y in years]
    fig, ax = plt.subplots()
    ax.axhline(0.0, color="black", linewidth=0.8)
    if years:
        ax.stem(years, resid)
    ax.set_title(title)
    ax.set_xlabel("Year")
    ax.set_ylabel("Residual")
    return _save(fig, out_path)
