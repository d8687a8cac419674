import os

import numpy as np
import pytest
from PIL import Image

from habtrend.errors import InsufficientDataError
from habtrend.fit import fit_linear, simulate_logistic
from habtrend.geo import project_events
from habtrend.models import BloomEvent
from habtrend.render import (
    frame_points,
    render_animated_map,
    render_logistic_overlay,
    render_residual_plot,
    render_scatter_with_fit,
    render_static_map,
)


@pytest.fixture
def points():
    events = [
        BloomEvent(event_id=i, event_year=1995 + i % 3, latitude=10.0 + i, longitude=-100.0 + 2 * i,
                   seafood_toxin=bool(i % 2))
        for i in range(9)
    ]
    return project_events(events)


def test_static_map(points, world, tmp_path):
    out = render_static_map(points, world, str(tmp_path / "map.png"))
    assert os.path.getsize(out) > 0


@pytest.mark.parametrize("mode", ["per_year", "cumulative"])
def test_animated_map_modes(points, world, tmp_path, mode):
    out = render_animated_map(points, world, str(tmp_path / f"{mode}.gif"), mode=mode, fps=4)
    with Image.open(out) as img:
        assert img.format == "GIF"
        assert getattr(img, "n_frames", 1) >= 2


def test_animated_map_keeps_points_intact(points, world, tmp_path):
    before = points.copy()
    render_animated_map(points, world, str(tmp_path / "a.gif"), mode="cumulative", frames_per_year=2)
    assert points.equals(before)


def test_animated_map_rejects_unknown_mode(points, world, tmp_path):
    with pytest.raises(ValueError):
        render_animated_map(points, world, str(tmp_path / "x.gif"), mode="trail")


def test_animated_map_needs_points(world, tmp_path):
    empty = project_events([])
    with pytest.raises(InsufficientDataError):
        render_animated_map(empty, world, str(tmp_path / "x.gif"))


def test_line_plots(tmp_path):
    counts = {1990: 40, 1991: 55, 1992: 70, 1993: 80}
    fit = fit_linear(counts)
    sim = simulate_logistic(40, 0.325, 500, 1990, 1993)
    paths = [
        render_scatter_with_fit(counts, fit, str(tmp_path / "fit.png")),
        render_logistic_overlay(counts, [("primary", sim)], str(tmp_path / "logistic.png")),
        render_residual_plot(counts, sim.as_series(), str(tmp_path / "nested" / "resid.png")),
    ]
    for p in paths:
        assert os.path.getsize(p) > 0


def _year_points(points, years):
    mask = points["event_year"].isin(years).to_numpy()
    return np.column_stack([points.geometry.x.to_numpy(), points.geometry.y.to_numpy()])[mask]


def test_per_year_frames_show_only_that_year(points):
    xy = np.column_stack([points.geometry.x.to_numpy(), points.geometry.y.to_numpy()])
    years = points["event_year"].to_numpy()
    current, shadow = frame_points(xy, years, 1996, "per_year")
    np.testing.assert_array_equal(current, _year_points(points, [1996]))
    assert shadow.shape == (0, 2)


def test_cumulative_frames_keep_earlier_years_as_shadow(points):
    xy = np.column_stack([points.geometry.x.to_numpy(), points.geometry.y.to_numpy()])
    years = points["event_year"].to_numpy()
    current, shadow = frame_points(xy, years, 1997, "cumulative")
    np.testing.assert_array_equal(current, _year_points(points, [1997]))
    np.testing.assert_array_equal(shadow, _year_points(points, [1995, 1996]))

    first, nothing_before = frame_points(xy, years, 1995, "cumulative")
    assert len(first) == 3
    assert len(nothing_before) == 0
