import pytest

from habtrend.errors import InsufficientDataError, IntegrationError
from habtrend.fit import fit_linear, logistic_closed_form, simulate_logistic, sum_squared_error
from habtrend import fit as fit_module


def test_perfect_linear_series():
    series = {y: 10 * (y - 1990) for y in range(1990, 2001)}
    fit = fit_linear(series)
    assert fit.slope == pytest.approx(10.0)
    assert fit.intercept == pytest.approx(-19900.0)
    assert fit.r_squared == pytest.approx(1.0)
    assert fit.p_value == pytest.approx(0.0, abs=1e-12)
    assert fit.n == 11
    assert fit.predict(2010) == pytest.approx(200.0)


def test_noisy_series_has_intermediate_r_squared():
    series = {1990: 1, 1991: 3, 1992: 2, 1993: 5, 1994: 4, 1995: 6}
    fit = fit_linear(series)
    assert 0.0 < fit.r_squared < 1.0
    assert 0.0 < fit.p_value < 0.05
    assert fit.slope > 0


def test_fit_ignores_insertion_order():
    a = fit_linear({2000: 1.0, 1990: 3.0, 1995: 2.5})
    b = fit_linear({1990: 3.0, 1995: 2.5, 2000: 1.0})
    assert a == b


def test_linear_fit_needs_two_years():
    with pytest.raises(InsufficientDataError):
        fit_linear({2000: 5})


def test_logistic_is_deterministic():
    a = simulate_logistic(40, 0.325, 500, 1990, 2021)
    b = simulate_logistic(40, 0.325, 500, 1990, 2021)
    assert a.years == b.years
    assert a.values == pytest.approx(b.values, rel=1e-6)


def test_logistic_grows_toward_capacity():
    sim = simulate_logistic(40, 0.325, 500, 1990, 2021)
    series = sim.as_series()
    assert sim.years[0] == 1990 and sim.years[-1] == 2021
    assert len(sim.values) == 32
    assert series[1990] == pytest.approx(40.0)
    assert all(b >= a for a, b in zip(sim.values, sim.values[1:]))
    assert series[1990] < series[2021] < 500


def test_logistic_matches_closed_form():
    sim = simulate_logistic(40, 0.2, 500, 1990, 2021)
    exact = logistic_closed_form(40, 0.2, 500, list(sim.years))
    for year, value in sim.as_series().items():
        assert value == pytest.approx(exact[year], rel=1e-5)


def test_logistic_single_year():
    sim = simulate_logistic(40, 0.325, 500, 2000, 2000)
    assert sim.as_series() == {2000: 40.0}


@pytest.mark.parametrize("kwargs", [
    dict(capacity=0),
    dict(initial_population=-1),
    dict(start_year=2000, end_year=1999),
])
def test_logistic_rejects_bad_parameters(kwargs):
    params = dict(initial_population=40, rate=0.325, capacity=500, start_year=1990, end_year=2021)
    params.update(kwargs)
    with pytest.raises(ValueError):
        simulate_logistic(**params)


def test_logistic_solver_failure_raises(monkeypatch):
    class Failed:
        success = False
        message = "step size too small"

    monkeypatch.setattr(fit_module, "solve_ivp", lambda *a, **k: Failed())
    with pytest.raises(IntegrationError, match="step size"):
        simulate_logistic(40, 0.325, 500, 1990, 2021)


def test_sse_identical_series_is_zero():
    series = {1990: 10.0, 1991: 20.0, 1992: 35.5}
    assert sum_squared_error(series, dict(series)) == 0.0


def test_sse_example():
    assert sum_squared_error({1990: 10, 1991: 20}, {1990: 15, 1991: 15}) == 50.0


def test_sse_uses_shared_years_only():
    observed = {1989: 100, 1990: 10, 1991: 20}
    simulated = {1990: 15, 1991: 15, 1992: 1000}
    assert sum_squared_error(observed, simulated) == 50.0
    assert sum_squared_error({1990: 1}, {1991: 2}) == 0.0
