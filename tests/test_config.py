import pytest

from habtrend.config import LOGISTIC_PRESETS, AnalysisConfig, get_preset


def test_presets_share_capacity_and_start():
    primary, alternate = LOGISTIC_PRESETS["primary"], LOGISTIC_PRESETS["alternate"]
    assert (primary.rate, alternate.rate) == (0.325, 0.2)
    assert primary.capacity == alternate.capacity == 500.0
    assert primary.initial_population == alternate.initial_population == 40.0


def test_from_preset_with_overrides():
    cfg = AnalysisConfig.from_preset("events.csv", "alternate", end_year=2010)
    assert cfg.logistic_rate == 0.2
    assert cfg.preset_name == "alternate"
    assert cfg.end_year == 2010
    assert cfg.validate() is cfg


def test_unknown_preset():
    with pytest.raises(ValueError, match="Unknown logistic preset"):
        get_preset("stale")


@pytest.mark.parametrize("field, value", [
    ("end_year", 1980),
    ("logistic_capacity", 0),
    ("frames_per_second", 0),
    ("frames_per_year", 0),
    ("missing_toxin_policy", "unknown"),
    ("compare_presets", ("nope",)),
])
def test_validate_rejects(field, value):
    cfg = AnalysisConfig(input_path="events.csv", **{field: value})
    with pytest.raises(ValueError):
        cfg.validate()


def test_parameters_differing_from_preset_are_custom():
    cfg = AnalysisConfig(input_path="events.csv", logistic_rate=0.2)
    assert cfg.preset_name == "custom"
    assert AnalysisConfig(input_path="events.csv").preset_name == "primary"


def test_replace_relabels_changed_parameters():
    from dataclasses import replace

    cfg = AnalysisConfig.from_preset("events.csv", "alternate")
    assert replace(cfg, logistic_capacity=800.0).preset_name == "custom"
    assert replace(cfg, end_year=2010).preset_name == "alternate"
