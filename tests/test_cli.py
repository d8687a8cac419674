import os

from habtrend.cli import build_parser, config_from_args, main


def test_cli_run_without_maps(three_events_csv, tmp_path, capsys):
    out = tmp_path / "out"
    code = main(["--data", three_events_csv, "--out", str(out), "--no-maps"])
    assert code == 0
    assert os.path.exists(out / "stats.json")
    assert os.path.exists(out / "report.docx")
    printed = capsys.readouterr().out
    assert "Loaded 3 events" in printed
    assert "Logistic primary" in printed


def test_cli_reports_format_errors(tmp_path, capsys):
    path = tmp_path / "bad.csv"
    path.write_text("latitude\n1\n")
    code = main(["--data", str(path), "--out", str(tmp_path / "out"), "--no-maps"])
    assert code == 1
    assert "eventYear" in capsys.readouterr().err


def test_rate_override_compares_against_preset():
    args = build_parser().parse_args(["--data", "x.csv", "--rate", "0.3", "--keep-all-years"])
    cfg = config_from_args(args)
    assert cfg.preset_name == "custom"
    assert cfg.logistic_rate == 0.3
    assert cfg.exclude_year is None
    assert cfg.compare_presets == ("primary", "alternate")


def test_cli_reports_unreadable_world_boundaries(three_events_csv, tmp_path, capsys):
    out = tmp_path / "out"
    code = main(["--data", three_events_csv, "--out", str(out), "--world", str(tmp_path / "missing.geojson")])
    assert code == 1
    assert "world boundaries" in capsys.readouterr().err
    assert not os.path.exists(out / "stats.json")
