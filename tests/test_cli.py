"""Command-line runner."""

from rc_membrane.cli import main


def test_list_panels(capsys):
    assert main(["--list"]) == 0
    out = capsys.readouterr().out
    assert "PV10" in out
    assert "Total: 39 panels" in out


def test_requires_case_or_panel(capsys):
    assert main([]) == 1


def test_panel_without_shear_is_an_error(capsys):
    assert main(["--panel", "PV10"]) == 1
    assert "--shear is required" in capsys.readouterr().out


def test_unknown_panel_is_an_error(capsys):
    assert main(["--panel", "PV99", "--shear", "1.0"]) == 1


def test_panel_run_writes_csv(tmp_path, capsys):
    csv = tmp_path / "pv10.csv"
    code = main(["--panel", "PV10", "--shear", "1.0", "--steps", "5", "--quiet", "--csv", str(csv)])
    assert code == 0
    assert csv.exists()
    out = capsys.readouterr().out
    assert "[run] PV10" in out
    assert "converged      : True" in out
    assert "[membrane]" not in out


def test_case_file_run(tmp_path, capsys):
    path = tmp_path / "case.yaml"
    path.write_text("name: demo\npanel: PV10\nloading: {txy: 0.8}\nsolver: {steps: 4}\n")
    assert main(["--case", str(path), "--model", "dsfm"]) == 0
    out = capsys.readouterr().out
    assert "[material] model=dsfm" in out
    assert "[membrane] LS=001" in out
