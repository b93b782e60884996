"""Tests for the mua command line."""

import json

import matplotlib

matplotlib.use("Agg")

import pytest

from mua_engine.cli import main


@pytest.fixture
def dcv_file(tmp_path):
    path = str(tmp_path / "dcv.json")
    main(["example", "dcv", "-o", path])
    return path


class TestExample:
    def test_creates_file(self, dcv_file, capsys):
        with open(dcv_file) as f:
            data = json.load(f)
        assert data["name"] == "10 V DC"


class TestAnalyze:
    def test_summary(self, dcv_file, capsys):
        main(["analyze", dcv_file])
        out = capsys.readouterr().out
        assert "10 V DC" in out
        assert "TUR:" in out

    def test_json(self, dcv_file, capsys):
        capsys.readouterr()
        main(["analyze", dcv_file, "--json"])
        data = json.loads(capsys.readouterr().out)
        assert data["uc"] == pytest.approx(62.9153, abs=1e-3)
        assert data["k"] == 2.0
        assert data["veff"] == "inf"

    def test_student_t_override(self, dcv_file, capsys):
        capsys.readouterr()
        main(["analyze", dcv_file, "--json", "--student-t", "--risk", "0.1"])
        data = json.loads(capsys.readouterr().out)
        assert data["k"] == 1.96
        assert data["target_consumer_risk"] == 0.1

    def test_html_report(self, dcv_file, tmp_path):
        report = tmp_path / "report.html"
        main(["analyze", dcv_file, "--report", str(report)])
        assert "<!DOCTYPE html>" in report.read_text(encoding="utf-8")

    def test_text_report(self, dcv_file, tmp_path):
        report = tmp_path / "report.txt"
        main(["analyze", dcv_file, "--report", str(report)])
        assert "END OF REPORT" in report.read_text(encoding="utf-8")

    def test_save_plots(self, dcv_file, tmp_path):
        base = tmp_path / "out.png"
        main(["analyze", dcv_file, "--save-plots", str(base)])
        assert (tmp_path / "out_contributions.png").exists()
        assert (tmp_path / "out_guard_band.png").exists()

    def test_save_plots_without_extension(self, dcv_file, tmp_path):
        main(["analyze", dcv_file, "--save-plots", str(tmp_path / "charts")])
        assert (tmp_path / "charts_contributions.png").exists()
        assert (tmp_path / "charts_guard_band.png").exists()
        assert not (tmp_path / "charts").exists()

    def test_missing_file(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["analyze", str(tmp_path / "nope.json")])
        assert exc.value.code == 1
        assert "Cannot load" in capsys.readouterr().err

    def test_no_command(self):
        with pytest.raises(SystemExit) as exc:
            main([])
        assert exc.value.code == 0
