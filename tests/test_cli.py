"""Tests for scatterbench CLI commands."""

import json

from typer.testing import CliRunner

from scatterbench import codec
from scatterbench.cli.main import app

runner = CliRunner()

FAKE = "fake_solvers:FakeSolver"
SLOWER = "fake_solvers:slower_solver"


class TestRunCommand:
    """Tests for scatterbench run."""

    def test_run_basic(self, bench_project):
        """Test a run over the project config prints every cell."""
        result = runner.invoke(app, ["run", "--solver", FAKE])

        assert result.exit_code == 0
        assert "Sphere" in result.stdout
        assert "Ackley" in result.stdout
        assert "base seed: 7" in result.stdout

    def test_run_save_json(self, bench_project):
        """Test results are saved for later comparison."""
        result = runner.invoke(
            app,
            ["run", "--solver", FAKE, "--function", "sphere", "--dim", "5", "--save-json", "out.json"],
        )

        assert result.exit_code == 0
        report = codec.load(bench_project / "out.json")
        assert list(report.keys()) == [("Sphere", 5)]
        assert report["Sphere", 5].sample_count == 4

    def test_run_against_baseline(self, bench_project):
        """Test comparing against a saved baseline and failing on regression."""
        first = runner.invoke(app, ["run", "--solver", FAKE, "--save-json", "baseline.json"])
        assert first.exit_code == 0

        result = runner.invoke(
            app,
            [
                "run",
                "--solver",
                SLOWER,
                "--load-baseline",
                "baseline.json",
                "--fail-on-regression",
            ],
        )

        assert result.exit_code == 1
        assert "Loaded baseline" in result.stdout
        assert "Regressions in" in result.stdout

    def test_run_same_solver_no_regression(self, bench_project):
        """Test rerunning the same solver against its own baseline."""
        runner.invoke(app, ["run", "--solver", FAKE, "--save-json", "baseline.json"])

        result = runner.invoke(
            app,
            ["run", "--solver", FAKE, "--load-baseline", "baseline.json", "--fail-on-regression"],
        )

        assert result.exit_code == 0
        assert "No regressions" in result.stdout

    def test_run_unknown_function(self, bench_project):
        """Test an unknown function exits 1 without running."""
        result = runner.invoke(app, ["run", "--solver", FAKE, "--function", "nope"])

        assert result.exit_code == 1
        assert "Error" in result.stdout

    def test_run_missing_baseline(self, bench_project):
        """Test a missing baseline fails before the suite runs."""
        result = runner.invoke(
            app, ["run", "--solver", FAKE, "--load-baseline", "missing.json", "--save-json", "out.json"]
        )

        assert result.exit_code == 1
        assert not (bench_project / "out.json").exists()

    def test_run_bad_solver(self, bench_project):
        """Test an unloadable solver path."""
        result = runner.invoke(app, ["run", "--solver", "fake_solvers:not_a_solver"])

        assert result.exit_code == 1
        assert "not a solver" in result.stdout


class TestCompareCommand:
    """Tests for scatterbench compare."""

    def _write_reports(self, directory, summary_factory, report_factory):
        baseline = report_factory({("sphere", 10): summary_factory(success_rate=0.95, runtime=1.2)})
        candidate = report_factory({("sphere", 10): summary_factory(success_rate=0.80, runtime=1.5)})
        codec.save(baseline, directory / "baseline.json")
        codec.save(candidate, directory / "candidate.json")

    def test_compare_reports(self, bench_project, summary_factory, report_factory):
        """Test a comparison is printed and exits 0 by default."""
        self._write_reports(bench_project, summary_factory, report_factory)

        result = runner.invoke(app, ["compare", "baseline.json", "candidate.json"])

        assert result.exit_code == 0
        assert "Regressions in 1 cells" in result.stdout

    def test_fail_on_regression(self, bench_project, summary_factory, report_factory):
        """Test CI gating on a regression."""
        self._write_reports(bench_project, summary_factory, report_factory)

        result = runner.invoke(
            app, ["compare", "baseline.json", "candidate.json", "--fail-on-regression"]
        )

        assert result.exit_code == 1

    def test_loose_thresholds(self, bench_project, summary_factory, report_factory):
        """Test thresholds from the command line."""
        self._write_reports(bench_project, summary_factory, report_factory)

        result = runner.invoke(
            app,
            [
                "compare",
                "baseline.json",
                "candidate.json",
                "--sr-threshold",
                "0.5",
                "--runtime-threshold",
                "0.5",
                "--fail-on-regression",
            ],
        )

        assert result.exit_code == 0
        assert "No regressions" in result.stdout

    def test_output_written(self, bench_project, summary_factory, report_factory):
        """Test the comparison report is saved as JSON."""
        self._write_reports(bench_project, summary_factory, report_factory)

        result = runner.invoke(
            app, ["compare", "baseline.json", "candidate.json", "-o", "comparison.json"]
        )

        assert result.exit_code == 0
        comparison = codec.load_comparison(bench_project / "comparison.json")
        assert comparison.has_regression

    def test_malformed_input(self, bench_project, summary_factory, report_factory):
        """Test a malformed file exits 1."""
        self._write_reports(bench_project, summary_factory, report_factory)
        (bench_project / "candidate.json").write_text("[]")

        result = runner.invoke(app, ["compare", "baseline.json", "candidate.json"])

        assert result.exit_code == 1
        assert "candidate.json" in result.stdout


class TestABCommand:
    """Tests for scatterbench ab."""

    def test_ab_detects_regression(self, bench_project):
        """Test an in-process A/B run with saved outputs."""
        result = runner.invoke(
            app,
            ["ab", FAKE, SLOWER, "--function", "sphere", "-o", "ab", "--fail-on-regression"],
        )

        assert result.exit_code == 1
        assert (bench_project / "ab" / "baseline.json").exists()
        assert (bench_project / "ab" / "candidate.json").exists()
        comparison = codec.load_comparison(bench_project / "ab" / "comparison.json")
        assert all(entry.paired for entry in comparison.entries)

    def test_ab_same_solver(self, bench_project):
        """Test identical solvers compare clean."""
        result = runner.invoke(app, ["ab", FAKE, FAKE, "--fail-on-regression"])

        assert result.exit_code == 0
        assert "No regressions" in result.stdout

    def test_ab_bad_solver(self, bench_project):
        """Test an unloadable solver exits 1."""
        result = runner.invoke(app, ["ab", FAKE, "fake_solvers:Missing"])

        assert result.exit_code == 1


class TestSampleCommand:
    """Tests for scatterbench sample."""

    def test_sample_export(self, bench_project):
        """Test samples and the contour grid are written for plotting."""
        result = runner.invoke(
            app,
            [
                "sample",
                "sixhumpcamel",
                "--runs",
                "3",
                "--base-seed",
                "1",
                "--resolution",
                "10",
                "--solver",
                FAKE,
                "-o",
                "plots/camel.json",
            ],
        )

        assert result.exit_code == 0
        data = json.loads((bench_project / "plots" / "camel.json").read_text())
        assert data["function"] == "SixHumpCamel"
        assert len(data["samples"]) == 3
        assert len(data["grid"]["z"]) == 10

    def test_sample_out_of_bounds(self, bench_project):
        """Test a solver exploring outside the box exits 1."""
        result = runner.invoke(
            app,
            ["sample", "crossintray", "--solver", "fake_solvers:StrayingSolver", "-o", "s.json"],
        )

        assert result.exit_code == 1
        assert "outside" in result.stdout
        assert not (bench_project / "s.json").exists()

    def test_sample_unknown_function(self, bench_project):
        """Test an unknown function exits 1."""
        result = runner.invoke(app, ["sample", "nope", "--solver", FAKE])

        assert result.exit_code == 1


class TestFunctionsCommand:
    """Tests for scatterbench functions."""

    def test_lists_problems(self):
        """Test every registered problem is listed."""
        result = runner.invoke(app, ["functions"])

        assert result.exit_code == 0
        assert "Rastrigin" in result.stdout
        assert "SixHumpCamel" in result.stdout
