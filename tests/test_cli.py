"""CLI behavior tests for license-gate."""
import json
from pathlib import Path
from unittest.mock import patch

from click.testing import CliRunner

from license_gate import __version__
from license_gate.cli import main
from license_gate.constants import EXIT_ERROR, EXIT_NOT_APPROVED, EXIT_SUCCESS
from license_gate.exceptions import CollectionError
from license_gate.models.dependency import Dependency, DependencySet
from license_gate.models.evaluation import ProvenanceResult

DEPENDENCIES = DependencySet(
    dependencies=[
        Dependency(name="left-pad", version="1.0.0", declared_license="MIT"),
        Dependency(name="optimist", version="0.6.0", declared_license="GPL-2.0-only"),
    ],
    parents={("left-pad", "1.0.0"): None, ("optimist", "0.6.0"): ("left-pad", "1.0.0")},
)


def _check(cli_runner: CliRunner, args: list[str], provenance: dict | None = None):
    with patch("license_gate.cli.collect_dependencies", return_value=DEPENDENCIES):
        with patch("license_gate.cli._fetch_provenance", return_value=provenance or {}):
            return cli_runner.invoke(main, ["check", *args])


def test_cli_help(cli_runner: CliRunner) -> None:
    """Test that --help outputs usage information."""
    result = cli_runner.invoke(main, ["--help"])

    assert result.exit_code == 0
    assert "License Gate" in result.output
    assert "check" in result.output
    assert "init" in result.output


def test_cli_version(cli_runner: CliRunner) -> None:
    """Test that --version outputs correct version."""
    result = cli_runner.invoke(main, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


class TestCheckCommand:
    """Tests for the check command."""

    def test_all_approved_exits_zero(self, cli_runner: CliRunner) -> None:
        result = _check(
            cli_runner, ["--license", "MIT", "--whitelist", "optimist@<=0.6.1"]
        )

        assert result.exit_code == EXIT_SUCCESS
        assert "left-pad@1.0.0\n  Approved by rule" in result.output
        assert "optimist@0.6.0\n  Approved by whitelist" in result.output

    def test_rejected_dependency_exits_one(self, cli_runner: CliRunner) -> None:
        result = _check(cli_runner, ["--license", "MIT"])

        assert result.exit_code == EXIT_NOT_APPROVED
        assert "optimist@0.6.0\n  NOT APPROVED" in result.output

    def test_errors_only(self, cli_runner: CliRunner) -> None:
        result = _check(cli_runner, ["--license", "MIT", "--errors-only"])

        assert "left-pad" not in result.output
        assert "optimist@0.6.0" in result.output

    def test_quiet_prints_nothing(self, cli_runner: CliRunner) -> None:
        result = _check(cli_runner, ["--license", "MIT", "--quiet"])

        assert result.exit_code == EXIT_NOT_APPROVED
        assert result.output == ""

    def test_ndjson(self, cli_runner: CliRunner) -> None:
        result = _check(cli_runner, ["--license", "MIT", "--ndjson"])

        records = [json.loads(line) for line in result.output.splitlines()]
        assert [r["name"] for r in records] == ["left-pad", "optimist"]
        assert [r["approved"] for r in records] == [True, False]

    def test_verbose_shows_required_by(self, cli_runner: CliRunner) -> None:
        result = _check(cli_runner, ["--license", "MIT", "--verbose"])

        assert "  Required by: project > left-pad@1.0.0" in result.output

    def test_require_provenance(self, cli_runner: CliRunner) -> None:
        provenance = {
            ("left-pad", "1.0.0"): ProvenanceResult(
                has_file_level_data=True, metadata_matches_file_level=True
            ),
            ("optimist", "0.6.0"): None,
        }

        result = _check(
            cli_runner,
            ["--license", "MIT OR GPL-2.0-only", "--require-provenance"],
            provenance,
        )

        assert result.exit_code == EXIT_NOT_APPROVED
        assert "left-pad@1.0.0\n  Approved by rule" in result.output
        assert "optimist@0.6.0\n  NOT APPROVED" in result.output

    def test_reads_policy_file(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        (tmp_path / ".license-gate.yaml").write_text(
            "license: MIT\nwhitelist:\n  optimist: '*'\n"
        )

        result = _check(cli_runner, ["--project", str(tmp_path)])

        assert result.exit_code == EXIT_SUCCESS

    def test_missing_policy_file(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        result = _check(cli_runner, ["--project", str(tmp_path)])

        assert result.exit_code == EXIT_ERROR
        assert "license-gate init" in result.output

    def test_invalid_whitelist(self, cli_runner: CliRunner) -> None:
        result = _check(cli_runner, ["--whitelist", "optimist"])

        assert result.exit_code == EXIT_ERROR
        assert "ConfigurationError" in result.output

    def test_collection_error(self, cli_runner: CliRunner) -> None:
        with patch(
            "license_gate.cli.collect_dependencies",
            side_effect=CollectionError("Cannot read pyproject.toml"),
        ):
            result = cli_runner.invoke(main, ["check", "--license", "MIT"])

        assert result.exit_code == EXIT_ERROR
        assert "Cannot read pyproject.toml" in result.output

    def test_empty_project_exits_zero(self, cli_runner: CliRunner) -> None:
        with patch(
            "license_gate.cli.collect_dependencies", return_value=DependencySet()
        ):
            result = cli_runner.invoke(main, ["check", "--license", "MIT"])

        assert result.exit_code == EXIT_SUCCESS
        assert result.output == ""

    def test_corrections_file(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        corrections = tmp_path / "corrections.yaml"
        corrections.write_text("optimist:\n  '0.6.0': MIT\n")

        result = _check(
            cli_runner,
            [
                "--license",
                "MIT",
                "--corrections",
                "--corrections-file",
                str(corrections),
            ],
        )

        assert result.exit_code == EXIT_SUCCESS
        assert "  Corrected: crowd-sourced-license-correction" in result.output


class TestInitCommand:
    """Tests for the init command."""

    def test_creates_policy_file(self, cli_runner: CliRunner) -> None:
        with cli_runner.isolated_filesystem():
            result = cli_runner.invoke(main, ["init"])

            assert result.exit_code == EXIT_SUCCESS
            assert "Created" in result.output
            assert Path(".license-gate.yaml").exists()

    def test_writes_given_values(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "policy.yaml"

        result = cli_runner.invoke(
            main,
            ["init", "--license", "ISC", "--whitelist", "six@<2", "--config", str(path)],
        )

        assert result.exit_code == EXIT_SUCCESS
        assert "license: ISC" in path.read_text()
        assert "six: <2" in path.read_text()

    def test_refuses_to_overwrite(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "policy.yaml"
        path.write_text("license: MIT\n")

        result = cli_runner.invoke(main, ["init", "--config", str(path)])

        assert result.exit_code == EXIT_ERROR
        assert "already exists" in result.output
        assert path.read_text() == "license: MIT\n"
