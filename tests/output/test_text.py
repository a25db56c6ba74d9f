"""Tests for the plain text formatter."""
import pytest

from license_gate.models.dependency import Dependency
from license_gate.models.evaluation import (
    CorrectionSource,
    EvaluationResult,
    LicenseConflict,
    ProvenanceResult,
)
from license_gate.output.text import (
    TextReportFormatter,
    display_license,
    format_people,
    format_person,
    format_repository,
)


def _result(**overrides: object) -> EvaluationResult:
    fields: dict = {
        "name": "left-pad",
        "version": "1.0.0",
        "declared_license": "MIT",
        "effective_license": "MIT",
        "approved": True,
        "has_file_level_data": True,
    }
    fields.update(overrides)
    return EvaluationResult(**fields)


class TestDisplayLicense:
    """Tests for display_license."""

    def test_valid_expression(self) -> None:
        assert display_license("MIT OR Apache-2.0") == "MIT OR Apache-2.0"

    def test_invalid_expression(self) -> None:
        assert display_license("MIT License") == 'Invalid SPDX expression "MIT License"'

    def test_list_shown_as_json(self) -> None:
        assert display_license(["MIT", "Apache-2.0"]) == '["MIT","Apache-2.0"]'

    @pytest.mark.parametrize("metadata", [None, 42, {"type": "MIT"}])
    def test_other_shapes(self, metadata: object) -> None:
        assert display_license(metadata) == "Invalid license metadata"


class TestPeople:
    """Tests for person and repository rendering."""

    def test_person_string(self) -> None:
        assert format_person("Ada <ada@example.com>") == "Ada <ada@example.com>"

    def test_person_mapping(self) -> None:
        person = {"name": "Ada", "email": "ada@example.com", "url": "https://ada.dev"}

        assert format_person(person) == "Ada <ada@example.com> (https://ada.dev)"

    def test_person_missing(self) -> None:
        assert format_person(None) == "None listed"

    def test_people_list(self) -> None:
        assert format_people(["Bob", {"name": "Cy"}]) == "\n    Bob\n    Cy"

    def test_people_single(self) -> None:
        assert format_people("Bob") == " Bob"

    @pytest.mark.parametrize("people", [None, [], ""])
    def test_people_missing(self, people: object) -> None:
        assert format_people(people) == " None listed"

    def test_repository_mapping(self) -> None:
        assert (
            format_repository({"type": "git", "url": "https://x.test/repo"})
            == "https://x.test/repo"
        )

    def test_repository_missing(self) -> None:
        assert format_repository(None) == "None listed"


class TestTextReportFormatter:
    """Tests for TextReportFormatter."""

    def test_approved_by_rule(self, left_pad: Dependency) -> None:
        result = EvaluationResult.from_dependency(
            left_pad,
            approved=True,
            effective_license="MIT",
            provenance=ProvenanceResult(
                has_file_level_data=True, metadata_matches_file_level=True
            ),
        )

        output = TextReportFormatter().format_result(result)

        assert output == (
            "left-pad@1.0.0\n"
            "  Approved by rule\n"
            "  License metadata: MIT\n"
            "  Repository: https://github.com/example/left-pad\n"
            "  Homepage: https://example.com/left-pad\n"
            "  Author: Ada <ada@example.com>\n"
            "  Contributors:\n"
            "    Bob\n"
            "    Cy (https://cy.example.com)\n"
        )

    def test_approved_by_whitelist(self) -> None:
        output = TextReportFormatter().format_result(_result(via_whitelist=True))

        assert "  Approved by whitelist\n" in output

    def test_not_approved(self) -> None:
        output = TextReportFormatter().format_result(_result(approved=False))

        assert output.splitlines()[1] == "  NOT APPROVED"

    def test_missing_file_level_data(self) -> None:
        output = TextReportFormatter().format_result(_result(has_file_level_data=False))

        assert (
            "  No file-level license information found from ClearlyDefined\n" in output
        )

    def test_correction_line(self) -> None:
        output = TextReportFormatter().format_result(
            _result(correction_applied=CorrectionSource.CROWD_SOURCED)
        )

        assert "  Corrected: crowd-sourced-license-correction\n" in output

    def test_conflicts(self) -> None:
        conflicts = (
            LicenseConflict(detected_expression="GPL-3.0-only", files=("a.py", "b.py")),
            LicenseConflict(detected_expression="ISC", files=("c.py",)),
        )

        output = TextReportFormatter().format_result(_result(conflicts=conflicts))

        assert (
            "  Bad license hits: GPL-3.0-only, ISC\n"
            "    * a.py (GPL-3.0-only)\n"
            "    * b.py (GPL-3.0-only)\n"
            "    * c.py (ISC)\n"
        ) in output

    def test_missing_metadata_fields(self) -> None:
        output = TextReportFormatter().format_result(_result())

        assert "  Repository: None listed\n" in output
        assert "  Author: None listed\n" in output
        assert output.endswith("  Contributors: None listed\n")

    def test_required_by_line(self) -> None:
        output = TextReportFormatter().format_result(
            _result(), ancestry=[("express", "4.0.0"), ("body-parser", "1.2.0")]
        )

        assert output.splitlines()[1] == (
            "  Required by: project > express@4.0.0 > body-parser@1.2.0"
        )

    def test_direct_dependency_required_by_project(self) -> None:
        output = TextReportFormatter().format_result(_result(), ancestry=[])

        assert output.splitlines()[1] == "  Required by: project"
