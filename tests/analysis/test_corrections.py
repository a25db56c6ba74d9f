"""Tests for license corrections."""
import pytest

from license_gate.analysis.corrections import (
    build_correction_set,
    correct_license_metadata,
    resolve_effective_license,
)
from license_gate.models.dependency import Dependency
from license_gate.models.evaluation import (
    CorrectionRecord,
    CorrectionSet,
    CorrectionSource,
)
from license_gate.models.policy import PolicyConfiguration


class TestCorrectLicenseMetadata:
    """Tests for automatic corrections."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("MIT License", "MIT"),
            ("The MIT License", "MIT"),
            ("Apache 2.0", "Apache-2.0"),
            ("Apache License, Version 2.0", "Apache-2.0"),
            ("BSD 3-Clause License", "BSD-3-Clause"),
            ("GPLv3", "GPL-3.0-only"),
            ("License :: OSI Approved :: MIT License", "MIT"),
        ],
    )
    def test_common_declarations(self, raw: str, expected: str) -> None:
        """Test that common non-SPDX declarations are corrected."""
        assert correct_license_metadata(raw) == expected

    def test_valid_expression_is_not_corrected(self) -> None:
        assert correct_license_metadata("MIT") is None

    def test_unknown_declaration_is_not_corrected(self) -> None:
        assert correct_license_metadata("Some bespoke terms") is None

    def test_list_is_joined_with_and(self) -> None:
        """Test that list elements are corrected and combined conjunctively."""
        assert (
            correct_license_metadata(["MIT License", "Apache-2.0"])
            == "(MIT) AND (Apache-2.0)"
        )

    def test_single_element_list(self) -> None:
        assert correct_license_metadata(["MIT License"]) == "MIT"

    def test_valid_list_is_not_corrected(self) -> None:
        assert correct_license_metadata(["MIT", "Apache-2.0"]) is None

    def test_list_with_uncorrectable_element(self) -> None:
        assert correct_license_metadata(["MIT License", "Bespoke"]) is None

    @pytest.mark.parametrize("raw", [None, 42, {"type": "MIT"}, []])
    def test_other_shapes_are_not_corrected(self, raw: object) -> None:
        assert correct_license_metadata(raw) is None


class TestCorrectionSet:
    """Tests for CorrectionSet precedence."""

    def test_automatic_outranks_crowd_sourced(self) -> None:
        """Test that an automatic correction wins regardless of insertion order."""
        corrections = CorrectionSet()
        corrections.add(
            "pkg",
            "1.0",
            CorrectionRecord(
                corrected_license="Apache-2.0", source=CorrectionSource.CROWD_SOURCED
            ),
        )
        corrections.add(
            "pkg",
            "1.0",
            CorrectionRecord(corrected_license="MIT", source=CorrectionSource.AUTOMATIC),
        )

        record = corrections.lookup("pkg", "1.0")

        assert record is not None
        assert record.corrected_license == "MIT"
        assert record.source == CorrectionSource.AUTOMATIC

    def test_lookup_is_version_specific(self) -> None:
        corrections = CorrectionSet()
        corrections.add(
            "pkg",
            "1.0",
            CorrectionRecord(corrected_license="MIT", source=CorrectionSource.AUTOMATIC),
        )

        assert corrections.lookup("pkg", "2.0") is None
        assert len(corrections) == 1


class TestBuildCorrectionSet:
    """Tests for build_correction_set."""

    def test_automatic_and_crowd_records(self) -> None:
        deps = [
            Dependency(name="a", version="1.0", declared_license="MIT License"),
            Dependency(name="b", version="2.0", declared_license="Bespoke"),
        ]
        crowd = {("b", "2.0"): "ISC"}

        corrections = build_correction_set(deps, crowd)

        assert corrections.lookup("a", "1.0") == CorrectionRecord(
            corrected_license="MIT", source=CorrectionSource.AUTOMATIC
        )
        assert corrections.lookup("b", "2.0") == CorrectionRecord(
            corrected_license="ISC", source=CorrectionSource.CROWD_SOURCED
        )

    def test_wildcard_version_applies_to_every_version(self) -> None:
        deps = [Dependency(name="b", version="3.1", declared_license=None)]

        corrections = build_correction_set(deps, {("b", "*"): "ISC"})

        record = corrections.lookup("b", "3.1")
        assert record is not None
        assert record.corrected_license == "ISC"

    def test_exact_version_preferred_over_wildcard(self) -> None:
        deps = [Dependency(name="b", version="3.1")]

        corrections = build_correction_set(
            deps, {("b", "*"): "ISC", ("b", "3.1"): "MIT"}
        )

        record = corrections.lookup("b", "3.1")
        assert record is not None
        assert record.corrected_license == "MIT"


class TestResolveEffectiveLicense:
    """Tests for resolve_effective_license."""

    def _corrections(self) -> CorrectionSet:
        corrections = CorrectionSet()
        corrections.add(
            "pkg",
            "1.0",
            CorrectionRecord(corrected_license="MIT", source=CorrectionSource.AUTOMATIC),
        )
        return corrections

    def test_corrections_disabled_keeps_declared(self) -> None:
        config = PolicyConfiguration(permitted_license="MIT")

        result = resolve_effective_license(
            "pkg", "1.0", "MIT License", config, self._corrections()
        )

        assert result == ("MIT License", None)

    def test_corrections_enabled_uses_record(self) -> None:
        config = PolicyConfiguration(permitted_license="MIT", use_corrections=True)

        result = resolve_effective_license(
            "pkg", "1.0", "MIT License", config, self._corrections()
        )

        assert result == ("MIT", CorrectionSource.AUTOMATIC)

    def test_no_record_keeps_declared(self) -> None:
        config = PolicyConfiguration(use_corrections=True)

        result = resolve_effective_license(
            "other", "1.0", "Bespoke", config, self._corrections()
        )

        assert result == ("Bespoke", None)
