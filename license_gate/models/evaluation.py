"""Correction, provenance and evaluation result models."""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from license_gate.models.dependency import Dependency, DependencyIdentity


class CorrectionSource(Enum):
    """Where a license correction came from.

    Members are totally ordered: an automatic correction outranks a
    crowd-sourced one.
    """

    CROWD_SOURCED = "crowd-sourced"
    AUTOMATIC = "automatic"

    @property
    def rank(self) -> int:
        return _CORRECTION_RANKS[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, CorrectionSource):
            return NotImplemented
        return self.rank < other.rank


_CORRECTION_RANKS = {
    CorrectionSource.CROWD_SOURCED: 1,
    CorrectionSource.AUTOMATIC: 2,
}


class CorrectionRecord(BaseModel):
    """A replacement license expression for one package version."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    corrected_license: str = Field(description="Corrected SPDX expression")
    source: CorrectionSource = Field(description="Where the correction came from")


def preferred_correction(
    records: Iterable[CorrectionRecord],
) -> Optional[CorrectionRecord]:
    """Pick the record with the highest-ranked source.

    Ties keep the first record seen.
    """
    best: Optional[CorrectionRecord] = None
    for record in records:
        if best is None or best.source < record.source:
            best = record
    return best


class CorrectionSet:
    """Already-loaded corrections keyed by (name, version)."""

    def __init__(self) -> None:
        self._records: Dict[DependencyIdentity, List[CorrectionRecord]] = {}

    def __len__(self) -> int:
        return sum(len(records) for records in self._records.values())

    def add(self, name: str, version: str, record: CorrectionRecord) -> None:
        self._records.setdefault((name, version), []).append(record)

    def lookup(self, name: str, version: str) -> Optional[CorrectionRecord]:
        """Return the active correction for a package version, if any."""
        return preferred_correction(self._records.get((name, version), []))


class LicenseConflict(BaseModel):
    """A detected license expression that disagrees with the metadata."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    detected_expression: str = Field(description="Expression found in files")
    files: Tuple[str, ...] = Field(
        default=(), description="Files the expression was found in"
    )


class ProvenanceResult(BaseModel):
    """File-level license detection results for one package."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    has_file_level_data: bool = Field(default=False)
    metadata_matches_file_level: bool = Field(default=False)
    conflicts: Tuple[LicenseConflict, ...] = Field(default=())


class EvaluationResult(BaseModel):
    """Outcome of evaluating one dependency against the policy."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    version: str
    declared_license: Any = None
    effective_license: Any = None
    repository: Any = None
    homepage: Any = None
    author: Any = None
    contributors: Any = None
    is_development_only: bool = False
    approved: bool
    via_whitelist: bool = False
    correction_applied: Optional[CorrectionSource] = None
    has_file_level_data: bool = False
    conflicts: Tuple[LicenseConflict, ...] = ()

    @property
    def identity(self) -> DependencyIdentity:
        return (self.name, self.version)

    @classmethod
    def from_dependency(
        cls,
        dependency: Dependency,
        *,
        approved: bool,
        provenance: Optional[ProvenanceResult],
        effective_license: Any = None,
        via_whitelist: bool = False,
        correction_applied: Optional[CorrectionSource] = None,
    ) -> EvaluationResult:
        """Build a result carrying every field of the dependency.

        Args:
            dependency: The evaluated dependency.
            approved: Whether the dependency complies with the policy.
            provenance: File-level data, copied through for diagnostics.
            effective_license: License actually evaluated.
            via_whitelist: Whether approval came from the whitelist.
            correction_applied: Source of the correction used, if any.

        Returns:
            Immutable EvaluationResult.
        """
        return cls(
            **dependency.model_dump(),
            effective_license=effective_license,
            approved=approved,
            via_whitelist=via_whitelist,
            correction_applied=correction_applied,
            has_file_level_data=(
                provenance.has_file_level_data if provenance is not None else False
            ),
            conflicts=provenance.conflicts if provenance is not None else (),
        )
