"""Plain text output formatter for evaluation results."""
from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, Optional, Sequence

from license_gate.analysis.expressions import classify_license
from license_gate.constants import PROVENANCE_SOURCE
from license_gate.models.dependency import (
    ConjunctiveLicenses,
    DependencyIdentity,
    InvalidExpression,
    SingleLicense,
)
from license_gate.models.evaluation import (
    CorrectionSource,
    EvaluationResult,
    LicenseConflict,
)

NONE_LISTED = "None listed"

CORRECTION_LABELS = {
    CorrectionSource.AUTOMATIC: "automatic-license-correction",
    CorrectionSource.CROWD_SOURCED: "crowd-sourced-license-correction",
}


def display_license(license_metadata: Any) -> str:
    """Render license metadata for display.

    Valid expressions are shown as-is, lists as their JSON form, and
    anything else as an explicit notice.
    """
    metadata = classify_license(license_metadata)
    if isinstance(metadata, SingleLicense):
        return metadata.expression
    if isinstance(metadata, InvalidExpression):
        return f'Invalid SPDX expression "{metadata.raw}"'
    if isinstance(metadata, ConjunctiveLicenses):
        return json.dumps(list(metadata.expressions), separators=(",", ":"))
    # MissingLicense, MalformedLicense
    return "Invalid license metadata"


def format_person(person: Any) -> str:
    """Render a person as ``name <email> (url)``."""
    if not person:
        return NONE_LISTED
    if isinstance(person, str):
        return person
    if isinstance(person, Mapping):
        text = str(person.get("name") or "")
        if person.get("email"):
            text += f" <{person['email']}>"
        if person.get("url"):
            text += f" ({person['url']})"
        return text.strip() or NONE_LISTED
    return str(person)


def format_people(people: Any) -> str:
    """Render a contributor list, one indented person per line."""
    if isinstance(people, (list, tuple)) and people:
        return "\n" + "\n".join(f"    {format_person(person)}" for person in people)
    if isinstance(people, (str, Mapping)) and people:
        return f" {format_person(people)}"
    return f" {NONE_LISTED}"


def format_repository(repository: Any) -> str:
    """Render a repository or homepage given as a URL or a mapping with a url."""
    if isinstance(repository, str) and repository:
        return repository
    if isinstance(repository, Mapping) and repository.get("url"):
        return str(repository["url"])
    return NONE_LISTED


def format_conflicts(conflicts: Sequence[LicenseConflict]) -> list[str]:
    """Render bad license hits: a summary line, then one line per file."""
    summary = ", ".join(conflict.detected_expression for conflict in conflicts)
    lines = [f"  Bad license hits: {summary}"]
    for conflict in conflicts:
        lines.extend(
            f"    * {path} ({conflict.detected_expression})" for path in conflict.files
        )
    return lines


def format_identity(identity: DependencyIdentity) -> str:
    name, version = identity
    return f"{name}@{version}"


class TextReportFormatter:
    """Format evaluation results as human-readable text blocks."""

    def format_result(
        self,
        result: EvaluationResult,
        ancestry: Optional[Sequence[DependencyIdentity]] = None,
    ) -> str:
        """Format one evaluation result.

        Args:
            result: The result to format.
            ancestry: Requirers of the dependency, outermost first. When
                given, a "Required by" line is included.

        Returns:
            Text block ending with a newline.
        """
        lines: list[str] = [format_identity(result.identity)]

        if ancestry is not None:
            chain = ["project", *(format_identity(parent) for parent in ancestry)]
            lines.append(f"  Required by: {' > '.join(chain)}")

        if result.approved:
            approver = "whitelist" if result.via_whitelist else "rule"
            lines.append(f"  Approved by {approver}")
        else:
            lines.append("  NOT APPROVED")

        if not result.has_file_level_data:
            lines.append(
                f"  No file-level license information found from {PROVENANCE_SOURCE}"
            )

        lines.append(f"  License metadata: {display_license(result.effective_license)}")

        if result.correction_applied is not None:
            lines.append(f"  Corrected: {CORRECTION_LABELS[result.correction_applied]}")

        if result.conflicts:
            lines.extend(format_conflicts(result.conflicts))

        lines.append(f"  Repository: {format_repository(result.repository)}")
        lines.append(f"  Homepage: {format_repository(result.homepage)}")
        lines.append(f"  Author: {format_person(result.author)}")
        lines.append(f"  Contributors:{format_people(result.contributors)}")

        return "\n".join(lines) + "\n"
