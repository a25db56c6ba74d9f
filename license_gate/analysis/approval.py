"""Approval of dependencies against a license policy.

Rules run in a fixed order and the first rule that decides wins:

1. whitelisted name and version: approved
2. invalid permitted expression: rejected
3. the effective license is resolved through corrections
4. file-level data required but missing: rejected
5. file-level data required to match but missing or disagreeing: rejected
6. effective license does not satisfy the permitted expression: rejected
7. otherwise: approved
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional

from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.version import InvalidVersion, Version

from license_gate.analysis.corrections import resolve_effective_license
from license_gate.analysis.expressions import (
    classify_license,
    is_valid_expression,
    satisfies,
)
from license_gate.models.dependency import (
    ConjunctiveLicenses,
    Dependency,
    DependencyIdentity,
    SingleLicense,
)
from license_gate.models.evaluation import (
    CorrectionSet,
    EvaluationResult,
    ProvenanceResult,
)
from license_gate.models.policy import PolicyConfiguration

logger = logging.getLogger(__name__)

# Whitelist ranges that match every version
ANY_VERSION_RANGES = {"", "*"}


def version_in_range(version: str, version_range: str) -> bool:
    """Check whether a version falls within a whitelist range.

    Ranges are PEP 440 specifier sets (``"<=0.6.1"``, ``">=1.0,<2"``).
    A bare version means that exact version; ``"*"`` matches anything.

    Args:
        version: The package version.
        version_range: The whitelist entry's range.

    Returns:
        True if the version satisfies the range. Unparsable versions or
        ranges never match.
    """
    range_text = version_range.strip()
    if range_text in ANY_VERSION_RANGES:
        return True

    try:
        parsed_version = Version(version)
    except InvalidVersion:
        return False

    try:
        specifier = SpecifierSet(range_text)
    except InvalidSpecifier:
        try:
            return parsed_version == Version(range_text)
        except InvalidVersion:
            return False

    return specifier.contains(parsed_version, prereleases=True)


def is_whitelisted(dependency: Dependency, config: PolicyConfiguration) -> bool:
    """Check if a dependency matches its whitelist entry, by exact name."""
    version_range = config.whitelist.get(dependency.name)
    if version_range is None:
        return False
    return version_in_range(dependency.version, version_range)


def license_satisfies_policy(effective_license: Any, permitted_license: str) -> bool:
    """Check effective license metadata against a permitted expression.

    A list of licenses is a set of obligations that all apply, so every
    element must be valid and satisfy the policy on its own.
    """
    metadata = classify_license(effective_license)

    if isinstance(metadata, SingleLicense):
        return satisfies(metadata.expression, permitted_license)
    if isinstance(metadata, ConjunctiveLicenses):
        return bool(metadata.expressions) and all(
            is_valid_expression(expression)
            and satisfies(expression, permitted_license)
            for expression in metadata.expressions
        )
    # MissingLicense, InvalidExpression, MalformedLicense
    return False


def _rejection_reason(
    effective_license: Any,
    config: PolicyConfiguration,
    provenance: Optional[ProvenanceResult],
) -> Optional[str]:
    """Run rules 4 to 6, returning why the dependency is rejected, if it is."""
    if config.require_provenance and provenance is None:
        return "no file-level license data"

    if config.require_provenance_match and (
        provenance is None or not provenance.metadata_matches_file_level
    ):
        return "file-level license data does not match metadata"

    if config.permitted_license is not None and not license_satisfies_policy(
        effective_license, config.permitted_license
    ):
        return f"license {effective_license!r} not permitted"

    return None


def evaluate_dependency(
    dependency: Dependency,
    config: PolicyConfiguration,
    corrections: Optional[CorrectionSet] = None,
    provenance: Optional[ProvenanceResult] = None,
) -> EvaluationResult:
    """Decide whether one dependency complies with the policy.

    Never raises for malformed dependency data: anything that cannot be
    evaluated is rejected and kept on the result for reporting.

    Args:
        dependency: The dependency to evaluate.
        config: The license policy.
        corrections: Loaded license corrections.
        provenance: File-level license data, None when there is none.

    Returns:
        EvaluationResult for the dependency.
    """
    if is_whitelisted(dependency, config):
        return EvaluationResult.from_dependency(
            dependency,
            approved=True,
            via_whitelist=True,
            effective_license=dependency.declared_license,
            provenance=provenance,
        )

    if config.permitted_license is not None and not is_valid_expression(
        config.permitted_license
    ):
        logger.debug(
            "%s@%s rejected: invalid permitted expression %r",
            dependency.name,
            dependency.version,
            config.permitted_license,
        )
        return EvaluationResult.from_dependency(
            dependency,
            approved=False,
            effective_license=dependency.declared_license,
            provenance=provenance,
        )

    effective_license, correction = resolve_effective_license(
        dependency.name,
        dependency.version,
        dependency.declared_license,
        config,
        corrections,
    )

    reason = _rejection_reason(effective_license, config, provenance)
    if reason is not None:
        logger.debug("%s@%s rejected: %s", dependency.name, dependency.version, reason)

    return EvaluationResult.from_dependency(
        dependency,
        approved=reason is None,
        effective_license=effective_license,
        correction_applied=correction,
        provenance=provenance,
    )


def evaluate_dependencies(
    dependencies: Iterable[Dependency],
    config: PolicyConfiguration,
    corrections: Optional[CorrectionSet] = None,
    provenance: Optional[Mapping[DependencyIdentity, ProvenanceResult]] = None,
) -> list[EvaluationResult]:
    """Evaluate every dependency, preserving input order.

    Args:
        dependencies: Dependencies to evaluate, in report order.
        config: The license policy.
        corrections: Loaded license corrections.
        provenance: File-level license data by (name, version).

    Returns:
        One EvaluationResult per dependency, in the same order.
    """
    provenance = provenance or {}
    return [
        evaluate_dependency(dep, config, corrections, provenance.get(dep.identity))
        for dep in dependencies
    ]
