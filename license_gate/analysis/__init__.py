"""License policy evaluation for license-gate."""
from license_gate.analysis.approval import (
    evaluate_dependencies,
    evaluate_dependency,
    is_whitelisted,
    license_satisfies_policy,
    version_in_range,
)
from license_gate.analysis.corrections import (
    CLASSIFIER_TO_SPDX,
    build_correction_set,
    correct_license_metadata,
    resolve_effective_license,
)
from license_gate.analysis.expressions import (
    classify_license,
    is_valid_expression,
    satisfies,
)

__all__ = [
    "CLASSIFIER_TO_SPDX",
    "build_correction_set",
    "classify_license",
    "correct_license_metadata",
    "evaluate_dependencies",
    "evaluate_dependency",
    "is_valid_expression",
    "is_whitelisted",
    "license_satisfies_policy",
    "resolve_effective_license",
    "satisfies",
    "version_in_range",
]
