"""Pydantic data models for license-gate."""

from license_gate.models.dependency import (
    ConjunctiveLicenses,
    Dependency,
    DependencyIdentity,
    DependencySet,
    InvalidExpression,
    LicenseMetadata,
    MalformedLicense,
    MissingLicense,
    SingleLicense,
)
from license_gate.models.evaluation import (
    CorrectionRecord,
    CorrectionSet,
    CorrectionSource,
    EvaluationResult,
    LicenseConflict,
    ProvenanceResult,
    preferred_correction,
)
from license_gate.models.policy import PolicyConfiguration

__all__ = [
    "ConjunctiveLicenses",
    "CorrectionRecord",
    "CorrectionSet",
    "CorrectionSource",
    "Dependency",
    "DependencyIdentity",
    "DependencySet",
    "EvaluationResult",
    "InvalidExpression",
    "LicenseConflict",
    "LicenseMetadata",
    "MalformedLicense",
    "MissingLicense",
    "PolicyConfiguration",
    "ProvenanceResult",
    "SingleLicense",
    "preferred_correction",
]
