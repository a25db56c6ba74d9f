"""SPDX expression validation and satisfaction.

Uses the license-expression library for SPDX parsing and normalization.
Satisfaction is decided on the disjunctive normal form of both
expressions: a candidate is satisfied when one of its alternatives is
covered exactly by permitted alternatives. "-or-later" and "+" licenses
stand for a range of versions of their license family.
"""
from __future__ import annotations

import re
from itertools import product
from typing import Any, Optional

from license_expression import ExpressionError, LicenseExpression, get_spdx_licensing

from license_gate.models.dependency import (
    ConjunctiveLicenses,
    InvalidExpression,
    LicenseMetadata,
    MalformedLicense,
    MissingLicense,
    SingleLicense,
)

# Initialize SPDX licensing for parsing
_licensing = get_spdx_licensing()

# Prefix of user-defined license references, always accepted
LICENSE_REF_PREFIX = "LicenseRef-"

Term = frozenset

# Ordered versions of license families, for "-or-later" and "+" ranges
LICENSE_VERSIONS: dict[str, tuple[str, ...]] = {
    "AFL": ("1.1", "1.2", "2.0", "2.1", "3.0"),
    "AGPL": ("1.0", "3.0"),
    "Apache": ("1.0", "1.1", "2.0"),
    "APSL": ("1.0", "1.1", "1.2", "2.0"),
    "Artistic": ("1.0", "2.0"),
    "CDDL": ("1.0", "1.1"),
    "EPL": ("1.0", "2.0"),
    "EUPL": ("1.0", "1.1", "1.2"),
    "GFDL": ("1.1", "1.2", "1.3"),
    "GPL": ("1.0", "2.0", "3.0"),
    "LGPL": ("2.0", "2.1", "3.0"),
    "LPPL": ("1.0", "1.1", "1.2", "1.3a", "1.3c"),
    "MPL": ("1.0", "1.1", "2.0"),
    "OSL": ("1.0", "1.1", "2.0", "2.1", "3.0"),
}

_OR_LATER = re.compile(r"^(?P<family>.+)-(?P<version>\d+\.\d+[a-z]?)(?:-or-later|\+)$")
_VERSION_SUFFIXES = ("", "-only", "-or-later", "+")
_WITH = " WITH "


def _parse(expression: Any) -> Optional[LicenseExpression]:
    """Parse an SPDX expression, returning None when it is not valid."""
    if not isinstance(expression, str) or not expression.strip():
        return None

    try:
        parsed = _licensing.parse(expression)
    except ExpressionError:
        return None
    if parsed is None:
        return None

    unknown = [
        key
        for key in _licensing.unknown_license_keys(parsed)
        if not key.startswith(LICENSE_REF_PREFIX)
    ]
    if unknown:
        return None
    return parsed


def is_valid_expression(expression: Any) -> bool:
    """Check if a value is a syntactically valid SPDX expression."""
    return _parse(expression) is not None


def _alternatives(node: LicenseExpression) -> list[Term]:
    """Expand a parsed expression into its disjunctive normal form.

    Each returned term is the set of licenses one alternative requires.
    """
    if isinstance(node, _licensing.OR):
        terms: list[Term] = []
        for arg in node.args:
            for term in _alternatives(arg):
                if term not in terms:
                    terms.append(term)
        return terms

    if isinstance(node, _licensing.AND):
        combined: list[Term] = []
        for parts in product(*(_alternatives(arg) for arg in node.args)):
            term = Term().union(*parts)
            if term not in combined:
                combined.append(term)
        return combined

    # LicenseSymbol or LicenseWithExceptionSymbol
    return [Term([str(node)])]


def satisfies(candidate: Any, permitted: Any) -> bool:
    """Check whether a candidate expression is satisfied by a permitted one.

    Args:
        candidate: The package's license expression.
        permitted: The policy's permitted expression.

    Returns:
        True if some alternative of the candidate uses only licenses the
        permitted expression allows. False if either expression is invalid.
    """
    parsed_candidate = _parse(candidate)
    parsed_permitted = _parse(permitted)
    if parsed_candidate is None or parsed_permitted is None:
        return False

    permitted_terms = _alternatives(parsed_permitted)
    for term in _alternatives(parsed_candidate):
        covered = [_covered_by(allowed, term) for allowed in permitted_terms]
        if Term().union(*covered) == term:
            return True
    return False


def _version_range(license_id: str) -> Term:
    """Return the license ids a license id stands for.

    ``GPL-2.0-or-later`` (or ``GPL-2.0+``) stands for every GPL version
    from 2.0 up, in its bare, ``-only``, ``-or-later`` and ``+`` forms.
    ``GPL-2.0-only`` and ``GPL-2.0`` stand for each other. Other ids
    stand only for themselves.
    """
    match = _OR_LATER.match(license_id)
    if match is None:
        base = license_id.removesuffix("-only")
        return Term([license_id, base, f"{base}-only"])

    family, version = match.group("family"), match.group("version")
    versions = LICENSE_VERSIONS.get(family, ())
    later = versions[versions.index(version):] if version in versions else (version,)
    return Term(
        f"{family}-{v}{suffix}" for v in later for suffix in _VERSION_SUFFIXES
    ) | {license_id}


def _covers(allowed: str, license_id: str) -> bool:
    """Check whether one permitted license allows one candidate license.

    Licenses match when their version ranges overlap and they carry the
    same exception.
    """
    if allowed == license_id:
        return True

    allowed_base, _, allowed_exception = allowed.partition(_WITH)
    base, _, exception = license_id.partition(_WITH)
    if allowed_exception != exception:
        return False
    return not _version_range(allowed_base).isdisjoint(_version_range(base))


def _covered_by(allowed: Term, term: Term) -> Term:
    """Return the licenses of a candidate term one permitted term covers.

    Every license of the permitted term must allow some license of the
    candidate term, otherwise nothing is covered.
    """
    if not all(any(_covers(a, t) for t in term) for a in allowed):
        return Term()
    return Term(t for t in term if any(_covers(a, t) for a in allowed))


def license_keys(expression: Any) -> frozenset[str]:
    """Return every license named in an expression, empty if invalid."""
    parsed = _parse(expression)
    if parsed is None:
        return Term()
    return Term().union(*_alternatives(parsed))


def uses_only(candidate: Any, licenses: frozenset[str]) -> bool:
    """Check whether some alternative of a candidate uses only the given licenses."""
    if not licenses:
        return False
    return satisfies(candidate, " OR ".join(sorted(licenses)))


def classify_license(raw: Any) -> LicenseMetadata:
    """Classify raw license metadata into one of the known shapes.

    Args:
        raw: License metadata as published or corrected.

    Returns:
        The matching LicenseMetadata variant.
    """
    if raw is None:
        return MissingLicense()
    if isinstance(raw, str):
        if is_valid_expression(raw):
            return SingleLicense(expression=raw)
        return InvalidExpression(raw=raw)
    if isinstance(raw, (list, tuple)) and all(isinstance(item, str) for item in raw):
        return ConjunctiveLicenses(expressions=tuple(raw))
    return MalformedLicense(raw=raw)
