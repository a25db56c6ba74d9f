"""License corrections for wrong or missing package metadata.

Two kinds of correction exist. Automatic corrections map common
non-SPDX declarations ("MIT License", "Apache 2.0", trove classifiers)
to SPDX identifiers. Crowd-sourced corrections come from a corrections
file keyed by package name and version. When both exist for the same
package version the automatic one wins.
"""
from __future__ import annotations

import re
from typing import Any, Iterable, Mapping, Optional

from license_gate.analysis.expressions import is_valid_expression
from license_gate.models.dependency import Dependency
from license_gate.models.evaluation import (
    CorrectionRecord,
    CorrectionSet,
    CorrectionSource,
)
from license_gate.models.policy import PolicyConfiguration

# Version key in the corrections file that applies to every version
ANY_VERSION = "*"

# Mapping of PyPI classifiers to SPDX identifiers
CLASSIFIER_TO_SPDX: dict[str, str] = {
    "License :: OSI Approved :: MIT License": "MIT",
    "License :: OSI Approved :: MIT No Attribution License (MIT-0)": "MIT-0",
    "License :: OSI Approved :: Apache Software License": "Apache-2.0",
    "License :: OSI Approved :: BSD License": "BSD-3-Clause",
    "License :: OSI Approved :: GNU General Public License v3 (GPLv3)": "GPL-3.0-only",
    "License :: OSI Approved :: GNU General Public License v3 or later (GPLv3+)": (
        "GPL-3.0-or-later"
    ),
    "License :: OSI Approved :: GNU General Public License v2 (GPLv2)": "GPL-2.0-only",
    "License :: OSI Approved :: GNU General Public License v2 or later (GPLv2+)": (
        "GPL-2.0-or-later"
    ),
    "License :: OSI Approved :: GNU Lesser General Public License v3 (LGPLv3)": (
        "LGPL-3.0-only"
    ),
    "License :: OSI Approved :: GNU Lesser General Public License v2 (LGPLv2)": (
        "LGPL-2.0-only"
    ),
    "License :: OSI Approved :: GNU Affero General Public License v3": "AGPL-3.0-only",
    "License :: OSI Approved :: ISC License (ISCL)": "ISC",
    "License :: OSI Approved :: Mozilla Public License 2.0 (MPL 2.0)": "MPL-2.0",
    "License :: OSI Approved :: Python Software Foundation License": "PSF-2.0",
    "License :: OSI Approved :: The Unlicense (Unlicense)": "Unlicense",
    "License :: OSI Approved :: zlib/libpng License": "Zlib",
    "License :: CC0 1.0 Universal (CC0 1.0) Public Domain Dedication": "CC0-1.0",
}

# Normalized free-text declarations to SPDX identifiers
_COMMON_DECLARATIONS: dict[str, str] = {
    "mit": "MIT",
    "expat": "MIT",
    "mit/expat": "MIT",
    "apache": "Apache-2.0",
    "apache 2": "Apache-2.0",
    "apache 2.0": "Apache-2.0",
    "apache-2": "Apache-2.0",
    "apache v2": "Apache-2.0",
    "apache version 2.0": "Apache-2.0",
    "apache software": "Apache-2.0",
    "asl 2.0": "Apache-2.0",
    "bsd 3-clause": "BSD-3-Clause",
    "bsd-3": "BSD-3-Clause",
    "3-clause bsd": "BSD-3-Clause",
    "new bsd": "BSD-3-Clause",
    "modified bsd": "BSD-3-Clause",
    "bsd 2-clause": "BSD-2-Clause",
    "bsd-2": "BSD-2-Clause",
    "2-clause bsd": "BSD-2-Clause",
    "simplified bsd": "BSD-2-Clause",
    "freebsd": "BSD-2-Clause",
    "isc": "ISC",
    "gplv2": "GPL-2.0-only",
    "gpl v2": "GPL-2.0-only",
    "gpl 2": "GPL-2.0-only",
    "gplv2+": "GPL-2.0-or-later",
    "gplv3": "GPL-3.0-only",
    "gpl v3": "GPL-3.0-only",
    "gpl 3": "GPL-3.0-only",
    "gplv3+": "GPL-3.0-or-later",
    "lgplv2.1": "LGPL-2.1-only",
    "lgpl 2.1": "LGPL-2.1-only",
    "lgplv3": "LGPL-3.0-only",
    "lgpl v3": "LGPL-3.0-only",
    "agplv3": "AGPL-3.0-only",
    "mpl 2.0": "MPL-2.0",
    "mozilla public 2.0": "MPL-2.0",
    "psf": "PSF-2.0",
    "python software foundation": "PSF-2.0",
    "unlicense": "Unlicense",
    "cc0": "CC0-1.0",
    "zlib": "Zlib",
}

_LICENSE_WORD = re.compile(r"\blicen[sc]e\b,?")
_WHITESPACE = re.compile(r"\s+")


def _normalize_declaration(raw: str) -> str:
    text = _LICENSE_WORD.sub(" ", raw.strip().strip("\"'").lower())
    text = _WHITESPACE.sub(" ", text).strip()
    if text.startswith("the "):
        text = text[4:]
    return text


def _correct_string(raw: str) -> Optional[str]:
    if raw.strip() in CLASSIFIER_TO_SPDX:
        return CLASSIFIER_TO_SPDX[raw.strip()]
    return _COMMON_DECLARATIONS.get(_normalize_declaration(raw))


def correct_license_metadata(raw: Any) -> Optional[str]:
    """Correct common non-SPDX license declarations.

    Args:
        raw: Declared license metadata (string or list of strings).

    Returns:
        A valid SPDX expression if the metadata is not already valid and
        can be corrected, None otherwise. A list is corrected element by
        element and joined with AND.
    """
    if isinstance(raw, str):
        if is_valid_expression(raw):
            return None
        return _correct_string(raw)

    if isinstance(raw, (list, tuple)) and raw and all(isinstance(i, str) for i in raw):
        corrected = [
            item if is_valid_expression(item) else _correct_string(item)
            for item in raw
        ]
        if any(item is None for item in corrected) or list(corrected) == list(raw):
            return None
        parts = [item if len(corrected) == 1 else f"({item})" for item in corrected]
        return " AND ".join(parts)

    return None


def build_correction_set(
    dependencies: Iterable[Dependency],
    crowd_corrections: Optional[Mapping[tuple[str, str], str]] = None,
) -> CorrectionSet:
    """Assemble the corrections available for a set of dependencies.

    Args:
        dependencies: Dependencies to compute automatic corrections for.
        crowd_corrections: Crowd-sourced corrections by (name, version).
            A version of ``"*"`` applies to every version of the package.

    Returns:
        CorrectionSet with automatic and crowd-sourced records.
    """
    crowd = crowd_corrections or {}
    corrections = CorrectionSet()

    for dep in dependencies:
        automatic = correct_license_metadata(dep.declared_license)
        if automatic is not None:
            corrections.add(
                dep.name,
                dep.version,
                CorrectionRecord(
                    corrected_license=automatic, source=CorrectionSource.AUTOMATIC
                ),
            )

        crowd_license = crowd.get((dep.name, dep.version))
        if crowd_license is None:
            crowd_license = crowd.get((dep.name, ANY_VERSION))
        if crowd_license is not None:
            corrections.add(
                dep.name,
                dep.version,
                CorrectionRecord(
                    corrected_license=crowd_license,
                    source=CorrectionSource.CROWD_SOURCED,
                ),
            )

    return corrections


def resolve_effective_license(
    name: str,
    version: str,
    declared_license: Any,
    config: PolicyConfiguration,
    corrections: Optional[CorrectionSet],
) -> tuple[Any, Optional[CorrectionSource]]:
    """Resolve the license a dependency is evaluated under.

    Args:
        name: Package name.
        version: Package version.
        declared_license: License metadata as published.
        config: Policy configuration; corrections apply only when
            use_corrections is set.
        corrections: Loaded corrections, if any.

    Returns:
        Tuple of (effective license, correction source). The source is
        None when the declared license is used unchanged.
    """
    if not config.use_corrections or corrections is None:
        return declared_license, None

    record = corrections.lookup(name, version)
    if record is None:
        return declared_license, None
    return record.corrected_license, record.source
