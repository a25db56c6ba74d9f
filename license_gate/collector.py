"""Dependency collection from the installed environment.

Roots come from the project's ``pyproject.toml``: ``[project]
dependencies`` are production roots, development extras and
``[dependency-groups]`` are development roots. Installed distributions
are walked transitively from the roots. Without a pyproject every
installed distribution is collected.
"""
from __future__ import annotations

import logging
import tomllib
from email.message import Message
from importlib.metadata import Distribution, distributions
from pathlib import Path
from typing import Any, Optional

from packaging.requirements import InvalidRequirement, Requirement

from license_gate.analysis.corrections import CLASSIFIER_TO_SPDX
from license_gate.exceptions import CollectionError
from license_gate.models.dependency import (
    Dependency,
    DependencyIdentity,
    DependencySet,
)

logger = logging.getLogger(__name__)

PYPROJECT_NAME = "pyproject.toml"

# Optional-dependency groups treated as development-only
DEVELOPMENT_EXTRAS = {"dev", "develop", "test", "tests", "lint", "docs", "typing"}

# Project-URL labels naming the source repository
REPOSITORY_LABELS = {"source", "source code", "repository", "code", "github"}
HOMEPAGE_LABELS = {"homepage", "home"}


def _normalize(name: str) -> str:
    """Normalize package name per PEP 503."""
    return name.lower().replace("-", "_").replace(".", "_")


def read_project_requirements(path: Path) -> tuple[Optional[str], list[str], list[str]]:
    """Read a project's requirements from its pyproject.toml.

    Args:
        path: Path to pyproject.toml.

    Returns:
        Tuple of (project name, production requirements, development
        requirements).

    Raises:
        CollectionError: If the file cannot be read or parsed.
    """
    try:
        with path.open("rb") as handle:
            data = tomllib.load(handle)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise CollectionError(f"Cannot read {path}: {e}") from e

    project = data.get("project", {})
    production = [req for req in project.get("dependencies", []) if isinstance(req, str)]

    development: list[str] = []
    for extra, requirements in project.get("optional-dependencies", {}).items():
        if extra.lower() in DEVELOPMENT_EXTRAS:
            development.extend(req for req in requirements if isinstance(req, str))
    for requirements in data.get("dependency-groups", {}).values():
        # Entries may also be {include-group = "..."} tables
        development.extend(req for req in requirements if isinstance(req, str))

    return project.get("name"), production, development


def _first_line(text: str) -> str:
    for line in text.splitlines():
        if line.strip():
            return line.strip()
    return ""


def _project_urls(metadata: Message) -> list[tuple[str, str]]:
    urls: list[tuple[str, str]] = []
    for entry in metadata.get_all("Project-URL") or []:
        label, _, url = entry.partition(",")
        if url.strip():
            urls.append((label.strip().lower(), url.strip()))
    return urls


def _declared_license(metadata: Message) -> Any:
    """Extract license metadata: License-Expression, License, then classifiers."""
    expression = metadata.get("License-Expression")
    if expression and expression.strip():
        return expression.strip()

    license_field = metadata.get("License")
    if license_field and license_field.strip():
        return _first_line(license_field)

    classifiers = [
        classifier
        for classifier in metadata.get_all("Classifier") or []
        if classifier.startswith("License ::")
    ]
    licenses = [CLASSIFIER_TO_SPDX.get(classifier, classifier) for classifier in classifiers]
    if not licenses:
        return None
    if len(licenses) == 1:
        return licenses[0]
    # Several license classifiers declare alternatives
    return " OR ".join(licenses)


def _person(name: Optional[str], email: Optional[str]) -> Any:
    """Build a person from metadata name and email fields."""
    name = name.strip() if name and name.strip() else None
    email = email.strip() if email and email.strip() else None
    if name and email and "<" not in email:
        return {"name": name, "email": email}
    return email or name


def dependency_from_distribution(
    dist: Distribution, is_development_only: bool = False
) -> Dependency:
    """Build a dependency record from an installed distribution's metadata."""
    metadata = dist.metadata
    urls = _project_urls(metadata)
    repository = next((url for label, url in urls if label in REPOSITORY_LABELS), None)
    homepage = metadata.get("Home-page") or next(
        (url for label, url in urls if label in HOMEPAGE_LABELS), None
    )
    maintainer = _person(metadata.get("Maintainer"), metadata.get("Maintainer-email"))

    return Dependency(
        name=metadata.get("Name", ""),
        version=metadata.get("Version", "unknown"),
        declared_license=_declared_license(metadata),
        repository=repository,
        homepage=homepage,
        author=_person(metadata.get("Author"), metadata.get("Author-email")),
        contributors=[maintainer] if maintainer else None,
        is_development_only=is_development_only,
    )


class DependencyCollector:
    """Collects the dependencies of a project from the installed environment."""

    def __init__(self, project_dir: Path | None = None) -> None:
        """Initialize collector with an index of installed packages.

        Args:
            project_dir: Directory holding the project's pyproject.toml.
                Defaults to the current working directory.
        """
        self._project_dir = project_dir or Path.cwd()
        self._installed: dict[str, Distribution] = {}
        for dist in distributions():
            name = dist.metadata.get("Name")
            if name:
                self._installed.setdefault(_normalize(name), dist)

    def collect(self, production_only: bool = False) -> DependencySet:
        """Collect the project's dependencies in a deterministic order.

        Args:
            production_only: Drop development-only dependencies.

        Returns:
            DependencySet with dependencies and their parents.

        Raises:
            CollectionError: If the project's pyproject.toml is unreadable.
        """
        pyproject = self._project_dir / PYPROJECT_NAME
        if not pyproject.exists():
            logger.debug(
                "No %s in %s, collecting all installed packages",
                PYPROJECT_NAME,
                self._project_dir,
            )
            return self._collect_installed()

        project_name, production, development = read_project_requirements(pyproject)

        dependencies: list[Dependency] = []
        parents: dict[DependencyIdentity, Optional[DependencyIdentity]] = {}
        visited: set[str] = set()
        if project_name:
            visited.add(_normalize(project_name))

        self._walk(production, None, False, visited, dependencies, parents)
        if not production_only:
            self._walk(development, None, True, visited, dependencies, parents)

        return DependencySet(dependencies=dependencies, parents=parents)

    def _collect_installed(self) -> DependencySet:
        dists = sorted(
            self._installed.values(), key=lambda d: d.metadata.get("Name", "").lower()
        )
        dependencies = [dependency_from_distribution(dist) for dist in dists]
        return DependencySet(
            dependencies=dependencies,
            parents={dep.identity: None for dep in dependencies},
        )

    def _walk(
        self,
        requirements: list[str],
        parent: Optional[DependencyIdentity],
        is_development_only: bool,
        visited: set[str],
        dependencies: list[Dependency],
        parents: dict[DependencyIdentity, Optional[DependencyIdentity]],
    ) -> None:
        """Depth-first walk recording each package the first time it is seen."""
        for req_str in requirements:
            dist = self._installed_for(req_str)
            if dist is None:
                continue

            normalized = _normalize(dist.metadata.get("Name", ""))
            if normalized in visited:
                continue
            visited.add(normalized)

            dependency = dependency_from_distribution(dist, is_development_only)
            dependencies.append(dependency)
            parents[dependency.identity] = parent

            self._walk(
                list(dist.requires or []),
                dependency.identity,
                is_development_only,
                visited,
                dependencies,
                parents,
            )

    def _installed_for(self, req_str: str) -> Optional[Distribution]:
        """Find the installed distribution satisfying a requirement string."""
        try:
            req = Requirement(req_str)
        except InvalidRequirement:
            logger.debug("Skipping malformed requirement %r", req_str)
            return None

        if req.marker is not None:
            # Extras-only dependencies apply only when the extra is requested
            if "extra" in str(req.marker):
                return None
            if not req.marker.evaluate():
                return None

        dist = self._installed.get(_normalize(req.name))
        if dist is None:
            logger.debug("Requirement %s is not installed", req.name)
        return dist


def collect_dependencies(
    project_dir: Path | None = None, production_only: bool = False
) -> DependencySet:
    """Collect a project's dependencies.

    Args:
        project_dir: Directory holding the project's pyproject.toml.
        production_only: Drop development-only dependencies.

    Returns:
        DependencySet in report order.
    """
    return DependencyCollector(project_dir).collect(production_only=production_only)
