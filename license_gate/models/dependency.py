"""Dependency records and license metadata shapes."""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

DependencyIdentity = Tuple[str, str]


class Dependency(BaseModel):
    """One resolved package, as published.

    ``declared_license``, ``repository``, ``homepage``, ``author`` and
    ``contributors`` keep whatever shape the package metadata had, so
    that malformed metadata can still be reported.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(description="Package name")
    version: str = Field(description="Package version")
    declared_license: Any = Field(
        default=None,
        description="License metadata: a string, a list of strings, or absent",
    )
    repository: Any = Field(default=None, description="Repository URL or mapping")
    homepage: Any = Field(default=None, description="Homepage URL or mapping")
    author: Any = Field(default=None, description="Author string or mapping")
    contributors: Any = Field(
        default=None, description="Contributor string, mapping or list of them"
    )
    is_development_only: bool = Field(
        default=False,
        description="Whether the package is only needed for development",
    )

    @property
    def identity(self) -> DependencyIdentity:
        return (self.name, self.version)


class DependencySet(BaseModel):
    """Ordered dependencies plus who required each of them.

    ``parents`` maps a dependency identity to the identity of the
    dependency that required it, or None for the project root.
    """

    model_config = ConfigDict(extra="forbid")

    dependencies: List[Dependency] = Field(default_factory=list)
    parents: Dict[DependencyIdentity, Optional[DependencyIdentity]] = Field(
        default_factory=dict
    )

    def __len__(self) -> int:
        return len(self.dependencies)

    def ancestry(self, identity: DependencyIdentity) -> list[DependencyIdentity]:
        """Return the chain of requirers for a dependency, outermost first.

        Args:
            identity: The (name, version) pair to look up.

        Returns:
            List of identities from the top-level requirement down to the
            direct parent. Empty for direct dependencies of the project.
        """
        chain: list[DependencyIdentity] = []
        seen = {identity}
        current = self.parents.get(identity)
        while current is not None and current not in seen:
            chain.append(current)
            seen.add(current)
            current = self.parents.get(current)
        chain.reverse()
        return chain


class MissingLicense(BaseModel):
    """No license metadata at all."""

    model_config = ConfigDict(frozen=True)


class SingleLicense(BaseModel):
    """A single, syntactically valid SPDX expression."""

    model_config = ConfigDict(frozen=True)

    expression: str


class ConjunctiveLicenses(BaseModel):
    """A list of license strings, all of which apply."""

    model_config = ConfigDict(frozen=True)

    expressions: Tuple[str, ...]


class InvalidExpression(BaseModel):
    """A license string that is not a valid SPDX expression."""

    model_config = ConfigDict(frozen=True)

    raw: str


class MalformedLicense(BaseModel):
    """License metadata of an unrecognized shape."""

    model_config = ConfigDict(frozen=True)

    raw: Any = None


LicenseMetadata = Union[
    MissingLicense,
    SingleLicense,
    ConjunctiveLicenses,
    InvalidExpression,
    MalformedLicense,
]
