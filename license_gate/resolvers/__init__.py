"""File-level license provenance resolvers."""

from license_gate.resolvers.clearlydefined import (
    ClearlyDefinedResolver,
    build_provenance,
    fetch_definition,
)

__all__ = [
    "ClearlyDefinedResolver",
    "build_provenance",
    "fetch_definition",
]
