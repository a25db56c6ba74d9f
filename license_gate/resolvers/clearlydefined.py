"""File-level license provenance from ClearlyDefined.

ClearlyDefined runs license scanners over published packages and
reports the license detected in each file. Files whose license is not
among the package's declared licenses are reported as conflicts.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Sequence

import httpx
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from license_gate.analysis.expressions import license_keys, uses_only
from license_gate.constants import CLEARLYDEFINED_BASE_URL, MAX_CONCURRENT_REQUESTS
from license_gate.exceptions import NetworkError
from license_gate.models.dependency import Dependency, DependencyIdentity
from license_gate.models.evaluation import LicenseConflict, ProvenanceResult

logger = logging.getLogger(__name__)

# Detected values that carry no license information
UNINFORMATIVE_EXPRESSIONS = {"NOASSERTION", "NONE", "OTHER"}


def definition_url(name: str, version: str) -> str:
    """Build the ClearlyDefined definition URL for a PyPI package."""
    return f"{CLEARLYDEFINED_BASE_URL}/pypi/pypi/-/{name}/{version}"


async def fetch_definition(
    name: str, version: str, client: Optional[httpx.AsyncClient] = None
) -> Optional[dict[str, Any]]:
    """Fetch a package definition from the ClearlyDefined API.

    Args:
        name: The package name.
        version: The package version.
        client: Optional httpx.AsyncClient to use. If not provided,
            a new client will be created.

    Returns:
        Definition dict, or None if the package is unknown.

    Raises:
        NetworkError: If the network request fails.
    """
    url = definition_url(name, version)

    async def do_fetch(c: httpx.AsyncClient) -> Optional[dict[str, Any]]:
        try:
            response = await c.get(url, timeout=httpx.Timeout(30.0))
            if response.status_code == 404:
                return None
            response.raise_for_status()
            return response.json()  # type: ignore[no-any-return]
        except httpx.HTTPStatusError:
            return None
        except httpx.RequestError as e:
            raise NetworkError(f"Failed to fetch {name}@{version}: {e}") from e
        except ValueError as e:
            raise NetworkError(f"Invalid response for {name}@{version}: {e}") from e

    if client:
        return await do_fetch(client)

    async with httpx.AsyncClient() as new_client:
        return await do_fetch(new_client)


def _declared_keys(license_metadata: Any) -> frozenset[str]:
    if isinstance(license_metadata, str):
        return license_keys(license_metadata)
    if isinstance(license_metadata, (list, tuple)):
        return frozenset().union(*(license_keys(item) for item in license_metadata))
    return frozenset()


def build_provenance(
    definition: Optional[dict[str, Any]], license_metadata: Any
) -> Optional[ProvenanceResult]:
    """Derive provenance data from a ClearlyDefined definition.

    Args:
        definition: Definition returned by the API, or None.
        license_metadata: The package's (possibly corrected) license.

    Returns:
        ProvenanceResult, or None if ClearlyDefined has not scanned the
        package's files.
    """
    if not isinstance(definition, dict):
        return None
    files = definition.get("files")
    if not isinstance(files, list) or not files:
        return None

    declared = _declared_keys(license_metadata)
    conflicting: dict[str, list[str]] = {}
    has_file_level_data = False

    for entry in files:
        if not isinstance(entry, dict):
            continue
        detected = entry.get("license")
        if not isinstance(detected, str) or not detected.strip():
            continue
        has_file_level_data = True
        if detected in UNINFORMATIVE_EXPRESSIONS:
            continue
        if not uses_only(detected, declared):
            conflicting.setdefault(detected, []).append(str(entry.get("path", "")))

    conflicts = tuple(
        LicenseConflict(detected_expression=expression, files=tuple(paths))
        for expression, paths in conflicting.items()
    )
    return ProvenanceResult(
        has_file_level_data=has_file_level_data,
        metadata_matches_file_level=has_file_level_data and not conflicts,
        conflicts=conflicts,
    )


class ClearlyDefinedResolver:
    """Looks up file-level license data for dependencies."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        max_concurrent: int = MAX_CONCURRENT_REQUESTS,
    ) -> None:
        """Initialize the resolver.

        Args:
            client: Shared HTTP client. A client is created per run if omitted.
            max_concurrent: Maximum number of lookups in flight.
        """
        self._client = client
        self._max_concurrent = max_concurrent

    async def resolve(
        self, dependency: Dependency, license_metadata: Any
    ) -> Optional[ProvenanceResult]:
        """Look up provenance for one dependency.

        Lookup failures are logged and treated as no data.
        """
        try:
            definition = await fetch_definition(
                dependency.name, dependency.version, client=self._client
            )
        except NetworkError as e:
            logger.debug("No file-level data for %s: %s", dependency.name, e)
            return None
        return build_provenance(definition, license_metadata)

    async def resolve_all(
        self,
        items: Sequence[tuple[Dependency, Any]],
        console: Optional[Console] = None,
        show_progress: bool = False,
    ) -> dict[DependencyIdentity, Optional[ProvenanceResult]]:
        """Look up provenance for many dependencies concurrently.

        Args:
            items: Pairs of (dependency, license to compare file data against).
            console: Optional Rich Console for progress display.
            show_progress: Whether to show a progress spinner.

        Returns:
            Provenance by dependency identity. Every dependency has an
            entry; failed lookups map to None.
        """
        # Rate limiting semaphore for concurrent HTTP requests
        semaphore = asyncio.Semaphore(self._max_concurrent)

        async def resolve_one(
            dependency: Dependency, license_metadata: Any
        ) -> tuple[DependencyIdentity, Optional[ProvenanceResult]]:
            async with semaphore:
                return dependency.identity, await self.resolve(
                    dependency, license_metadata
                )

        if self._client is not None:
            return await self._run(items, resolve_one, console, show_progress)

        # Use shared HTTP client for connection reuse
        async with httpx.AsyncClient() as client:
            self._client = client
            try:
                return await self._run(items, resolve_one, console, show_progress)
            finally:
                self._client = None

    async def _run(
        self,
        items: Sequence[tuple[Dependency, Any]],
        resolve_one: Any,
        console: Optional[Console],
        show_progress: bool,
    ) -> dict[DependencyIdentity, Optional[ProvenanceResult]]:
        tasks = [resolve_one(dependency, metadata) for dependency, metadata in items]
        results: dict[DependencyIdentity, Optional[ProvenanceResult]] = {}

        if console is not None and show_progress and tasks:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                console=console,
                transient=True,
            ) as progress:
                task_id = progress.add_task(
                    f"Fetching file-level license data for {len(tasks)} packages...",
                    total=len(tasks),
                )
                for coro in asyncio.as_completed(tasks):
                    identity, provenance = await coro
                    results[identity] = provenance
                    progress.advance(task_id)
            return results

        for identity, provenance in await asyncio.gather(*tasks):
            results[identity] = provenance
        return results
