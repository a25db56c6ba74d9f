"""CLI entry point for license-gate."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape

from license_gate import __version__
from license_gate.analysis.approval import evaluate_dependencies
from license_gate.analysis.corrections import (
    build_correction_set,
    resolve_effective_license,
)
from license_gate.collector import collect_dependencies
from license_gate.config import (
    load_config,
    load_crowd_corrections,
    parse_whitelist,
    policy_from_options,
    write_default_config,
)
from license_gate.constants import (
    DEFAULT_CONFIG_NAMES,
    DEFAULT_CORRECTIONS_NAME,
    EXIT_ERROR,
    EXIT_SUCCESS,
)
from license_gate.exceptions import LicenseGateError
from license_gate.models.dependency import DependencyIdentity, DependencySet
from license_gate.models.evaluation import (
    CorrectionSet,
    EvaluationResult,
    ProvenanceResult,
)
from license_gate.models.policy import PolicyConfiguration
from license_gate.output.report import Reporter, ReportOptions, exit_status
from license_gate.resolvers.clearlydefined import ClearlyDefinedResolver

# Configure logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s: %(message)s",
)
logger = logging.getLogger("license_gate")

# Errors and progress go to stderr so the report stream stays clean
_error_console = Console(stderr=True)


def _setup_logging(verbose: bool) -> None:
    """Configure logging level based on verbosity flag."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.getLogger("license_gate").setLevel(level)


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """License Gate - Check dependency licenses against a policy.

    Checks the license metadata of your Python project's dependencies,
    and file-level license data from ClearlyDefined, against a license
    policy. Exits 1 if any dependency is not approved.

    \b
    Examples:
        license-gate init
        license-gate check
        license-gate check --license "MIT OR Apache-2.0"
        license-gate check --errors-only --production
    """
    pass


@main.command()
@click.option(
    "--license",
    "license_expression",
    default=None,
    metavar="EXPRESSION",
    help="Permit licenses matching SPDX expression.",
)
@click.option(
    "--whitelist",
    default=None,
    metavar="LIST",
    help="Permit comma-delimited name@range.",
)
@click.option(
    "--corrections",
    is_flag=True,
    default=False,
    help="Use license metadata corrections.",
)
@click.option(
    "--corrections-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Crowd-sourced corrections file (default: .license-corrections.yaml).",
)
@click.option(
    "--require-provenance",
    is_flag=True,
    default=False,
    help="Permit only packages with ClearlyDefined file results.",
)
@click.option(
    "--require-provenance-match",
    is_flag=True,
    default=False,
    help="Permit only packages whose file results match their license metadata.",
)
@click.option(
    "--production",
    is_flag=True,
    default=False,
    help="Do not check development dependencies.",
)
@click.option(
    "--errors-only",
    is_flag=True,
    default=False,
    help="Only show NOT APPROVED packages.",
)
@click.option(
    "--ndjson",
    is_flag=True,
    default=False,
    help="Print newline-delimited JSON objects.",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    default=False,
    help="Quiet mode, only exit(0/1).",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Show which package required each dependency, and debug logging.",
)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Path to policy file.",
)
@click.option(
    "--project",
    "project_dir",
    type=click.Path(exists=True, file_okay=False),
    default=None,
    help="Project directory (default: current directory).",
)
def check(
    license_expression: Optional[str],
    whitelist: Optional[str],
    corrections: bool,
    corrections_file: Optional[str],
    require_provenance: bool,
    require_provenance_match: bool,
    production: bool,
    errors_only: bool,
    ndjson: bool,
    quiet: bool,
    verbose: bool,
    config_path: Optional[str],
    project_dir: Optional[str],
) -> None:
    """Check dependency licenses against the policy.

    The policy comes from --license and --whitelist when given,
    otherwise from .license-gate.yaml in the project directory.

    \b
    Examples:
        license-gate check
        license-gate check --license "MIT OR Apache-2.0" --whitelist "six@<2"
        license-gate check --corrections --require-provenance
        license-gate check --ndjson > report.ndjson
        license-gate check --quiet
    """
    _setup_logging(verbose)
    project = Path(project_dir) if project_dir else Path.cwd()
    options = ReportOptions(
        errors_only=errors_only, quiet=quiet, ndjson=ndjson, verbose=verbose
    )

    try:
        if license_expression or whitelist:
            config = policy_from_options(license_expression, whitelist)
        else:
            config = load_config(config_path, start_dir=project)

        config = config.model_copy(
            update={
                "use_corrections": config.use_corrections or corrections,
                "require_provenance": config.require_provenance or require_provenance,
                "require_provenance_match": (
                    config.require_provenance_match or require_provenance_match
                ),
                "production_only": config.production_only or production,
                "corrections_file": corrections_file or config.corrections_file,
            }
        )

        dependency_set = collect_dependencies(project, config.production_only)
        show_progress = not quiet and not ndjson and _error_console.is_terminal
        results = _run_check(dependency_set, config, project, show_progress)

    except LicenseGateError as e:
        _display_error(e, plain=ndjson)
        sys.exit(EXIT_ERROR)

    for output in Reporter(options, dependency_set).render(results):
        click.echo(output)

    sys.exit(exit_status(results))


@main.command()
@click.option(
    "--license",
    "license_expression",
    default=None,
    metavar="EXPRESSION",
    help="Permitted SPDX expression to write.",
)
@click.option(
    "--whitelist",
    default=None,
    metavar="LIST",
    help="Comma-delimited name@range entries to write.",
)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Where to create the policy file (default: ./.license-gate.yaml).",
)
def init(
    license_expression: Optional[str],
    whitelist: Optional[str],
    config_path: Optional[str],
) -> None:
    """Create a policy file with default values.

    \b
    Examples:
        license-gate init
        license-gate init --license "MIT OR ISC" --whitelist "six@<2"
    """
    path = Path(config_path) if config_path else Path.cwd() / DEFAULT_CONFIG_NAMES[0]

    try:
        entries = parse_whitelist(whitelist) if whitelist else None
        write_default_config(path, license_expression, entries)
    except LicenseGateError as e:
        _display_error(e)
        sys.exit(EXIT_ERROR)

    click.echo(f"Created {path}.")
    sys.exit(EXIT_SUCCESS)


def _load_corrections(
    dependency_set: DependencySet, config: PolicyConfiguration, project: Path
) -> Optional[CorrectionSet]:
    """Assemble corrections if the policy allows them.

    Args:
        dependency_set: Dependencies to compute automatic corrections for.
        config: Policy configuration.
        project: Project directory, where the default corrections file lives.

    Returns:
        CorrectionSet, or None when corrections are disabled.
    """
    if not config.use_corrections:
        return None

    if config.corrections_file:
        corrections_path = Path(config.corrections_file)
    else:
        corrections_path = project / DEFAULT_CORRECTIONS_NAME
    crowd = load_crowd_corrections(corrections_path)
    return build_correction_set(dependency_set.dependencies, crowd)


def _fetch_provenance(
    dependency_set: DependencySet,
    config: PolicyConfiguration,
    corrections: Optional[CorrectionSet],
    show_progress: bool,
) -> dict[DependencyIdentity, Optional[ProvenanceResult]]:
    """Fetch file-level license data for every dependency.

    File data is compared against the license each dependency will be
    evaluated under.
    """
    if not dependency_set.dependencies:
        return {}

    items = [
        (
            dep,
            resolve_effective_license(
                dep.name, dep.version, dep.declared_license, config, corrections
            )[0],
        )
        for dep in dependency_set.dependencies
    ]
    return asyncio.run(
        ClearlyDefinedResolver().resolve_all(
            items,
            console=_error_console if show_progress else None,
            show_progress=show_progress,
        )
    )


def _run_check(
    dependency_set: DependencySet,
    config: PolicyConfiguration,
    project: Path,
    show_progress: bool,
) -> list[EvaluationResult]:
    """Enrich and evaluate every dependency.

    Args:
        dependency_set: Collected dependencies.
        config: Policy configuration.
        project: Project directory.
        show_progress: Whether to show a progress spinner on stderr.

    Returns:
        Evaluation results in dependency order.
    """
    logger.debug("Evaluating %d dependencies", len(dependency_set))
    corrections = _load_corrections(dependency_set, config, project)
    provenance = _fetch_provenance(dependency_set, config, corrections, show_progress)
    return evaluate_dependencies(
        dependency_set.dependencies,
        config,
        corrections,
        {identity: p for identity, p in provenance.items() if p is not None},
    )


def _display_error(error: LicenseGateError, plain: bool = False) -> None:
    """Display error message to user.

    All errors are written to stderr, keeping the report stream clean.

    Args:
        error: The exception that occurred.
        plain: Write without Rich styling.
    """
    error_type = type(error).__name__
    message = f"Error: {error_type}: {error}"

    if plain:
        click.echo(message, err=True)
    else:
        _error_console.print(f"[red bold]{escape(message)}[/red bold]", soft_wrap=True)


if __name__ == "__main__":
    main()
