"""Report assembly and process outcome for evaluation results."""
from __future__ import annotations

from typing import Iterable, Optional, Sequence

from pydantic import BaseModel, Field

from license_gate.constants import EXIT_NOT_APPROVED, EXIT_SUCCESS
from license_gate.models.dependency import DependencySet
from license_gate.models.evaluation import EvaluationResult
from license_gate.output.ndjson import NdjsonReportFormatter
from license_gate.output.text import TextReportFormatter


class ReportOptions(BaseModel):
    """Options controlling which results are emitted and how."""

    model_config = {"extra": "forbid"}

    errors_only: bool = Field(default=False, description="Only emit rejected results")
    quiet: bool = Field(default=False, description="Emit nothing, only exit status")
    ndjson: bool = Field(default=False, description="Emit NDJSON records")
    verbose: bool = Field(default=False, description="Include who required each package")


def should_emit(result: EvaluationResult, options: ReportOptions) -> bool:
    """Check whether a result is emitted under the given options."""
    return not options.quiet and (not options.errors_only or not result.approved)


def exit_status(results: Iterable[EvaluationResult]) -> int:
    """Derive the process exit status.

    Returns:
        EXIT_SUCCESS if there are no results or all are approved,
        EXIT_NOT_APPROVED otherwise.
    """
    if all(result.approved for result in results):
        return EXIT_SUCCESS
    return EXIT_NOT_APPROVED


class Reporter:
    """Render evaluation results in input order."""

    def __init__(
        self,
        options: Optional[ReportOptions] = None,
        dependency_set: Optional[DependencySet] = None,
    ) -> None:
        """Initialize the reporter.

        Args:
            options: Emission and format options.
            dependency_set: Source of parent relationships for verbose text.
        """
        self._options = options or ReportOptions()
        self._dependency_set = dependency_set
        self._text = TextReportFormatter()
        self._ndjson = NdjsonReportFormatter()

    def render(self, results: Sequence[EvaluationResult]) -> list[str]:
        """Render the emitted results.

        Filtering only omits results; it never reorders them.

        Args:
            results: Evaluation results in dependency order.

        Returns:
            One text block or NDJSON line per emitted result.
        """
        return [
            self._render_one(result)
            for result in results
            if should_emit(result, self._options)
        ]

    def _render_one(self, result: EvaluationResult) -> str:
        if self._options.ndjson:
            return self._ndjson.format_result(result)

        ancestry = None
        if self._options.verbose and self._dependency_set is not None:
            ancestry = self._dependency_set.ancestry(result.identity)
        return self._text.format_result(result, ancestry)
