"""Newline-delimited JSON output formatter for evaluation results."""
import json
from typing import Any

from license_gate.models.evaluation import EvaluationResult


class NdjsonReportFormatter:
    """Format evaluation results as one JSON object per line.

    Records carry every EvaluationResult field. Parent relationships
    are not part of a result and are never serialized.
    """

    def format_result(self, result: EvaluationResult) -> str:
        """Format one evaluation result as a single-line JSON object.

        Args:
            result: The result to format.

        Returns:
            JSON string without a trailing newline.
        """
        return json.dumps(self._build_record(result))

    def _build_record(self, result: EvaluationResult) -> dict[str, Any]:
        return result.model_dump(mode="json")
