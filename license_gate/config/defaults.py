"""Default configuration values for license-gate."""

from __future__ import annotations

from typing import Any, Optional

from license_gate.constants import DEFAULT_PERMITTED_LICENSE, DEFAULT_WHITELIST
from license_gate.models.policy import PolicyConfiguration


def get_default_config() -> PolicyConfiguration:
    """Get the configuration used for an empty policy file.

    Returns:
        PolicyConfiguration with no restrictions.
    """
    return PolicyConfiguration()


def default_config_document(
    license_expression: Optional[str] = None,
    whitelist: Optional[dict[str, str]] = None,
) -> dict[str, Any]:
    """Build the document written by ``license-gate init``.

    Args:
        license_expression: Permitted expression, or the default one.
        whitelist: Whitelist entries, or the default whitelist.

    Returns:
        Mapping ready to be dumped as YAML.
    """
    return {
        "license": license_expression or DEFAULT_PERMITTED_LICENSE,
        "whitelist": dict(whitelist) if whitelist else dict(DEFAULT_WHITELIST),
        "corrections": False,
    }
