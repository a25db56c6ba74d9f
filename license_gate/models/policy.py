"""Policy configuration model for license-gate."""
from __future__ import annotations

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class PolicyConfiguration(BaseModel):
    """The rules every dependency is evaluated against.

    Built from command-line flags or from a policy file; evaluation does
    not care which. Field aliases are the keys used in the YAML file.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    permitted_license: Optional[str] = Field(
        default=None,
        alias="license",
        description="SPDX expression of permitted licenses. "
        "None means no expression-based restriction.",
    )
    whitelist: Dict[str, str] = Field(
        default_factory=dict,
        description="Package name to PEP 440 version specifier. Matching "
        "packages are approved without license checks.",
    )
    use_corrections: bool = Field(
        default=False,
        alias="corrections",
        description="Allow license corrections to override declared metadata.",
    )
    require_provenance: bool = Field(
        default=False,
        description="Reject packages without file-level license data.",
    )
    require_provenance_match: bool = Field(
        default=False,
        description="Reject packages whose file-level license data "
        "disagrees with their metadata.",
    )
    production_only: bool = Field(
        default=False,
        alias="production",
        description="Skip development-only dependencies.",
    )
    corrections_file: Optional[str] = Field(
        default=None,
        description="Path to a crowd-sourced license corrections file.",
    )
