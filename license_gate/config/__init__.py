"""Configuration handling for license-gate."""
from __future__ import annotations

from license_gate.config.defaults import default_config_document, get_default_config
from license_gate.config.loader import (
    find_config_file,
    load_config,
    load_config_file,
    load_crowd_corrections,
    parse_whitelist,
    policy_from_options,
    write_default_config,
)
from license_gate.constants import DEFAULT_CONFIG_NAMES
from license_gate.models.policy import PolicyConfiguration

__all__ = [
    "DEFAULT_CONFIG_NAMES",
    "PolicyConfiguration",
    "default_config_document",
    "find_config_file",
    "get_default_config",
    "load_config",
    "load_config_file",
    "load_crowd_corrections",
    "parse_whitelist",
    "policy_from_options",
    "write_default_config",
]
