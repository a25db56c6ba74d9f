"""Constants for license-gate."""

# Exit codes
EXIT_SUCCESS = 0  # Every dependency approved
EXIT_NOT_APPROVED = 1  # At least one dependency not approved
EXIT_ERROR = 1  # Configuration or collection failure

# Policy file names, searched in order
DEFAULT_CONFIG_NAMES = [".license-gate.yaml", ".license-gate.yml"]

# Crowd-sourced corrections file searched next to the policy file
DEFAULT_CORRECTIONS_NAME = ".license-corrections.yaml"

# Values written by `license-gate init`
DEFAULT_PERMITTED_LICENSE = "(MIT OR BSD-2-Clause OR BSD-3-Clause OR Apache-2.0)"
DEFAULT_WHITELIST = {"optimist": "<=0.6.1"}

# File-level provenance data
PROVENANCE_SOURCE = "ClearlyDefined"
CLEARLYDEFINED_BASE_URL = "https://api.clearlydefined.io/definitions"
MAX_CONCURRENT_REQUESTS = 10
