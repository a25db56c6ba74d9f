"""Configuration file discovery, loading and creation for license-gate."""
from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from license_gate.config.defaults import default_config_document, get_default_config
from license_gate.constants import DEFAULT_CONFIG_NAMES
from license_gate.exceptions import ConfigurationError
from license_gate.models.policy import PolicyConfiguration

logger = logging.getLogger(__name__)

# Characters that start a specifier continuing the previous whitelist entry
_SPECIFIER_OPERATORS = "<>=!~"


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Find the policy file in the specified directory.

    Searches for `.license-gate.yaml` first, then `.license-gate.yml`.

    Args:
        start_dir: Directory to search. Defaults to current working directory.

    Returns:
        Path to the policy file if found, None otherwise.
    """
    search_dir = start_dir or Path.cwd()
    for name in DEFAULT_CONFIG_NAMES:
        config_path = search_dir / name
        if config_path.exists():
            return config_path
    return None


def load_config_file(path: Path) -> PolicyConfiguration:
    """Load and validate a policy from a YAML file.

    Args:
        path: Path to the policy file.

    Returns:
        Validated PolicyConfiguration instance.

    Raises:
        ConfigurationError: If file cannot be read, has invalid YAML,
            or fails Pydantic validation.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, PermissionError) as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e

    # Handle empty files - return default config
    if not content.strip():
        return get_default_config()

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML syntax in '{path}': {e}") from e

    # Handle YAML that parses to None (empty or just comments)
    if data is None:
        return get_default_config()

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Invalid configuration in '{path}': "
            f"expected a mapping at root level, got {type(data).__name__}"
        )

    try:
        return PolicyConfiguration.model_validate(data)
    except ValidationError as e:
        error_messages = _format_validation_errors(e)
        raise ConfigurationError(
            f"Invalid configuration in '{path}': {error_messages}"
        ) from e


def _format_validation_errors(error: ValidationError) -> str:
    """Format Pydantic validation errors into a readable string.

    Args:
        error: The Pydantic ValidationError.

    Returns:
        Formatted error message string.
    """
    messages: list[str] = []
    for err in error.errors():
        loc = ".".join(str(x) for x in err["loc"]) if err["loc"] else "root"
        messages.append(f"{loc}: {err['msg']}")
    return "; ".join(messages)


def load_config(
    config_path: str | None = None, start_dir: Path | None = None
) -> PolicyConfiguration:
    """Load the policy from a file.

    If a config_path is provided, loads from that file. Otherwise the
    policy file is searched for in start_dir.

    Args:
        config_path: Optional path to the policy file.
        start_dir: Directory to search when no path is given.

    Returns:
        PolicyConfiguration loaded from the file.

    Raises:
        ConfigurationError: If the file is invalid, or if no path was
            given and no policy file exists.
    """
    if config_path is not None:
        return load_config_file(Path(config_path))

    discovered = find_config_file(start_dir)
    if discovered is not None:
        return load_config_file(discovered)

    expected = (start_dir or Path.cwd()) / DEFAULT_CONFIG_NAMES[0]
    raise ConfigurationError(
        f"Cannot read {expected}. "
        f"Create it with `license-gate init` "
        "or configure with --license and --whitelist."
    )


def parse_whitelist(value: str) -> dict[str, str]:
    """Parse a comma-delimited list of ``name@range`` whitelist entries.

    A fragment starting with a comparison operator continues the
    previous entry's specifier set, so ``"a@>=1,<2,b@*"`` yields
    ``{"a": ">=1,<2", "b": "*"}``.

    Args:
        value: The raw command-line value.

    Returns:
        Mapping of package name to version range.

    Raises:
        ConfigurationError: If an entry is not of the form name@range.
    """
    whitelist: dict[str, str] = {}
    current: str | None = None

    for fragment in (part.strip() for part in value.split(",")):
        if not fragment:
            continue
        name, sep, version_range = fragment.partition("@")
        if sep and name.strip():
            current = name.strip()
            whitelist[current] = version_range.strip()
        elif current is not None and fragment[0] in _SPECIFIER_OPERATORS:
            whitelist[current] = f"{whitelist[current]},{fragment}"
        else:
            raise ConfigurationError(
                f"Invalid whitelist entry '{fragment}': expected name@range"
            )

    return whitelist


def policy_from_options(
    license_expression: str | None = None,
    whitelist: str | None = None,
    corrections: bool = False,
    require_provenance: bool = False,
    require_provenance_match: bool = False,
    production: bool = False,
    corrections_file: str | None = None,
) -> PolicyConfiguration:
    """Assemble a policy from command-line options.

    Raises:
        ConfigurationError: If the whitelist cannot be parsed.
    """
    return PolicyConfiguration(
        permitted_license=license_expression or None,
        whitelist=parse_whitelist(whitelist) if whitelist else {},
        use_corrections=corrections,
        require_provenance=require_provenance,
        require_provenance_match=require_provenance_match,
        production_only=production,
        corrections_file=corrections_file,
    )


def write_default_config(
    path: Path,
    license_expression: str | None = None,
    whitelist: dict[str, str] | None = None,
) -> Path:
    """Create a policy file with default values.

    Args:
        path: Where to write the policy file.
        license_expression: Permitted expression to write instead of the default.
        whitelist: Whitelist to write instead of the default.

    Returns:
        The path written.

    Raises:
        ConfigurationError: If the file already exists or cannot be written.
    """
    document = default_config_document(license_expression, whitelist)
    content = yaml.safe_dump(document, sort_keys=False, default_flow_style=False)

    try:
        with path.open("x", encoding="utf-8") as handle:
            handle.write(content)
    except FileExistsError as e:
        raise ConfigurationError(f"{path} already exists.") from e
    except OSError as e:
        raise ConfigurationError(f"Could not create {path}: {e}") from e

    return path


def load_crowd_corrections(path: Path) -> dict[tuple[str, str], str]:
    """Load crowd-sourced license corrections.

    The file maps package names to version/expression pairs::

        left-pad:
          "1.0.0": MIT
          "*": MIT

    A missing, unreadable or malformed file yields no corrections.

    Args:
        path: Path to the corrections YAML file.

    Returns:
        Mapping of (name, version) to corrected expression.
    """
    if not path.exists():
        logger.debug("No corrections file at %s", path)
        return {}

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        logger.debug("Ignoring corrections file %s: %s", path, e)
        return {}

    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.debug("Ignoring corrections file %s: expected a mapping", path)
        return {}

    corrections: dict[tuple[str, str], str] = {}
    for name, versions in data.items():
        if not isinstance(versions, dict):
            logger.debug("Ignoring corrections for %s: expected a mapping", name)
            continue
        for version, expression in versions.items():
            if not isinstance(expression, str):
                logger.debug(
                    "Ignoring correction for %s@%s: expected a string", name, version
                )
                continue
            corrections[(str(name), str(version))] = expression

    logger.debug("Loaded %d crowd-sourced corrections from %s", len(corrections), path)
    return corrections
