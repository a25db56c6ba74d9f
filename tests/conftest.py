"""Shared fixtures for license-gate tests."""

import pytest
from click.testing import CliRunner

from license_gate.models.dependency import Dependency
from license_gate.models.policy import PolicyConfiguration


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def permissive_policy() -> PolicyConfiguration:
    """Policy permitting MIT or Apache-2.0."""
    return PolicyConfiguration(permitted_license="MIT OR Apache-2.0")


@pytest.fixture
def left_pad() -> Dependency:
    """An MIT-licensed dependency with full metadata."""
    return Dependency(
        name="left-pad",
        version="1.0.0",
        declared_license="MIT",
        repository={"type": "git", "url": "https://github.com/example/left-pad"},
        homepage="https://example.com/left-pad",
        author={"name": "Ada", "email": "ada@example.com"},
        contributors=["Bob", {"name": "Cy", "url": "https://cy.example.com"}],
    )
