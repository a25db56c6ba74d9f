"""Custom exceptions for license-gate."""


class LicenseGateError(Exception):
    """Base exception for all license-gate errors."""

    pass


class NetworkError(LicenseGateError):
    """Exception raised when a provenance lookup fails."""

    pass


class ConfigurationError(LicenseGateError):
    """Exception raised when the license policy is invalid or missing."""

    pass


class CollectionError(LicenseGateError):
    """Exception raised when the project's dependencies cannot be collected."""

    pass
