"""Custom exceptions for find-reviewer.

The matching engine never raises for request input; its outcomes are results.
These exceptions belong to the collaborators around it (configuration files,
the user database and the HTTP wire format).
"""

from __future__ import annotations


class FindReviewerError(Exception):
    """Base exception for all find-reviewer errors."""

    pass


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigError(FindReviewerError):
    """Configuration-related error."""

    pass


class InvalidConfigError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: object, reason: str):
        self.key = key
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid configuration for {key}={value}: {reason}")


# =============================================================================
# User Database Errors
# =============================================================================


class UserDatabaseError(FindReviewerError):
    """The token -> identity table could not be loaded."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Could not load user database {path}: {reason}")


# =============================================================================
# Request Errors
# =============================================================================


class RequestError(FindReviewerError):
    """An inbound request was rejected before reaching the engine."""

    code = "BAD_REQUEST"


class MalformedRequestError(RequestError):
    """Request body is not a valid request."""

    code = "MALFORMED_REQUEST"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"JSON error: {reason}")


class MethodNotAllowedError(RequestError):
    """Request used a method other than POST."""

    code = "METHOD_NOT_ALLOWED"

    def __init__(self, method: str):
        self.method = method
        super().__init__("Must be a POST request")
