"""Error types and sanitization utilities."""

import re
from typing import Any


class RolloutManagerError(Exception):
    """Base class for errors raised by the reconciliation engine."""


class SynthesisError(RolloutManagerError):
    """The RolloutManager spec cannot be turned into a desired object."""


class DuplicateArgumentError(SynthesisError):
    """An extra command argument repeats a flag implied by the spec."""

    def __init__(self, argument: str):
        super().__init__(f"Arg {argument} is already part of the default command arguments")
        self.argument = argument


class ReservedPluginError(SynthesisError):
    """A user plugin tries to redefine the built-in route plugin."""

    def __init__(self, plugin_name: str):
        super().__init__(
            f"the plugin {plugin_name} cannot be modified or added through the RolloutManager CR"
        )
        self.plugin_name = plugin_name


class PluginLocationError(SynthesisError):
    """A plugin has no location to download it from."""

    def __init__(self, plugin_name: str):
        super().__init__(f"the location of plugin {plugin_name} must be specified")
        self.plugin_name = plugin_name


class NormalizationError(RolloutManagerError):
    """A live object is missing fields that the synthesizer always sets."""

    def __init__(self, kind: str, message: str):
        super().__init__(f"{kind}: {message}")
        self.kind = kind


class ReconcileCancelled(RolloutManagerError):
    """The deadline for a reconcile pass expired before it completed."""


# Patterns that might expose sensitive information
SENSITIVE_PATTERNS = [
    r"(?:bearer|authorization)[:\s]+([A-Za-z0-9\-_\.=]+)",
    r"token[:\s]+([A-Za-z0-9\-_\.=]+)",
    r"password[:\s]+([^\s,;\)]+)",
]

# Fields to redact completely
SENSITIVE_FIELDS = {
    "password",
    "secret",
    "credentials",
    "token",
}


def sanitize_error_message(message: str) -> str:
    """Sanitize error message to remove sensitive information.

    Args:
        message: Original error message

    Returns:
        Sanitized error message with sensitive data redacted
    """
    sanitized = message
    for pattern in SENSITIVE_PATTERNS:
        sanitized = re.sub(
            pattern,
            lambda m: m.group(0).replace(m.group(1), "[REDACTED]"),
            sanitized,
            flags=re.IGNORECASE,
        )
    return sanitized


def sanitize_exception(error: Exception) -> str:
    """Sanitize exception message.

    Args:
        error: Exception object

    Returns:
        Sanitized error message
    """
    return sanitize_error_message(str(error))


def sanitize_dict(data: dict[str, Any], sensitive_keys: set[str] | None = None) -> dict[str, Any]:
    """Sanitize dictionary by redacting sensitive fields.

    Args:
        data: Dictionary to sanitize
        sensitive_keys: Additional keys to redact (merged with SENSITIVE_FIELDS)

    Returns:
        Sanitized dictionary with sensitive values redacted
    """
    all_sensitive = SENSITIVE_FIELDS | (sensitive_keys or set())
    sanitized = {}

    for key, value in data.items():
        if any(sensitive in key.lower() for sensitive in all_sensitive):
            sanitized[key] = "[REDACTED]"
        elif isinstance(value, dict):
            sanitized[key] = sanitize_dict(value, sensitive_keys)
        elif isinstance(value, str):
            sanitized[key] = sanitize_error_message(value)
        else:
            sanitized[key] = value

    return sanitized
