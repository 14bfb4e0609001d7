"""Exception types raised inside inspecta stages."""

from __future__ import annotations


class InspectaError(RuntimeError):
    """Base class for recoverable inspecta failures."""


class ConfigError(InspectaError):
    """Raised when the configuration file cannot be parsed."""


class ContainerError(InspectaError):
    """Raised when a package artifact cannot be opened as a zip container."""


__all__ = ["ConfigError", "ContainerError", "InspectaError"]
