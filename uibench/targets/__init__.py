"""
Benchmark targets package.
Each target is a UI stack served over HTTP and driven through a headless browser.
"""

from typing import List

from ..config import Config, TARGET_NAMES
from .base import (
    Target,
    BenchmarkError,
    ConfigurationError,
    TargetUnavailable,
    BuildFailure,
    ServerStartFailure,
    ServerTimeout,
    NavigationFailure,
    ApiNotExposed,
    ValidationMismatch,
    InvalidResultShape,
)
from .server import ServerLifecycle, ServerHandle
from .browser import BrowserSession, PageApi


def get_target(name: str) -> Target:
    """
    Get a configured target by name.

    Args:
        name: Target name (e.g., 'react', 'angular')

    Returns:
        Target instance

    Raises:
        ConfigurationError: If the target is not configured
    """
    config = Config.get_target_config(name)
    if config is None:
        available = ", ".join(TARGET_NAMES)
        raise ConfigurationError(f"Unknown target: {name}. Available: {available}")

    return Target.from_config(name.lower(), config)


def list_targets() -> List[str]:
    """List all configured target names."""
    return list(TARGET_NAMES)


def resolve_targets(selection: str = "all") -> List[Target]:
    """Resolve a CLI selection ("all" or a single target name) to targets."""
    if selection.lower() == "all":
        return [get_target(name) for name in TARGET_NAMES]
    return [get_target(selection)]


__all__ = [
    "Target",
    "BenchmarkError",
    "ConfigurationError",
    "TargetUnavailable",
    "BuildFailure",
    "ServerStartFailure",
    "ServerTimeout",
    "NavigationFailure",
    "ApiNotExposed",
    "ValidationMismatch",
    "InvalidResultShape",
    "ServerLifecycle",
    "ServerHandle",
    "BrowserSession",
    "PageApi",
    "get_target",
    "list_targets",
    "resolve_targets",
]
