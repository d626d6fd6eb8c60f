"""
Benchmark target model and error taxonomy.
Every benchmarked UI stack is described by a Target.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, Tuple


@dataclass(frozen=True)
class Target:
    """
    One benchmarked UI stack.

    The target is treated as a black-box HTTP server: it is built with
    ``build_command``, served with ``start_command`` (both argv form, run in
    ``working_directory``) and answers on ``port``.
    """
    name: str
    working_directory: Path
    port: int
    build_command: Tuple[str, ...] = field(default_factory=tuple)
    start_command: Tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_config(cls, name: str, config: Dict[str, Any]) -> "Target":
        """Build a Target from a ``Config.get_target_config`` dictionary."""
        return cls(
            name=name,
            working_directory=Path(config["working_directory"]),
            port=int(config["port"]),
            build_command=tuple(config.get("build_command") or ()),
            start_command=tuple(config.get("start_command") or ()),
        )

    def url(self, host: str = "localhost") -> str:
        return f"http://{host}:{self.port}"

    def __repr__(self) -> str:
        return f"<Target(name={self.name}, port={self.port})>"


class BenchmarkError(Exception):
    """Base exception for benchmark errors."""
    pass


class ConfigurationError(BenchmarkError):
    """Raised when a target name or setting is invalid."""
    pass


class TargetUnavailable(BenchmarkError):
    """A failure that is fatal for one target (the run continues with the rest)."""
    pass


class BuildFailure(TargetUnavailable):
    """Raised when the build step exits non-zero."""
    pass


class ServerStartFailure(TargetUnavailable):
    """Raised when the server process cannot be spawned or dies before answering."""
    pass


class ServerTimeout(TargetUnavailable):
    """Raised when the server port does not accept connections before the timeout."""
    pass


class NavigationFailure(TargetUnavailable):
    """Raised when the page cannot be loaded before the timeout."""
    pass


class ApiNotExposed(TargetUnavailable):
    """Raised when the page never exposes the benchmark entry points."""
    pass


class ValidationMismatch(BenchmarkError):
    """A render result disagrees with the rendered DOM. Recoverable."""
    pass


class InvalidResultShape(BenchmarkError):
    """A result is missing its numeric timing field. Recoverable."""
    pass
