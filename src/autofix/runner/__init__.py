"""External command backends.

This module manages the SPARC and swarm CLI integrations:
- Async subprocess invocation with optional timeout
- stdout/stderr capture and streaming to logs
- Analysis/fix backend interfaces with CLI-backed implementations
"""

from src.autofix.runner.backends import (
    AnalysisBackend,
    FixBackend,
    SparcAnalysisBackend,
    SwarmFixBackend,
)
from src.autofix.runner.command import CommandResult, CommandRunner

__all__ = [
    "AnalysisBackend",
    "CommandResult",
    "CommandRunner",
    "FixBackend",
    "SparcAnalysisBackend",
    "SwarmFixBackend",
]
