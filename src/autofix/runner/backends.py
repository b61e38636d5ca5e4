"""Analysis and fix backends backed by external CLIs.

The pipeline talks to its "AI" stages through two small interfaces:

- AnalysisBackend: asked to analyze an issue; only success matters.
- FixBackend: asked to fix an issue with a chosen strategy; returns a
  FixResult.

The production implementations shell out to the SPARC methodology CLI
(`claude-flow`) and the swarm coordination CLI (`npx ruv-swarm`):

    claude-flow memory namespace <namespace>
    claude-flow sparc <mode> "Analyze GitHub issue: <title>. Description: <body>"
    npx ruv-swarm --version
    npx ruv-swarm init --topology <topology> --max-agents <n>
    npx ruv-swarm github issue-fix <number> --repo <owner/repo> --strategy <approach>

Tests substitute doubles that return canned results.
"""

import logging
import shlex
from abc import ABC, abstractmethod
from typing import List, Optional

from src.autofix.classifier.models import FixResult, FixStrategy
from src.autofix.runner.command import CommandResult, CommandRunner
from src.autofix.webhook.models import IssueRef, RepositoryRef


logger = logging.getLogger(__name__)


# Literal token the swarm CLI prints when a fix went through
SUCCESS_MARKER = "success"

MAX_MESSAGE_CHARS = 500


class AnalysisBackend(ABC):
    """Abstract external analysis capability."""

    async def initialize(self) -> bool:
        """Prepare the backend. Returns False if it is unavailable."""
        return True

    @abstractmethod
    async def analyze(self, issue: IssueRef) -> CommandResult:
        """Analyze an issue.

        Args:
            issue: Issue snapshot to analyze.

        Returns:
            CommandResult describing the backend run.
        """


class FixBackend(ABC):
    """Abstract external fix capability."""

    async def initialize(self) -> bool:
        """Prepare the backend. Returns False if it is unavailable."""
        return True

    @abstractmethod
    async def fix(
        self,
        issue: IssueRef,
        repository: RepositoryRef,
        strategy: FixStrategy,
    ) -> FixResult:
        """Attempt to fix an issue.

        Backend failures are reported as unsuccessful results rather
        than raised.

        Args:
            issue: Issue snapshot.
            repository: Repository the issue belongs to.
            strategy: Strategy chosen for the issue.

        Returns:
            FixResult describing the attempt.
        """


class SparcAnalysisBackend(AnalysisBackend):
    """Analysis backend running the SPARC methodology CLI.

    Attributes:
        runner: Subprocess runner.
        command: Command prefix, e.g. "claude-flow".
        mode: SPARC mode used for analysis.
        memory_namespace: Memory namespace set up during initialize().
    """

    def __init__(
        self,
        runner: CommandRunner,
        command: str = "claude-flow",
        mode: str = "debug_specialist",
        memory_namespace: str = "github_autofix",
    ):
        self.runner = runner
        self.command = command
        self.mode = mode
        self.memory_namespace = memory_namespace

    async def initialize(self) -> bool:
        result = await self.runner.run(
            self._argv("memory", "namespace", self.memory_namespace)
        )
        if not result.success:
            logger.warning(
                "SPARC system not available, continuing without SPARC features: %s",
                result.error_message,
            )
            return False
        logger.info("SPARC system initialized")
        return True

    async def analyze(self, issue: IssueRef) -> CommandResult:
        description = issue.body or "No description"
        prompt = f"Analyze GitHub issue: {issue.title}. Description: {description}"
        return await self.runner.run(self._argv("sparc", self.mode, prompt))

    def _argv(self, *args: str) -> List[str]:
        return [*shlex.split(self.command), *args]


class SwarmFixBackend(FixBackend):
    """Fix backend running the swarm coordination CLI.

    Attributes:
        runner: Subprocess runner.
        command: Command prefix, e.g. "npx ruv-swarm".
        topology: Swarm topology passed to init.
        max_agents: Agent limit passed to init.
    """

    def __init__(
        self,
        runner: CommandRunner,
        command: str = "npx ruv-swarm",
        topology: str = "hierarchical",
        max_agents: int = 5,
    ):
        self.runner = runner
        self.command = command
        self.topology = topology
        self.max_agents = max_agents

    async def initialize(self) -> bool:
        result = await self.runner.run(self._argv("--version"))
        if result.success:
            result = await self.runner.run(
                self._argv(
                    "init",
                    "--topology",
                    self.topology,
                    "--max-agents",
                    str(self.max_agents),
                )
            )
        if not result.success:
            logger.warning(
                "Swarm system not available, continuing without swarm features: %s",
                result.error_message,
            )
            return False
        logger.info("Swarm system initialized")
        return True

    async def fix(
        self,
        issue: IssueRef,
        repository: RepositoryRef,
        strategy: FixStrategy,
    ) -> FixResult:
        result = await self.runner.run(
            self._argv(
                "github",
                "issue-fix",
                str(issue.number),
                "--repo",
                repository.full_name,
                "--strategy",
                strategy.approach,
            )
        )

        if not result.success:
            return FixResult(
                success=False,
                message=f"Fix implementation failed: {_truncate(result.error_message)}",
            )

        if SUCCESS_MARKER in result.stdout:
            return FixResult(
                success=True,
                implemented=True,
                message="Fix implemented successfully using swarm coordination",
            )

        output = _truncate(result.stdout.strip()) or "no output"
        return FixResult(
            success=False,
            message=f"Swarm did not report success: {output}",
        )

    def _argv(self, *args: str) -> List[str]:
        return [*shlex.split(self.command), *args]


def _truncate(text: Optional[str]) -> str:
    if not text:
        return ""
    if len(text) <= MAX_MESSAGE_CHARS:
        return text
    return text[:MAX_MESSAGE_CHARS] + "..."
