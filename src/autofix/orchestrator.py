"""Issue pipeline connecting all stages of an auto-fix run.

Drives one admitted issue through a fixed sequence:
label → analyze → strategize → implement → report.

There are no retries and no partial resumption. Any exception raised by
a stage is caught at the pipeline boundary and turned into an
`auto-fix-error` label plus an error comment, so a failing issue never
stops the admission queue.

Source:
- src/autofix/classifier/analyzer.py (IssueAnalyzer)
- src/autofix/classifier/strategy.py (create_fix_strategy)
- src/autofix/runner/backends.py (FixBackend)
- src/autofix/github/client.py (GitHubClient)
- src/autofix/events/emitter.py (EventEmitter)
"""

import logging
import time
from typing import Optional

from src.autofix.classifier.analyzer import IssueAnalyzer
from src.autofix.classifier.formatting import (
    format_error_comment,
    format_summary_comment,
)
from src.autofix.classifier.models import FixResult, FixStrategy, IssueAnalysis
from src.autofix.classifier.strategy import create_fix_strategy
from src.autofix.events.emitter import EventEmitter, LoggingEventEmitter
from src.autofix.events.models import EventType, PipelineEvent
from src.autofix.github.client import GitHubClient
from src.autofix.runner.backends import FixBackend
from src.autofix.store import AutoFixConfig
from src.autofix.webhook.models import IssueRef, RepositoryRef, make_issue_id

logger = logging.getLogger(__name__)


IN_PROGRESS_LABEL = "auto-fixing"
SUCCESS_LABEL = "auto-fixed"
ATTEMPTED_LABEL = "auto-fix-attempted"
ERROR_LABEL = "auto-fix-error"

HUMAN_REVIEW_MESSAGE = "Issue requires human review - automated fix not attempted"
SIMULATED_MESSAGE = "Fix implementation simulated (swarm not available)"


class IssuePipeline:
    """Runs the analyze → strategize → implement → report sequence.

    Attributes:
        github_client: GitHub API client for comments and labels.
        analyzer: Keyword analyzer with optional SPARC backend.
        fix_backend: Swarm fix backend, or None when unavailable.
        config: Live configuration; backend toggles are read per run.
        event_emitter: Emits pipeline events for observability.
    """

    def __init__(
        self,
        github_client: GitHubClient,
        analyzer: IssueAnalyzer,
        fix_backend: Optional[FixBackend],
        config: AutoFixConfig,
        event_emitter: Optional[EventEmitter] = None,
    ):
        self.github_client = github_client
        self.analyzer = analyzer
        self.fix_backend = fix_backend
        self.config = config
        self.event_emitter = event_emitter or LoggingEventEmitter()

    async def process(
        self, issue: IssueRef, repository: RepositoryRef
    ) -> Optional[FixResult]:
        """Drive an issue through the full pipeline.

        Never raises. Errors are reported on the issue instead.

        Args:
            issue: Issue snapshot from the triggering event.
            repository: Repository the issue belongs to.

        Returns:
            The FixResult on completion, or None if the run failed.
        """
        issue_id = make_issue_id(issue, repository)
        started = time.monotonic()
        stage = "label"

        logger.info("Processing issue %s", issue_id)

        try:
            await self.github_client.add_labels(
                repository.owner, repository.name, issue.number, [IN_PROGRESS_LABEL]
            )

            stage = "analyze"
            await self._emit_transition_event(issue_id, repository, stage)
            analysis = await self.analyzer.analyze(
                issue, use_backend=self.config.sparc.enabled
            )

            stage = "strategize"
            await self._emit_transition_event(issue_id, repository, stage)
            strategy = create_fix_strategy(analysis)

            stage = "implement"
            await self._emit_transition_event(issue_id, repository, stage)
            result = await self._implement(issue, repository, strategy)

            stage = "report"
            await self._emit_transition_event(issue_id, repository, stage)
            await self._report(issue, repository, analysis, strategy, result)
        except Exception as exc:
            await self._fail(issue, repository, stage, exc)
            return None

        await self._emit_completion_event(
            issue_id, repository, result.success, time.monotonic() - started
        )
        logger.info("Completed processing issue %s", issue_id)
        return result

    async def _implement(
        self,
        issue: IssueRef,
        repository: RepositoryRef,
        strategy: FixStrategy,
    ) -> FixResult:
        """Attempt a fix if the strategy allows one."""
        if not strategy.auto_fixable:
            return FixResult(message=HUMAN_REVIEW_MESSAGE)

        if not self.config.swarm.enabled or self.fix_backend is None:
            return FixResult(message=SIMULATED_MESSAGE)

        result = await self.fix_backend.fix(issue, repository, strategy)
        logger.info(
            "Fix attempt finished for issue #%d: %s",
            issue.number,
            result.message,
            extra={"success": result.success},
        )
        return result

    async def _report(
        self,
        issue: IssueRef,
        repository: RepositoryRef,
        analysis: IssueAnalysis,
        strategy: FixStrategy,
        result: FixResult,
    ) -> None:
        """Post the summary comment and swap the status label."""
        comment = format_summary_comment(
            analysis,
            strategy,
            result,
            sparc_enabled=self.config.sparc.enabled,
            swarm_enabled=self.config.swarm.enabled,
        )
        await self._post_comment(issue, repository, comment, "summary")

        await self.github_client.remove_label(
            repository.owner, repository.name, issue.number, IN_PROGRESS_LABEL
        )
        await self.github_client.add_labels(
            repository.owner,
            repository.name,
            issue.number,
            [SUCCESS_LABEL if result.success else ATTEMPTED_LABEL],
        )

    async def _fail(
        self,
        issue: IssueRef,
        repository: RepositoryRef,
        stage: str,
        exc: Exception,
    ) -> None:
        """Label and comment a failed run. Nothing here is allowed to raise."""
        issue_id = make_issue_id(issue, repository)
        logger.exception(
            "Failed to process issue %s",
            issue_id,
            extra={"issue_id": issue_id, "stage": stage},
        )

        try:
            await self.github_client.add_labels(
                repository.owner, repository.name, issue.number, [ERROR_LABEL]
            )
        except Exception as label_exc:
            logger.warning(
                "Failed to add error label to %s: %s", issue_id, label_exc
            )

        try:
            await self.github_client.remove_label(
                repository.owner, repository.name, issue.number, IN_PROGRESS_LABEL
            )
        except Exception as label_exc:
            logger.warning(
                "Failed to remove progress label from %s: %s", issue_id, label_exc
            )

        await self._post_comment(
            issue, repository, format_error_comment(str(exc)), "error"
        )
        await self._safe_emit(
            PipelineEvent(
                event_type=EventType.ERROR,
                issue_id=issue_id,
                repository=repository.full_name,
                details={"stage": stage, "error_message": str(exc)},
            )
        )

    async def _post_comment(
        self,
        issue: IssueRef,
        repository: RepositoryRef,
        body: str,
        kind: str,
    ) -> None:
        """Post a comment, logging instead of raising on failure."""
        if not self.config.notifications.github_comments:
            logger.debug("GitHub comments disabled, skipping %s comment", kind)
            return

        try:
            await self.github_client.create_comment(
                repository.owner, repository.name, issue.number, body
            )
        except Exception as exc:
            logger.warning(
                "Failed to add %s comment to #%d: %s", kind, issue.number, exc
            )

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    async def _emit_transition_event(
        self,
        issue_id: str,
        repository: RepositoryRef,
        stage: str,
    ) -> None:
        await self._safe_emit(
            PipelineEvent(
                event_type=EventType.STATE_TRANSITION,
                issue_id=issue_id,
                repository=repository.full_name,
                details={"stage": stage},
            )
        )

    async def _emit_completion_event(
        self,
        issue_id: str,
        repository: RepositoryRef,
        success: bool,
        duration_seconds: float,
    ) -> None:
        await self._safe_emit(
            PipelineEvent(
                event_type=EventType.COMPLETION,
                issue_id=issue_id,
                repository=repository.full_name,
                details={
                    "success": success,
                    "duration_seconds": round(duration_seconds, 3),
                },
            )
        )

    async def _safe_emit(self, event: PipelineEvent) -> None:
        """Emit an event, swallowing exceptions to avoid disrupting the pipeline."""
        try:
            await self.event_emitter.emit(event)
        except Exception:
            logger.exception(
                "Failed to emit pipeline event",
                extra={
                    "event_type": event.event_type.value,
                    "issue_id": event.issue_id,
                },
            )
