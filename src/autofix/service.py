"""Auto-fix service: event dispatch, admission and status.

One AutoFixService instance exists per process. It owns the live
configuration, the admission queue and the issue pipeline, and is handed
to the FastAPI app and the CLI explicitly rather than through module
globals.
"""

import logging
from typing import Any, Dict, Optional

from src.autofix.classifier.analyzer import IssueAnalyzer
from src.autofix.classifier.eligibility import is_manual_trigger, should_process
from src.autofix.config import AutoFixSettings
from src.autofix.events.emitter import EventEmitter, LoggingEventEmitter
from src.autofix.github.client import GitHubClient
from src.autofix.orchestrator import IssuePipeline
from src.autofix.queue import AdmissionQueue, EnqueueResult
from src.autofix.runner.backends import (
    AnalysisBackend,
    FixBackend,
    SparcAnalysisBackend,
    SwarmFixBackend,
)
from src.autofix.runner.command import CommandRunner
from src.autofix.store import AutoFixConfig, ConfigStore
from src.autofix.webhook.handler import WebhookHandler
from src.autofix.webhook.models import EventName, IssueRef, RepositoryRef

logger = logging.getLogger(__name__)


COMMENT_CREATED_ACTION = "created"


class AutoFixService:
    """Routes webhook events into the admission queue.

    Attributes:
        config: Live configuration. Backend toggles may be switched off
            in memory when a backend fails to initialize.
        store: Configuration store the config was loaded from.
        github_client: GitHub API client shared with the pipeline.
        analysis_backend: SPARC backend, if configured.
        fix_backend: Swarm backend, if configured.
        webhook_handler: Signature verification and payload parsing.
        pipeline: Issue pipeline run for every admitted issue.
        queue: Admission queue bounding concurrent runs.
        webhook_running: True while the HTTP server is serving.
    """

    def __init__(
        self,
        config: AutoFixConfig,
        store: ConfigStore,
        github_client: GitHubClient,
        analysis_backend: Optional[AnalysisBackend] = None,
        fix_backend: Optional[FixBackend] = None,
        webhook_secret: Optional[str] = None,
        event_emitter: Optional[EventEmitter] = None,
    ):
        self.config = config
        self.store = store
        self.github_client = github_client
        self.analysis_backend = analysis_backend
        self.fix_backend = fix_backend
        self.webhook_handler = WebhookHandler(secret=webhook_secret)
        self.pipeline = IssuePipeline(
            github_client=github_client,
            analyzer=IssueAnalyzer(backend=analysis_backend),
            fix_backend=fix_backend,
            config=config,
            event_emitter=event_emitter or LoggingEventEmitter(),
        )
        self.queue = AdmissionQueue(
            process=self.pipeline.process,
            max_concurrent=config.max_concurrent_issues,
        )
        self.webhook_running = False

    async def initialize(self) -> None:
        """Probe the external backends and disable the ones that fail.

        A failed probe only switches the subsystem off for this process;
        the stored configuration is left untouched.
        """
        if self.config.sparc.enabled:
            if self.analysis_backend is None or not await self._probe(
                self.analysis_backend, "SPARC"
            ):
                self.config.sparc.enabled = False

        if self.config.swarm.enabled:
            if self.fix_backend is None or not await self._probe(
                self.fix_backend, "swarm"
            ):
                self.config.swarm.enabled = False

        logger.info(
            "Auto-fix service initialized",
            extra={
                "sparc_enabled": self.config.sparc.enabled,
                "swarm_enabled": self.config.swarm.enabled,
            },
        )

    async def _probe(self, backend: Any, label: str) -> bool:
        try:
            return await backend.initialize()
        except Exception as exc:
            logger.warning("%s initialization failed: %s", label, exc)
            return False

    async def start(self) -> None:
        await self.queue.start()

    async def handle_webhook_event(
        self, event_name: str, payload: Dict[str, Any]
    ) -> None:
        """Dispatch a verified webhook payload by its event name.

        Unknown event names are logged and ignored.
        """
        if event_name == EventName.ISSUES.value:
            await self.handle_issue_event(payload)
        elif event_name == EventName.ISSUE_COMMENT.value:
            await self.handle_issue_comment_event(payload)
        elif event_name == EventName.PUSH.value:
            await self.handle_push_event(payload)
        else:
            logger.info("Unhandled event type: %s", event_name or "<missing>")

    async def handle_issue_event(
        self, payload: Dict[str, Any]
    ) -> Optional[EnqueueResult]:
        """Enqueue an opened or labeled issue that passes the eligibility rules."""
        event = self.webhook_handler.parse_issue_event(payload)
        if event is None:
            return None

        if not event.is_trigger:
            logger.debug("Ignoring issue action %s for %s", event.action, event.issue_id)
            return None

        if not self.config.enabled:
            logger.info("Auto-fix disabled, ignoring %s", event.issue_id)
            return None

        if not should_process(event.issue, event.repository, self.config):
            logger.info("Issue %s does not qualify for auto-fix", event.issue_id)
            return None

        return self.enqueue(event.issue, event.repository)

    async def handle_issue_comment_event(
        self, payload: Dict[str, Any]
    ) -> Optional[EnqueueResult]:
        """Force-enqueue an issue when a new comment contains `/auto-fix`."""
        event = self.webhook_handler.parse_issue_comment_event(payload)
        if event is None:
            return None

        if event.action != COMMENT_CREATED_ACTION:
            return None

        if not is_manual_trigger(event.comment_body):
            return None

        if not self.config.enabled:
            logger.info("Auto-fix disabled, ignoring manual trigger on %s", event.issue_id)
            return None

        logger.info("Manual auto-fix triggered for %s", event.issue_id)
        return self.enqueue(event.issue, event.repository, force=True)

    async def handle_push_event(self, payload: Dict[str, Any]) -> None:
        """Log a push. Pushes never start processing."""
        event = self.webhook_handler.parse_push_event(payload)
        logger.info(
            "Push to %s (%s): %d commit(s)",
            event.repository or "<unknown>",
            event.ref or "<unknown>",
            event.commit_count,
        )

    def enqueue(
        self,
        issue: IssueRef,
        repository: RepositoryRef,
        force: bool = False,
    ) -> EnqueueResult:
        result = self.queue.enqueue(issue, repository, force=force)
        logger.info(
            "Enqueue %s#%d: %s",
            repository.full_name,
            issue.number,
            result.value,
        )
        return result

    def get_status(self) -> Dict[str, Any]:
        """Snapshot of the configuration and queue counters."""
        return {
            "config": self.config.to_json_dict(),
            "active_issues": self.queue.active_count,
            "queued_issues": self.queue.pending_count,
            "webhook_running": self.webhook_running,
            "sparc_enabled": self.config.sparc.enabled,
            "swarm_enabled": self.config.swarm.enabled,
        }

    async def shutdown(self, timeout: float = 30.0, poll_interval: float = 1.0) -> None:
        """Stop accepting work, wait for active runs, then release clients."""
        logger.info("Shutting down auto-fix service")
        await self.queue.drain(timeout=timeout, poll_interval=poll_interval)
        await self.queue.stop()
        await self.github_client.close()
        logger.info("Auto-fix service shutdown complete")


def build_service(
    settings: AutoFixSettings,
    store: ConfigStore,
    config: AutoFixConfig,
    event_emitter: Optional[EventEmitter] = None,
) -> AutoFixService:
    """Wire all service dependencies from settings and configuration.

    Args:
        settings: Validated process settings.
        store: Store the configuration was loaded from.
        config: Loaded configuration.
        event_emitter: Optional emitter override.

    Returns:
        Fully wired AutoFixService.
    """
    runner = CommandRunner(timeout_seconds=settings.command_timeout_seconds)

    analysis_backend = SparcAnalysisBackend(
        runner=runner,
        command=settings.sparc_command,
        mode=config.sparc.mode,
        memory_namespace=config.sparc.memory_namespace,
    )
    fix_backend = SwarmFixBackend(
        runner=runner,
        command=settings.swarm_command,
        topology=config.swarm.topology,
        max_agents=config.swarm.max_agents,
    )
    github_client = GitHubClient(
        token=settings.github_token,
        base_url=settings.github_base_url,
    )

    return AutoFixService(
        config=config,
        store=store,
        github_client=github_client,
        analysis_backend=analysis_backend,
        fix_backend=fix_backend,
        webhook_secret=settings.github_webhook_secret,
        event_emitter=event_emitter,
    )
