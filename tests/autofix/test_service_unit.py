"""Unit tests for AutoFixService event routing, initialization and status."""

from unittest.mock import AsyncMock

import pytest

from src.autofix.config import AutoFixSettings
from src.autofix.events.emitter import NullEventEmitter
from src.autofix.queue import EnqueueResult
from src.autofix.runner.backends import SparcAnalysisBackend, SwarmFixBackend
from src.autofix.service import AutoFixService, build_service
from src.autofix.store import AutoFixConfig
from tests.autofix.fakes import (
    FakeAnalysisBackend,
    FakeFixBackend,
    make_comment_payload,
    make_github_client,
    make_issue_payload,
    run_async,
)


def _make_service(store, config=None, **kwargs) -> AutoFixService:
    params = {
        "github_client": make_github_client(),
        "analysis_backend": FakeAnalysisBackend(),
        "fix_backend": FakeFixBackend(),
        "event_emitter": NullEventEmitter(),
    }
    params.update(kwargs)
    return AutoFixService(config=config or AutoFixConfig(), store=store, **params)


class TestInitialize:
    def test_backends_kept_when_available(self, store):
        service = _make_service(store)

        run_async(service.initialize())

        assert service.config.sparc.enabled is True
        assert service.config.swarm.enabled is True

    def test_failed_backends_disabled_in_memory_only(self, store):
        config = store.load()
        service = _make_service(
            store,
            config=config,
            analysis_backend=FakeAnalysisBackend(available=False),
            fix_backend=FakeFixBackend(available=False),
        )

        run_async(service.initialize())

        assert service.config.sparc.enabled is False
        assert service.config.swarm.enabled is False
        reloaded = store.load()
        assert reloaded.sparc.enabled is True
        assert reloaded.swarm.enabled is True

    def test_backend_exception_disables(self, store):
        backend = AsyncMock()
        backend.initialize.side_effect = RuntimeError("npx missing")
        service = _make_service(store, fix_backend=backend)

        run_async(service.initialize())

        assert service.config.swarm.enabled is False

    def test_disabled_backends_not_probed(self, store):
        config = AutoFixConfig()
        config.sparc.enabled = False
        backend = AsyncMock()
        service = _make_service(store, config=config, analysis_backend=backend)

        run_async(service.initialize())

        backend.initialize.assert_not_called()


class TestIssueEvents:
    def test_eligible_issue_processed(self, store):
        async def scenario():
            service = _make_service(store)
            await service.start()
            await service.handle_webhook_event(
                "issues", make_issue_payload(labels=["bug"])
            )
            await service.queue.wait_until_idle()
            await service.shutdown(timeout=1, poll_interval=0.01)
            return service

        service = run_async(scenario())

        assert service.fix_backend.fixed == [42]
        service.github_client.create_comment.assert_called_once()

    def test_handle_issue_event_returns_enqueue_result(self, store):
        async def scenario():
            service = _make_service(store)
            return await service.handle_issue_event(make_issue_payload())

        assert run_async(scenario()) == EnqueueResult.ADMITTED

    def test_closed_issue_ignored(self, store):
        service = _make_service(store)

        result = run_async(
            service.handle_issue_event(make_issue_payload(action="closed"))
        )

        assert result is None
        assert service.queue.active_count == 0

    def test_ineligible_issue_ignored(self, store):
        service = _make_service(store)

        result = run_async(
            service.handle_issue_event(
                make_issue_payload(title="Question", body="", labels=["question"])
            )
        )

        assert result is None

    def test_disabled_system_ignores_issues(self, store):
        service = _make_service(store, config=AutoFixConfig(enabled=False))

        assert run_async(service.handle_issue_event(make_issue_payload())) is None

    def test_malformed_payload_ignored(self, store):
        service = _make_service(store)

        assert run_async(service.handle_issue_event({"action": "opened"})) is None


class TestCommentEvents:
    def test_manual_trigger_forces_admission(self, store):
        config = AutoFixConfig(max_concurrent_issues=1)

        async def scenario():
            service = _make_service(store, config=config)
            await service.handle_issue_event(make_issue_payload(number=1))
            result = await service.handle_issue_comment_event(
                make_comment_payload(number=2)
            )
            return service, result

        service, result = run_async(scenario())

        assert result == EnqueueResult.ADMITTED
        assert service.queue.active_count == 2

    def test_comment_without_trigger_ignored(self, store):
        service = _make_service(store)

        result = run_async(
            service.handle_issue_comment_event(make_comment_payload(comment="thanks!"))
        )

        assert result is None

    def test_edited_comment_ignored(self, store):
        service = _make_service(store)

        result = run_async(
            service.handle_issue_comment_event(make_comment_payload(action="edited"))
        )

        assert result is None

    def test_manual_trigger_skips_label_rules(self, store):
        service = _make_service(store)

        result = run_async(
            service.handle_issue_comment_event(
                make_comment_payload(labels=["wontfix"])
            )
        )

        assert result == EnqueueResult.ADMITTED


class TestOtherEvents:
    def test_push_event_does_not_enqueue(self, store):
        service = _make_service(store)

        run_async(
            service.handle_webhook_event(
                "push", {"ref": "refs/heads/main", "commits": [{}]}
            )
        )

        assert service.queue.active_count == 0

    def test_unknown_event_ignored(self, store):
        service = _make_service(store)

        run_async(service.handle_webhook_event("star", {"action": "created"}))

        assert service.queue.active_count == 0


class TestStatus:
    def test_status_snapshot(self, store):
        service = _make_service(store)

        status = service.get_status()

        assert status["active_issues"] == 0
        assert status["queued_issues"] == 0
        assert status["webhook_running"] is False
        assert status["sparc_enabled"] is True
        assert status["config"]["webhookPort"] == 3001


class TestBuildService:
    def test_wires_backends_from_settings(self, store):
        settings = AutoFixSettings(
            github_token="ghp_test",
            sparc_command="my-flow",
            swarm_command="my-swarm --fast",
        )
        config = AutoFixConfig()

        service = build_service(settings, store, config)

        assert isinstance(service.analysis_backend, SparcAnalysisBackend)
        assert service.analysis_backend.command == "my-flow"
        assert isinstance(service.fix_backend, SwarmFixBackend)
        assert service.fix_backend._argv("--version") == ["my-swarm", "--fast", "--version"]
        assert service.webhook_handler.secret is None
        assert service.queue.max_concurrent == 3
