"""Unit tests for the IssuePipeline.

Verifies the label → analyze → strategize → implement → report flow by
mocking the GitHub client and event emitter, and asserting on the label
and comment calls made for each outcome.
"""

from unittest.mock import AsyncMock

import pytest

from src.autofix.classifier.analyzer import IssueAnalyzer
from src.autofix.classifier.models import FixResult
from src.autofix.events.models import EventType
from src.autofix.github import GitHubAPIError
from src.autofix.orchestrator import (
    ATTEMPTED_LABEL,
    ERROR_LABEL,
    HUMAN_REVIEW_MESSAGE,
    IN_PROGRESS_LABEL,
    SIMULATED_MESSAGE,
    SUCCESS_LABEL,
    IssuePipeline,
)
from src.autofix.store import AutoFixConfig
from tests.autofix.fakes import (
    FakeAnalysisBackend,
    FakeFixBackend,
    make_github_client,
    make_issue,
    make_repo,
    run_async,
)


@pytest.fixture
def deps():
    """Create a dict of mocked dependencies for the pipeline."""
    return {
        "github_client": make_github_client(),
        "analyzer": IssueAnalyzer(backend=FakeAnalysisBackend()),
        "fix_backend": FakeFixBackend(),
        "config": AutoFixConfig(),
        "event_emitter": AsyncMock(),
    }


@pytest.fixture
def pipeline(deps):
    return IssuePipeline(**deps)


def _added_labels(github_client):
    return [call.args[3] for call in github_client.add_labels.call_args_list]


def _removed_labels(github_client):
    return [call.args[3] for call in github_client.remove_label.call_args_list]


def _comment_bodies(github_client):
    return [call.args[3] for call in github_client.create_comment.call_args_list]


def _event_types(emitter):
    return [call.args[0].event_type for call in emitter.emit.call_args_list]


# ---------------------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------------------


def test_successful_fix_labels_auto_fixed(pipeline, deps):
    """Error issue with one file: auto-fixable, swarm reports success."""
    result = run_async(pipeline.process(make_issue(), make_repo()))

    assert result.success is True
    assert deps["fix_backend"].fixed == [42]
    assert _added_labels(deps["github_client"]) == [
        [IN_PROGRESS_LABEL],
        [SUCCESS_LABEL],
    ]
    assert _removed_labels(deps["github_client"]) == [IN_PROGRESS_LABEL]

    comments = _comment_bodies(deps["github_client"])
    assert len(comments) == 1
    assert "## 🤖 Auto-Fix Analysis Report" in comments[0]
    assert "- **Type**: error" in comments[0]


def test_progress_label_added_before_analysis(pipeline, deps):
    run_async(pipeline.process(make_issue(number=8), make_repo()))

    first_call = deps["github_client"].add_labels.call_args_list[0]
    assert first_call.args == ("acme", "widgets", 8, [IN_PROGRESS_LABEL])


def test_emits_transitions_and_completion(pipeline, deps):
    run_async(pipeline.process(make_issue(), make_repo()))

    types = _event_types(deps["event_emitter"])
    assert types.count(EventType.STATE_TRANSITION) == 4
    assert types[-1] == EventType.COMPLETION

    stages = [
        call.args[0].details.get("stage")
        for call in deps["event_emitter"].emit.call_args_list
        if call.args[0].event_type == EventType.STATE_TRANSITION
    ]
    assert stages == ["analyze", "strategize", "implement", "report"]


def test_backend_consulted_when_sparc_enabled(pipeline, deps):
    run_async(pipeline.process(make_issue(number=3), make_repo()))

    assert deps["analyzer"].backend.analyzed == [3]
    assert "SPARC methodology" in _comment_bodies(deps["github_client"])[0]


def test_backend_skipped_when_sparc_disabled(pipeline, deps):
    deps["config"].sparc.enabled = False

    run_async(pipeline.process(make_issue(), make_repo()))

    assert deps["analyzer"].backend.analyzed == []
    assert "Standard analysis" in _comment_bodies(deps["github_client"])[0]


# ---------------------------------------------------------------------------
# Implementation outcomes
# ---------------------------------------------------------------------------


def test_not_auto_fixable_skips_backend(pipeline, deps):
    issue = make_issue(title="Slow dashboard", body="performance is bad")

    result = run_async(pipeline.process(issue, make_repo()))

    assert result.success is False
    assert result.message == HUMAN_REVIEW_MESSAGE
    assert deps["fix_backend"].fixed == []
    assert _added_labels(deps["github_client"])[-1] == [ATTEMPTED_LABEL]


def test_too_many_files_skips_backend(pipeline, deps):
    issue = make_issue(
        title="Crash",
        body="error in a.py b.py c.py d.py",
    )

    result = run_async(pipeline.process(issue, make_repo()))

    assert result.message == HUMAN_REVIEW_MESSAGE
    assert deps["fix_backend"].fixed == []


def test_swarm_disabled_simulates_fix(pipeline, deps):
    deps["config"].swarm.enabled = False

    result = run_async(pipeline.process(make_issue(), make_repo()))

    assert result.message == SIMULATED_MESSAGE
    assert result.success is False
    assert deps["fix_backend"].fixed == []
    assert _added_labels(deps["github_client"])[-1] == [ATTEMPTED_LABEL]


def test_unsuccessful_fix_labels_attempted(deps):
    deps["fix_backend"] = FakeFixBackend(
        result=FixResult(message="Swarm did not report success: no output")
    )
    pipeline = IssuePipeline(**deps)

    result = run_async(pipeline.process(make_issue(), make_repo()))

    assert result.success is False
    assert _added_labels(deps["github_client"])[-1] == [ATTEMPTED_LABEL]
    assert "Swarm did not report success" in _comment_bodies(deps["github_client"])[0]


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


def test_fix_backend_exception_reports_error(deps):
    fix_backend = AsyncMock()
    fix_backend.fix.side_effect = RuntimeError("swarm crashed")
    deps["fix_backend"] = fix_backend
    pipeline = IssuePipeline(**deps)

    result = run_async(pipeline.process(make_issue(), make_repo()))

    assert result is None
    assert [ERROR_LABEL] in _added_labels(deps["github_client"])
    assert SUCCESS_LABEL not in sum(_added_labels(deps["github_client"]), [])

    comments = _comment_bodies(deps["github_client"])
    assert len(comments) == 1
    assert "## ❌ Auto-Fix Error" in comments[0]
    assert "swarm crashed" in comments[0]

    types = _event_types(deps["event_emitter"])
    assert EventType.ERROR in types
    assert EventType.COMPLETION not in types


def test_initial_label_failure_reports_error(pipeline, deps):
    deps["github_client"].add_labels.side_effect = [
        GitHubAPIError("GitHub API error: 500", status_code=500),
        [],
    ]

    result = run_async(pipeline.process(make_issue(), make_repo()))

    assert result is None
    assert deps["github_client"].add_labels.call_args_list[-1].args[3] == [ERROR_LABEL]
    assert "GitHub API error: 500" in _comment_bodies(deps["github_client"])[0]


def test_error_reporting_failures_do_not_raise(pipeline, deps):
    deps["github_client"].add_labels.side_effect = GitHubAPIError("down")
    deps["github_client"].remove_label.side_effect = GitHubAPIError("down")
    deps["github_client"].create_comment.side_effect = GitHubAPIError("down")

    assert run_async(pipeline.process(make_issue(), make_repo())) is None


def test_summary_comment_failure_is_not_fatal(pipeline, deps):
    deps["github_client"].create_comment.side_effect = GitHubAPIError("down")

    result = run_async(pipeline.process(make_issue(), make_repo()))

    assert result.success is True
    assert _added_labels(deps["github_client"])[-1] == [SUCCESS_LABEL]


def test_emitter_failure_is_not_fatal(pipeline, deps):
    deps["event_emitter"].emit.side_effect = RuntimeError("emitter down")

    result = run_async(pipeline.process(make_issue(), make_repo()))

    assert result.success is True


def test_comments_disabled(pipeline, deps):
    deps["config"].notifications.github_comments = False

    run_async(pipeline.process(make_issue(), make_repo()))

    deps["github_client"].create_comment.assert_not_called()
    assert _added_labels(deps["github_client"])[-1] == [SUCCESS_LABEL]
