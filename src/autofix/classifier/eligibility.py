"""Eligibility filter deciding which issues enter the pipeline.

The decision is a pure function of the issue snapshot, the repository and
the configuration:

1. A non-empty repository allow-list must contain the repository.
2. Any ignored label rejects the issue, even alongside auto-fix labels.
3. Any auto-fix label accepts the issue.
4. Otherwise the issue text must contain a bug keyword AND the issue must
   carry the literal `bug` label.

A `/auto-fix` comment bypasses this filter entirely; see
service.AutoFixService.handle_issue_comment_event.
"""

from src.autofix.store import AutoFixConfig
from src.autofix.webhook.models import IssueRef, RepositoryRef


BUG_KEYWORDS = ("error", "bug", "broken", "fails", "not working", "crash")

# Checked literally, independent of config.auto_fix_labels
BUG_LABEL = "bug"

MANUAL_TRIGGER = "/auto-fix"


def should_process(
    issue: IssueRef,
    repository: RepositoryRef,
    config: AutoFixConfig,
) -> bool:
    """Decide whether an issue qualifies for automatic processing.

    Args:
        issue: Issue snapshot from the webhook event.
        repository: Repository the issue belongs to.
        config: Current auto-fix configuration.

    Returns:
        True if the issue should be enqueued.
    """
    if config.repositories and repository.full_name not in config.repositories:
        return False

    labels = set(issue.labels)

    if labels.intersection(config.ignored_labels):
        return False

    if labels.intersection(config.auto_fix_labels):
        return True

    text = issue.text
    has_bug_keyword = any(keyword in text for keyword in BUG_KEYWORDS)
    return has_bug_keyword and BUG_LABEL in labels


def is_manual_trigger(comment_body: str) -> bool:
    """Check whether a comment requests a manual auto-fix run."""
    return MANUAL_TRIGGER in (comment_body or "")
