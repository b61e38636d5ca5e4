"""GitHub webhook handling for the auto-fix service.

This module verifies and parses GitHub webhook deliveries:
- issues - opened/labeled issues are checked for eligibility
- issue_comment - a `/auto-fix` comment forces processing
- push - counted and logged only
"""

from .handler import WebhookHandler
from .models import (
    EventName,
    IssueAction,
    IssueCommentEvent,
    IssueEvent,
    IssueRef,
    PushEvent,
    RepositoryRef,
    make_issue_id,
)

__all__ = [
    "EventName",
    "IssueAction",
    "IssueCommentEvent",
    "IssueEvent",
    "IssueRef",
    "PushEvent",
    "RepositoryRef",
    "WebhookHandler",
    "make_issue_id",
]
