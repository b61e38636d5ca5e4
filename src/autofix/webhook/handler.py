"""GitHub webhook handler for the auto-fix service.

This module provides the WebhookHandler class for verifying and parsing
GitHub webhook deliveries. When a webhook secret is configured every
delivery must carry a valid `X-Hub-Signature-256` header:

    X-Hub-Signature-256: sha256=<hex HMAC-SHA256 of the raw body>

GitHub Webhook Payload Structure (issues event):
{
  "action": "opened",
  "issue": {
    "number": 123,
    "title": "Issue title",
    "body": "Issue body",
    "labels": [{"name": "bug"}, {"name": "auto-fix"}]
  },
  "repository": {
    "full_name": "owner-name/repo-name",
    "name": "repo-name",
    "owner": {"login": "owner-name"}
  }
}

`issue_comment` payloads carry the same `issue` and `repository` objects
plus `comment.body`; `push` payloads carry `ref` and `commits`.
"""

import hashlib
import hmac
import logging
from typing import Any, Dict, List, Optional

from .models import (
    IssueCommentEvent,
    IssueEvent,
    IssueRef,
    PushEvent,
    RepositoryRef,
)

logger = logging.getLogger(__name__)

SIGNATURE_PREFIX = "sha256="


class WebhookHandler:
    """Handler for verifying and parsing GitHub webhook events.

    Parsing never raises: malformed payloads are logged and reported as
    None so the receiver can acknowledge and move on.

    Attributes:
        secret: The webhook secret, or None to skip signature checks.
    """

    def __init__(self, secret: Optional[str] = None) -> None:
        self.secret = secret

    def verify_signature(
        self, body: bytes, signature_header: Optional[str]
    ) -> bool:
        """Check the HMAC-SHA256 signature of a raw request body.

        Always succeeds when no secret is configured. A missing header is
        a mismatch. The comparison is constant-time.

        Args:
            body: Raw request body bytes.
            signature_header: Value of the X-Hub-Signature-256 header.

        Returns:
            True if the delivery is authentic (or unchecked).
        """
        if not self.secret:
            return True

        if not signature_header:
            logger.warning("Missing webhook signature header")
            return False

        expected = self.compute_signature(body)
        return hmac.compare_digest(
            expected.encode("utf-8"), signature_header.encode("utf-8")
        )

    def compute_signature(self, body: bytes) -> str:
        """Compute the `sha256=` signature GitHub would send for a body."""
        digest = hmac.new(
            (self.secret or "").encode("utf-8"),
            body,
            hashlib.sha256,
        ).hexdigest()
        return f"{SIGNATURE_PREFIX}{digest}"

    def parse_issue_event(self, payload: Dict[str, Any]) -> Optional[IssueEvent]:
        """Parse an `issues` event payload.

        Args:
            payload: The decoded webhook payload.

        Returns:
            IssueEvent if the payload is well-formed, None otherwise.
        """
        if not isinstance(payload, dict):
            logger.warning("Invalid payload: expected dict, got %s", type(payload))
            return None

        action = payload.get("action")
        if not isinstance(action, str):
            logger.warning("Missing 'action' field in issues payload")
            return None

        issue = self._parse_issue(payload.get("issue"))
        repository = self._parse_repository(payload.get("repository"))
        if issue is None or repository is None:
            return None

        return IssueEvent(action=action, issue=issue, repository=repository)

    def parse_issue_comment_event(
        self, payload: Dict[str, Any]
    ) -> Optional[IssueCommentEvent]:
        """Parse an `issue_comment` event payload.

        Args:
            payload: The decoded webhook payload.

        Returns:
            IssueCommentEvent if the payload is well-formed, None otherwise.
        """
        if not isinstance(payload, dict):
            logger.warning("Invalid payload: expected dict, got %s", type(payload))
            return None

        action = payload.get("action")
        if not isinstance(action, str):
            logger.warning("Missing 'action' field in issue_comment payload")
            return None

        comment = payload.get("comment")
        comment_body = ""
        if isinstance(comment, dict) and isinstance(comment.get("body"), str):
            comment_body = comment["body"]

        issue = self._parse_issue(payload.get("issue"))
        repository = self._parse_repository(payload.get("repository"))
        if issue is None or repository is None:
            return None

        return IssueCommentEvent(
            action=action,
            comment_body=comment_body,
            issue=issue,
            repository=repository,
        )

    def parse_push_event(self, payload: Dict[str, Any]) -> PushEvent:
        """Parse a `push` event payload.

        Push events are only counted, so missing fields fall back to
        empty values rather than failing.
        """
        if not isinstance(payload, dict):
            return PushEvent()

        commits = payload.get("commits")
        ref = payload.get("ref")
        repo_data = payload.get("repository")
        full_name = ""
        if isinstance(repo_data, dict) and isinstance(
            repo_data.get("full_name"), str
        ):
            full_name = repo_data["full_name"]

        return PushEvent(
            ref=ref if isinstance(ref, str) else "",
            commit_count=len(commits) if isinstance(commits, list) else 0,
            repository=full_name,
        )

    def _parse_issue(self, issue_data: Any) -> Optional[IssueRef]:
        """Build an IssueRef from the `issue` object of a payload."""
        if not isinstance(issue_data, dict):
            logger.warning(
                "Missing or invalid 'issue' field in payload: %s",
                type(issue_data),
            )
            return None

        number = issue_data.get("number")
        if not isinstance(number, int) or isinstance(number, bool) or number <= 0:
            logger.warning("Invalid issue number: %s", number)
            return None

        title = issue_data.get("title")
        if not isinstance(title, str):
            title = ""

        # Body can be None or empty string
        body = issue_data.get("body")
        if not isinstance(body, str):
            body = ""

        return IssueRef(
            number=number,
            title=title,
            body=body,
            labels=self._extract_labels(issue_data.get("labels", [])),
        )

    def _parse_repository(self, repo_data: Any) -> Optional[RepositoryRef]:
        """Build a RepositoryRef from the `repository` object of a payload.

        Prefers owner.login + name and falls back to splitting full_name.
        """
        if not isinstance(repo_data, dict):
            logger.warning(
                "Missing or invalid 'repository' field in payload: %s",
                type(repo_data),
            )
            return None

        owner = None
        owner_data = repo_data.get("owner")
        if isinstance(owner_data, dict) and isinstance(owner_data.get("login"), str):
            owner = owner_data["login"].strip()
        name = repo_data.get("name")
        name = name.strip() if isinstance(name, str) else None

        full_name = repo_data.get("full_name")
        if (not owner or not name) and isinstance(full_name, str) and "/" in full_name:
            owner, _, name = full_name.partition("/")

        if not owner or not name:
            logger.warning("Invalid repository data: %s", repo_data)
            return None

        return RepositoryRef(owner=owner, name=name)

    def _extract_labels(self, labels_data: Any) -> List[str]:
        """Extract label names from the labels array.

        GitHub sends labels as an array of objects with 'name' field:
        [{"name": "bug"}, {"name": "auto-fix"}]

        Args:
            labels_data: The labels array from the issue data.

        Returns:
            List of label name strings. Invalid entries are skipped.
        """
        if not isinstance(labels_data, list):
            logger.debug("Labels is not a list: %s", type(labels_data))
            return []

        labels = []
        for label in labels_data:
            if isinstance(label, dict):
                name = label.get("name")
                if isinstance(name, str) and name.strip():
                    labels.append(name.strip())
            elif isinstance(label, str) and label.strip():
                labels.append(label.strip())

        return labels
