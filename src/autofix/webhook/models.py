"""GitHub webhook event models for the auto-fix service.

This module defines the snapshots taken from inbound GitHub webhook
payloads. Issue and repository references are frozen: the pipeline works
on the state of the issue at the moment the event arrived and never
re-reads it.

The models use Pydantic for validation, consistent with the settings in
config.py and the configuration store in store.py.
"""

from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class EventName(str, Enum):
    """GitHub webhook event names handled by the receiver.

    Attributes:
        ISSUES: Issue opened, labeled, edited, closed, ...
        ISSUE_COMMENT: Comment created on an issue.
        PUSH: Commits pushed to a branch.
    """

    ISSUES = "issues"
    ISSUE_COMMENT = "issue_comment"
    PUSH = "push"


class IssueAction(str, Enum):
    """Issue actions that can trigger processing.

    Attributes:
        OPENED: A new issue was created.
        LABELED: A label was added to an issue.
    """

    OPENED = "opened"
    LABELED = "labeled"


class RepositoryRef(BaseModel):
    """Snapshot of the repository an event belongs to.

    Attributes:
        owner: The repository owner (user or organization).
        name: The repository name without owner prefix.
    """

    model_config = ConfigDict(frozen=True)

    owner: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)

    @property
    def full_name(self) -> str:
        """Repository path in format "{owner}/{name}"."""
        return f"{self.owner}/{self.name}"


class IssueRef(BaseModel):
    """Immutable snapshot of an issue taken from an inbound event.

    Attributes:
        number: The issue number within the repository.
        title: The issue title text.
        body: The issue body text. Empty when GitHub sends null.
        labels: Label names attached to the issue.
    """

    model_config = ConfigDict(frozen=True)

    number: int = Field(..., gt=0)
    title: str = ""
    body: str = ""
    labels: List[str] = Field(default_factory=list)

    @property
    def text(self) -> str:
        """Lower-cased title and body joined by a space."""
        return f"{self.title} {self.body}".lower()


def make_issue_id(issue: IssueRef, repository: RepositoryRef) -> str:
    """Build the canonical issue identifier "{owner}/{repo}#{number}"."""
    return f"{repository.full_name}#{issue.number}"


class IssueEvent(BaseModel):
    """Parsed `issues` webhook event.

    Attributes:
        action: Raw action string from the payload (opened, labeled, ...).
        issue: Issue snapshot.
        repository: Repository snapshot.
    """

    action: str
    issue: IssueRef
    repository: RepositoryRef

    @property
    def issue_id(self) -> str:
        return make_issue_id(self.issue, self.repository)

    @property
    def is_trigger(self) -> bool:
        """True for the actions that can start processing."""
        return self.action in {a.value for a in IssueAction}


class IssueCommentEvent(BaseModel):
    """Parsed `issue_comment` webhook event.

    Attributes:
        action: Raw action string from the payload (created, edited, ...).
        comment_body: Text of the comment.
        issue: Issue snapshot.
        repository: Repository snapshot.
    """

    action: str
    comment_body: str = ""
    issue: IssueRef
    repository: RepositoryRef

    @property
    def issue_id(self) -> str:
        return make_issue_id(self.issue, self.repository)


class PushEvent(BaseModel):
    """Parsed `push` webhook event.

    Attributes:
        ref: The pushed git ref, if present.
        commit_count: Number of commits in the push.
        repository: Full repository name, if present.
    """

    ref: str = ""
    commit_count: int = 0
    repository: str = ""
