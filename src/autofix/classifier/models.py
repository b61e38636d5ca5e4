"""Issue analysis models for the auto-fix pipeline.

This module defines the data models produced by the analyze, strategize
and implement stages:
- IssueType / Severity: keyword-derived classification
- IssueAnalysis: classification plus related files and suggestions
- FixStrategy: remediation plan looked up from the issue type
- FixResult: outcome of the implement stage

The models use Pydantic for validation, consistent with the webhook
models in webhook/models.py.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class IssueType(str, Enum):
    """Keyword-based classification of an issue.

    Attributes:
        ERROR: Crash, exception or error report.
        PERFORMANCE: Slowness or performance complaint.
        UI: Display or visual problem.
        FEATURE: Feature or enhancement request.
        UNKNOWN: No keyword matched.
    """

    ERROR = "error"
    PERFORMANCE = "performance"
    UI = "ui"
    FEATURE = "feature"
    UNKNOWN = "unknown"


class Severity(str, Enum):
    """Severity assigned from the issue type."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class IssueAnalysis(BaseModel):
    """Result of analyzing an issue's text.

    Attributes:
        issue_type: The classified type of the issue.
        severity: Severity derived from the issue type.
        complexity: Complexity estimate. Always "unknown"; reported in
            the summary comment for readers.
        related_files: File paths mentioned in the issue, first-seen order.
        suggestions: Notes collected during analysis.
    """

    issue_type: IssueType = IssueType.UNKNOWN
    severity: Severity = Severity.MEDIUM
    complexity: str = "unknown"
    related_files: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)


class FixStrategy(BaseModel):
    """Remediation plan for an analyzed issue.

    Attributes:
        approach: Short name of the approach (debug, optimize, ...).
        steps: Ordered remediation steps.
        files_to_check: Files the fix should start from.
        auto_fixable: Whether the swarm backend may attempt a fix.
        requires_human_review: Whether a human must review the outcome.
    """

    approach: str = "investigate"
    steps: List[str] = Field(default_factory=list)
    files_to_check: List[str] = Field(default_factory=list)
    auto_fixable: bool = False
    requires_human_review: bool = True


class FixResult(BaseModel):
    """Outcome of the implement stage.

    Attributes:
        success: True when the fix backend reported success.
        implemented: True when a change was made.
        message: Human-readable outcome, including backend errors.
        pull_request_created: Whether a pull request was opened.
        branch_name: Branch of the pull request, if any.
        tests_added: Whether regression tests were added.
    """

    success: bool = False
    implemented: bool = False
    message: str = "Fix implementation attempted"
    pull_request_created: bool = False
    branch_name: Optional[str] = None
    tests_added: bool = False
