"""Keyword-based issue analyzer.

This module implements the IssueAnalyzer that classifies an issue from
keywords in its title and body, assigns a severity from the issue type,
and extracts file paths mentioned in the text. When an analysis backend is
available it is asked to analyze the issue as well; its failure never
stops the analysis.

Keyword groups are checked in order and the first match wins:
error → performance → ui → feature → unknown.
"""

import logging
import re
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from src.autofix.classifier.models import IssueAnalysis, IssueType, Severity
from src.autofix.webhook.models import IssueRef

if TYPE_CHECKING:
    from src.autofix.runner.backends import AnalysisBackend


logger = logging.getLogger(__name__)


TYPE_KEYWORDS: Tuple[Tuple[IssueType, Tuple[str, ...]], ...] = (
    (IssueType.ERROR, ("error", "exception", "crash")),
    (IssueType.PERFORMANCE, ("slow", "performance")),
    (IssueType.UI, ("ui", "display", "visual")),
    (IssueType.FEATURE, ("feature", "enhancement")),
)

SEVERITY_BY_TYPE: Dict[IssueType, Severity] = {
    IssueType.ERROR: Severity.HIGH,
    IssueType.PERFORMANCE: Severity.MEDIUM,
    IssueType.UI: Severity.LOW,
    IssueType.FEATURE: Severity.LOW,
    IssueType.UNKNOWN: Severity.MEDIUM,
}

FILE_PATTERN = re.compile(
    r"[\w/.-]+\.(?:js|ts|py|java|cpp|c|go|rb|php|css|html|json|yaml|yml)\b"
)

BACKEND_SUGGESTION = "SPARC analysis completed"


def classify_text(text: str) -> IssueType:
    """Return the first issue type whose keywords appear in the text."""
    for issue_type, keywords in TYPE_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return issue_type
    return IssueType.UNKNOWN


def extract_related_files(text: str) -> List[str]:
    """Find file paths in the text, deduplicated in first-seen order."""
    files: List[str] = []
    for match in FILE_PATTERN.finditer(text):
        path = match.group(0)
        if path not in files:
            files.append(path)
    return files


class IssueAnalyzer:
    """Analyzes issues from their text and an optional backend.

    Attributes:
        backend: External analysis backend, or None to skip it.
    """

    def __init__(self, backend: Optional["AnalysisBackend"] = None):
        self.backend = backend

    async def analyze(
        self,
        issue: IssueRef,
        use_backend: bool = True,
    ) -> IssueAnalysis:
        """Analyze an issue.

        Args:
            issue: Issue snapshot to analyze.
            use_backend: Whether to consult the analysis backend.

        Returns:
            IssueAnalysis with type, severity, related files and suggestions.
        """
        suggestions: List[str] = []

        if use_backend and self.backend is not None:
            if await self._run_backend(issue):
                suggestions.append(BACKEND_SUGGESTION)

        text = issue.text
        issue_type = classify_text(text)
        analysis = IssueAnalysis(
            issue_type=issue_type,
            severity=SEVERITY_BY_TYPE[issue_type],
            related_files=extract_related_files(text),
            suggestions=suggestions,
        )

        logger.info(
            "Issue analysis completed: %s (%s severity)",
            analysis.issue_type.value,
            analysis.severity.value,
            extra={
                "issue_number": issue.number,
                "related_files": len(analysis.related_files),
            },
        )
        return analysis

    async def _run_backend(self, issue: IssueRef) -> bool:
        """Run the analysis backend, reporting failure as False."""
        try:
            result = await self.backend.analyze(issue)
        except Exception as e:
            logger.warning(
                "Analysis backend failed for issue #%d: %s",
                issue.number,
                e,
            )
            return False

        if not result.success:
            logger.warning(
                "Analysis backend failed for issue #%d: %s",
                issue.number,
                result.error_message,
            )
        return result.success
