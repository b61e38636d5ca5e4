"""Fix strategy selection.

Strategies come from a fixed table keyed by issue type. Only two types
can be auto-fixable: `ui` always, and `error` when the issue mentions at
most MAX_AUTO_FIX_FILES related files.
"""

import logging
from typing import Dict, List, Tuple

from src.autofix.classifier.models import FixStrategy, IssueAnalysis, IssueType


logger = logging.getLogger(__name__)


MAX_AUTO_FIX_FILES = 3

# issue type -> (approach, steps)
STRATEGY_TABLE: Dict[IssueType, Tuple[str, List[str]]] = {
    IssueType.ERROR: (
        "debug",
        [
            "Examine stack trace and error logs",
            "Identify root cause in related files",
            "Create targeted fix",
            "Add error handling if needed",
            "Create unit test to prevent regression",
        ],
    ),
    IssueType.PERFORMANCE: (
        "optimize",
        [
            "Profile performance bottlenecks",
            "Analyze algorithmic complexity",
            "Implement optimization",
            "Add performance tests",
            "Validate improvement metrics",
        ],
    ),
    IssueType.UI: (
        "design",
        [
            "Review UI/UX requirements",
            "Check CSS and layout issues",
            "Test across browsers/devices",
            "Implement visual fixes",
            "Add visual regression tests",
        ],
    ),
    IssueType.FEATURE: (
        "implement",
        [
            "Analyze feature requirements",
            "Design implementation approach",
            "Create feature implementation",
            "Add comprehensive tests",
            "Update documentation",
        ],
    ),
    IssueType.UNKNOWN: (
        "investigate",
        [
            "Investigate issue details",
            "Gather additional context",
            "Propose solution approach",
            "Request human review",
        ],
    ),
}


def is_auto_fixable(analysis: IssueAnalysis) -> bool:
    """Decide whether the swarm backend may attempt a fix."""
    if analysis.issue_type == IssueType.ERROR:
        return len(analysis.related_files) <= MAX_AUTO_FIX_FILES
    return analysis.issue_type == IssueType.UI


def create_fix_strategy(analysis: IssueAnalysis) -> FixStrategy:
    """Look up the fix strategy for an analyzed issue.

    Args:
        analysis: Result of the analyze stage.

    Returns:
        FixStrategy for the issue type.
    """
    approach, steps = STRATEGY_TABLE[analysis.issue_type]
    strategy = FixStrategy(
        approach=approach,
        steps=list(steps),
        files_to_check=list(analysis.related_files),
        auto_fixable=is_auto_fixable(analysis),
        requires_human_review=True,
    )

    logger.info(
        "Fix strategy created: %s approach",
        strategy.approach,
        extra={"auto_fixable": strategy.auto_fixable},
    )
    return strategy
