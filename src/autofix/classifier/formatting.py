"""Issue comment formatting for the auto-fix pipeline.

This module formats the summary comment posted after a pipeline run and
the error comment posted when a run fails, as GitHub-flavored markdown.
"""

from datetime import datetime, timezone
from typing import List, Optional

from src.autofix.classifier.models import FixResult, FixStrategy, IssueAnalysis


FOOTER_SIGNATURE = "*Generated by GitHub Auto-Fix System"


def format_summary_comment(
    analysis: IssueAnalysis,
    strategy: FixStrategy,
    result: FixResult,
    sparc_enabled: bool,
    swarm_enabled: bool,
    timestamp: Optional[datetime] = None,
) -> str:
    """Format the analysis report posted at the end of a pipeline run.

    Args:
        analysis: Result of the analyze stage.
        strategy: Result of the strategize stage.
        result: Result of the implement stage.
        sparc_enabled: Whether the SPARC backend was in use.
        swarm_enabled: Whether the swarm backend was in use.
        timestamp: Report time; defaults to now (UTC).

    Returns:
        Markdown comment body.
    """
    timestamp = timestamp or datetime.now(timezone.utc)
    related_files = (
        ", ".join(analysis.related_files)
        if analysis.related_files
        else "None identified"
    )

    result_lines = [
        f"- **Status**: {'✅ Success' if result.success else '⚠️ Partial/Failed'}",
        f"- **Result**: {_single_line(result.message)}",
    ]
    if result.pull_request_created:
        result_lines.append(
            f"- **Pull Request**: Created on branch `{result.branch_name}`"
        )
    if result.tests_added:
        result_lines.append("- **Tests**: Added regression tests")

    analysis_engine = "SPARC methodology" if sparc_enabled else "Standard analysis"
    fix_engine = (
        "Swarm coordination" if swarm_enabled else "Single-agent processing"
    )

    return "\n".join(
        [
            "## 🤖 Auto-Fix Analysis Report",
            "",
            "### Issue Analysis",
            f"- **Type**: {analysis.issue_type.value}",
            f"- **Severity**: {analysis.severity.value}",
            f"- **Complexity**: {analysis.complexity}",
            f"- **Related Files**: {related_files}",
            "",
            "### Fix Strategy",
            f"- **Approach**: {strategy.approach}",
            f"- **Auto-fixable**: {_yes_no(strategy.auto_fixable)}",
            f"- **Human Review Required**: {_yes_no(strategy.requires_human_review)}",
            "",
            "### Implementation Result",
            *result_lines,
            "",
            "### Next Steps",
            _numbered(strategy.steps),
            "",
            "---",
            f"{FOOTER_SIGNATURE} at {timestamp.isoformat()}*",
            f"*Powered by {analysis_engine} and {fix_engine}*",
        ]
    )


def format_error_comment(error_message: str) -> str:
    """Format the comment posted when a pipeline run fails.

    Args:
        error_message: Message of the error that stopped the run.

    Returns:
        Markdown comment body.
    """
    return "\n".join(
        [
            "## ❌ Auto-Fix Error",
            "",
            "An error occurred while attempting to automatically analyze "
            "and fix this issue:",
            "",
            "```",
            error_message.replace("```", "'''"),
            "```",
            "",
            "The issue has been marked for manual review. A human developer "
            "will need to investigate this issue.",
            "",
            "---",
            f"{FOOTER_SIGNATURE}*",
        ]
    )


def _numbered(steps: List[str]) -> str:
    return "\n".join(f"{i}. {step}" for i, step in enumerate(steps, start=1))


def _yes_no(value: bool) -> str:
    return "Yes" if value else "No"


def _single_line(text: str) -> str:
    """Collapse newlines so multi-line backend output stays in its bullet."""
    return " ".join(text.split())
