"""Issue eligibility, analysis and fix strategy selection.

This module decides which issues are processed and what the pipeline
does with them:
- Eligibility filter over labels, keywords and the repository allow-list
- Keyword classification into error, performance, ui, feature, unknown
- Severity assignment and related file extraction
- Fixed per-type fix strategies
- Summary and error comment formatting
"""

from src.autofix.classifier.analyzer import IssueAnalyzer, classify_text
from src.autofix.classifier.eligibility import is_manual_trigger, should_process
from src.autofix.classifier.formatting import (
    format_error_comment,
    format_summary_comment,
)
from src.autofix.classifier.models import (
    FixResult,
    FixStrategy,
    IssueAnalysis,
    IssueType,
    Severity,
)
from src.autofix.classifier.strategy import create_fix_strategy

__all__ = [
    "FixResult",
    "FixStrategy",
    "IssueAnalysis",
    "IssueAnalyzer",
    "IssueType",
    "Severity",
    "classify_text",
    "create_fix_strategy",
    "format_error_comment",
    "format_summary_comment",
    "is_manual_trigger",
    "should_process",
]
