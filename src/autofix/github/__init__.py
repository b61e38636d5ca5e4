"""GitHub API client for issue interactions.

This module provides a wrapper around the GitHub API for:
- Creating comments on issues
- Managing labels (add/remove)
"""

from src.autofix.github.client import (
    GitHubAPIError,
    GitHubClient,
    RateLimitError,
)

__all__ = [
    "GitHubAPIError",
    "GitHubClient",
    "RateLimitError",
]
