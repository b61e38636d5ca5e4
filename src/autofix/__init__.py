"""GitHub issue auto-fix service.

This package listens for GitHub issue webhooks and drives eligible issues
through a fixed pipeline:
- Webhook intake with HMAC signature verification
- Label/keyword eligibility filtering
- Bounded admission queue for concurrent issue processing
- Keyword-based issue analysis and fix strategy selection
- External SPARC/swarm command backends for analysis and fixes
- Summary comments and status labels posted back to GitHub
"""
