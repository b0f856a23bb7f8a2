"""
Git Sync - keep a fleet of forks in sync with their upstreams.

This package updates the main branch of every listed repository from its
upstream remote, pushes it to the fork and prunes local and remote
branches that were already merged upstream.
"""

__version__ = "1.0.0"
