"""
Infrastructure layer for cookbookvendor.

Contains abstractions for external systems:
- GitHubClient: GitHub refs API and clone URIs
- filesystem: directory creation, removal and moves

These provide clean interfaces that can be mocked for testing.
"""

from .github_client import GitHubClient
from .filesystem import make_dir, delete_path, move_tree

__all__ = [
    'GitHubClient',
    'make_dir',
    'delete_path',
    'move_tree',
]
