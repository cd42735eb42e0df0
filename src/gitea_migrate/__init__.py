"""Gitea Migration Tool

Migrates repositories from a GitLab instance to Gitea through Gitea's
repository import API, optionally copying each project's deploy keys.
"""

__version__ = '0.1.0'

__all__ = ['__version__']
