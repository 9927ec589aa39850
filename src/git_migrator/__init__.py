"""Git Migrator: copy a repository's commit timeline into another repository.

Each origin commit is replayed as an empty commit in the destination, stamped
with the original author time and tagged with a global identifier so repeated
runs only add what is missing.
"""

from . import (
    cli,
    config,
    constants,
    errors,
    events,
    git_wrapper,
    history,
    migrate,
)
from .migrate import create_commits_in_repo, migrate_to_fake_commit_repo

__all__ = [
    "cli",
    "config",
    "constants",
    "errors",
    "events",
    "git_wrapper",
    "history",
    "migrate",
    "create_commits_in_repo",
    "migrate_to_fake_commit_repo",
]
