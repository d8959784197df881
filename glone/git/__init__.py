"""Git operations module.

This module provides the building blocks of a sync:
- Repository: local object-model operations on one checkout
- clone / fetch: network transfers with credentials and progress
- analyze: classify a local branch against a fetched commit
- fast_forward / three_way_merge: bring the branch up to date

Usage:
    from glone.git import Repository, analyze, fetch, resolve_strategy

    repo = Repository(Path("/path/to/repo"))
    strategy = resolve_strategy(provider.auth)
    fetched = fetch(repo, ["main"], strategy, NullObserver(), label="repo")
"""

from glone.git.analysis import MergeAnalysis, analyze
from glone.git.credentials import (
    AnonymousStrategy,
    CredentialStrategy,
    SshKeyStrategy,
    TransportAuth,
    UserPassStrategy,
    resolve_strategy,
)
from glone.git.merge import create_branch, fast_forward, three_way_merge
from glone.git.repository import Repository, StatusEntry, TreeMerge, branch_ref
from glone.git.transport import (
    NullObserver,
    ProgressObserver,
    TransferProgress,
    clone,
    fetch,
)

__all__ = [
    # Repository
    "Repository",
    "StatusEntry",
    "TreeMerge",
    "branch_ref",
    # Credentials
    "AnonymousStrategy",
    "CredentialStrategy",
    "SshKeyStrategy",
    "TransportAuth",
    "UserPassStrategy",
    "resolve_strategy",
    # Transport
    "NullObserver",
    "ProgressObserver",
    "TransferProgress",
    "clone",
    "fetch",
    # Merge
    "MergeAnalysis",
    "analyze",
    "create_branch",
    "fast_forward",
    "three_way_merge",
]
