"""Reconciling a local branch with a fetched commit.

Two appliers, picked by ``glone.git.analysis``:
- fast-forward (and branch creation for an unborn repository)
- three-way merge, which stops at conflicts without committing
"""

from __future__ import annotations

import logging

from glone.core.errors import SyncError
from glone.core.outcome import ConflictDetected, FastForwarded, Merged
from glone.core.result import Err, Ok, Result
from glone.git.repository import Repository, branch_ref

__all__ = ["create_branch", "fast_forward", "merge_message", "three_way_merge"]

logger = logging.getLogger(__name__)


def merge_message(local: str, remote: str) -> str:
    return f"Merge: {remote} into {local}"


def fast_forward(
    repo: Repository,
    branch: str,
    old_id: str,
    new_id: str,
) -> Result[FastForwarded, SyncError]:
    """Move ``branch`` from ``old_id`` to ``new_id`` and force the checkout.

    Uncommitted changes to tracked files are overwritten.
    """
    refname = branch_ref(branch)
    msg = f"Fast-Forward: Setting {refname} to id: {new_id}"
    logger.info(msg)

    entries = repo.status_entries()
    if isinstance(entries, Err):
        return entries
    modified = [e.path for e in entries.value if not e.is_untracked]
    if modified:
        logger.warning(
            "Overwriting local modifications in %s: %s", repo.path, ", ".join(modified)
        )

    result = repo.update_ref(refname, new_id, old_id, msg)
    if isinstance(result, Err):
        return result
    result = repo.checkout_force(branch)
    if isinstance(result, Err):
        return result
    return Ok(FastForwarded(old_id=old_id, new_id=new_id))


def create_branch(repo: Repository, branch: str, new_id: str) -> Result[FastForwarded, SyncError]:
    """Create ``branch`` at ``new_id`` in a repository that lacks it, and check it out.

    Untracked files that the checkout overwrites are reported in
    ``flagged_paths``.
    """
    refname = branch_ref(branch)

    paths = repo.tree_paths(new_id)
    if isinstance(paths, Err):
        return paths
    untracked = repo.untracked_paths()
    if isinstance(untracked, Err):
        return untracked
    flagged = tuple(sorted(untracked.value.intersection(paths.value)))
    if flagged:
        logger.warning(
            "Untracked files in %s are replaced by %s: %s",
            repo.path,
            refname,
            ", ".join(flagged),
        )

    result = repo.update_ref(refname, new_id, None, f"Setting {branch} to {new_id}")
    if isinstance(result, Err):
        return result
    result = repo.set_head(refname)
    if isinstance(result, Err):
        return result
    result = repo.checkout_force(branch)
    if isinstance(result, Err):
        return result

    logger.info("Created %s at %s", refname, new_id)
    return Ok(FastForwarded(old_id=None, new_id=new_id, flagged_paths=flagged))


def three_way_merge(
    repo: Repository,
    branch: str,
    local: str,
    remote: str,
) -> Result[Merged | ConflictDetected, SyncError]:
    """Merge ``remote`` into ``branch`` (currently at ``local``).

    On conflicts the work tree receives the conflicted files (with markers)
    and MERGE_HEAD is recorded; no commit is created and the branch does
    not move. Otherwise a merge commit with parents (local, remote) becomes
    the branch tip.
    """
    refname = branch_ref(branch)
    head = repo.head_ref()
    if head != refname:
        return Err(
            SyncError(
                "repository_open_failed",
                f"HEAD is on {head or 'a detached commit'}, expected {refname}",
                hint=f"Run: git -C {repo.path} checkout {branch}",
            )
        )

    base = repo.merge_base(local, remote)
    if isinstance(base, Err):
        return base
    if base.value is None:
        return Err(
            SyncError(
                "merge_base_not_found",
                f"{local[:10]} and {remote[:10]} have no common history",
            )
        )

    merged = repo.merge_trees(base.value, local, remote)
    if isinstance(merged, Err):
        return merged
    message = merge_message(local, remote)

    if merged.value.has_conflicts:
        conflicts = merged.value.conflicts
        logger.warning("Merge conflicts detected in %s: %s", repo.path, ", ".join(conflicts))
        # The merged tree carries the conflict markers; the index stays at local
        result = repo.update_worktree(local, merged.value.tree)
        if isinstance(result, Err):
            return result
        result = repo.reset_index(local)
        if isinstance(result, Err):
            return result
        result = repo.write_merge_state(remote, message)
        if isinstance(result, Err):
            return result
        return Ok(ConflictDetected(paths=conflicts))

    identity = repo.identity()
    if isinstance(identity, Err):
        return identity

    commit = repo.commit_tree(merged.value.tree, [local, remote], message)
    if isinstance(commit, Err):
        return commit
    result = repo.update_worktree(local, commit.value)
    if isinstance(result, Err):
        return result
    result = repo.update_ref(refname, commit.value, local, message)
    if isinstance(result, Err):
        return result

    logger.info("%s: %s", message, commit.value)
    return Ok(Merged(commit_id=commit.value))
