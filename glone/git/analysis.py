"""Merge analysis: how the local branch relates to a fetched commit."""

from __future__ import annotations

from enum import Enum
from typing import Protocol

from glone.core.errors import SyncError
from glone.core.result import Err, Ok, Result

__all__ = ["AncestryGraph", "MergeAnalysis", "analyze"]


class MergeAnalysis(Enum):
    UP_TO_DATE = "up_to_date"
    FAST_FORWARDABLE = "fast_forwardable"
    DIVERGENT = "divergent"
    UNBORN = "unborn"

    def __str__(self) -> str:
        return self.value.replace("_", " ")


class AncestryGraph(Protocol):
    """Commit-graph reachability, as provided by Repository."""

    def is_ancestor(self, ancestor: str, descendant: str) -> Result[bool, SyncError]: ...


def analyze(
    graph: AncestryGraph,
    local_head: str | None,
    fetched: str,
) -> Result[MergeAnalysis, SyncError]:
    """Classify the local branch tip against the fetched commit.

    Args:
        graph: Reachability queries on the repository's commit graph
        local_head: Commit of the local branch, None if the branch does not exist
        fetched: Commit fetched from the remote

    Returns:
        Ok(MergeAnalysis), or Err if the commit graph cannot be read
    """
    if local_head is None:
        return Ok(MergeAnalysis.UNBORN)
    if local_head == fetched:
        return Ok(MergeAnalysis.UP_TO_DATE)

    contains = graph.is_ancestor(fetched, local_head)
    if isinstance(contains, Err):
        return contains
    if contains.value:
        return Ok(MergeAnalysis.UP_TO_DATE)

    behind = graph.is_ancestor(local_head, fetched)
    if isinstance(behind, Err):
        return behind
    if behind.value:
        return Ok(MergeAnalysis.FAST_FORWARDABLE)

    return Ok(MergeAnalysis.DIVERGENT)
