"""Git repository access.

This module provides the Repository class: the local object-model
operations the sync policy is built on (resolve refs, ancestry, merge base,
tree merges, commits, ref updates and checkouts). Everything goes through the
``git`` binary and every fallible method returns a Result.

Usage:
    repo = Repository(Path("/path/to/repo"))

    match repo.merge_base(local, remote):
        case Ok(None):
            print("unrelated histories")
        case Ok(base):
            print(f"base: {base}")
        case Err(e):
            print(f"git failed: {e.message}")
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from glone.core.errors import ErrorKind, SyncError
from glone.core.result import Err, Ok, Result
from glone.platform.process import ProcessError
from glone.platform.process import run as run_process

_GIT_TIMEOUT_SECONDS = 120.0

__all__ = [
    "Repository",
    "StatusEntry",
    "TreeMerge",
    "branch_ref",
]


def branch_ref(branch: str) -> str:
    """Full reference name of a local branch."""
    return f"refs/heads/{branch}"


@dataclass(frozen=True, slots=True)
class StatusEntry:
    """A single entry of ``git status --porcelain``.

    Attributes:
        xy: Two-character status code (e.g., "M ", " M", "??")
        path: File path
    """

    xy: str
    path: str

    @property
    def is_untracked(self) -> bool:
        return self.xy == "??"


@dataclass(frozen=True, slots=True)
class TreeMerge:
    """Result of merging two trees against a base.

    Attributes:
        tree: Id of the merged tree (contains conflict markers on conflict)
        conflicts: Paths with conflicts, empty for a clean merge
    """

    tree: str
    conflicts: tuple[str, ...] = field(default_factory=tuple)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)


class Repository:
    """Local git repository.

    Attributes:
        path: Path to the working tree root
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def open(self) -> Result[None, SyncError]:
        """Check that ``path`` is the root of a usable repository.

        A directory nested inside some other repository is not accepted.
        """
        result = self._git(["rev-parse", "--show-toplevel"], "repository_open_failed")
        if isinstance(result, Err):
            return result

        toplevel = Path(result.value.strip())
        try:
            same = toplevel.resolve() == self.path.resolve()
        except OSError as e:
            return Err(SyncError("repository_open_failed", f"{self.path}: {e}"))
        if not same:
            return Err(
                SyncError(
                    "repository_open_failed",
                    f"{self.path} is not a repository root (found {toplevel})",
                )
            )
        return Ok(None)

    def remote_url(self, name: str = "origin") -> str | None:
        match self._git(["remote", "get-url", name], "repository_open_failed"):
            case Ok(stdout):
                return stdout.strip() or None
            case Err(_):
                return None

    # -------------------------------------------------------------------------
    # Refs and commits
    # -------------------------------------------------------------------------

    def find_ref(self, refname: str) -> Result[str | None, SyncError]:
        """Resolve a reference to a commit id, None if it does not exist."""
        cmd = ["rev-parse", "--verify", "--quiet", f"{refname}^{{commit}}"]
        result = self._run(cmd)
        match result:
            case Ok(stdout):
                return Ok(stdout.strip())
            case Err(e) if e.returncode == 1 and not e.stderr.strip():
                return Ok(None)
            case Err(e):
                return Err(self._error("repository_open_failed", "rev-parse", e))

    def head_ref(self) -> str | None:
        """Name of the branch HEAD points to (even if unborn), None if detached."""
        match self._run(["symbolic-ref", "--quiet", "HEAD"]):
            case Ok(stdout):
                return stdout.strip() or None
            case Err(_):
                return None

    def git_path(self, name: str) -> Result[Path, SyncError]:
        """Location of a file inside the git directory (e.g. FETCH_HEAD)."""
        result = self._git(["rev-parse", "--git-path", name], "repository_open_failed")
        if isinstance(result, Err):
            return result
        path = Path(result.value.strip())
        return Ok(path if path.is_absolute() else self.path / path)

    def fetch_head(self) -> Result[str, SyncError]:
        """Commit id of the first for-merge entry of FETCH_HEAD."""
        path_result = self.git_path("FETCH_HEAD")
        if isinstance(path_result, Err):
            return path_result

        try:
            lines = path_result.value.read_text(encoding="utf-8").splitlines()
        except OSError as e:
            return Err(SyncError("network_fetch_failed", f"FETCH_HEAD unreadable: {e}"))

        for line in lines:
            parts = line.split("\t")
            if len(parts) >= 2 and parts[1] != "not-for-merge":
                return Ok(parts[0].strip())
        return Err(
            SyncError(
                "network_fetch_failed",
                "FETCH_HEAD has no entry for the requested branch",
                hint="Check that the branch exists on the remote",
            )
        )

    def is_ancestor(self, ancestor: str, descendant: str) -> Result[bool, SyncError]:
        """True if ``ancestor`` is reachable from ``descendant`` (or equal)."""
        match self._run(["merge-base", "--is-ancestor", ancestor, descendant]):
            case Ok(_):
                return Ok(True)
            case Err(e) if e.returncode == 1:
                return Ok(False)
            case Err(e):
                return Err(self._error("repository_open_failed", "merge-base --is-ancestor", e))

    def merge_base(self, one: str, two: str) -> Result[str | None, SyncError]:
        """Best common ancestor of two commits, None for unrelated histories."""
        match self._run(["merge-base", one, two]):
            case Ok(stdout):
                return Ok(stdout.strip() or None)
            case Err(e) if e.returncode == 1:
                return Ok(None)
            case Err(e):
                return Err(self._error("merge_base_not_found", "merge-base", e))

    def tree_paths(self, rev: str) -> Result[list[str], SyncError]:
        """All file paths in the tree of ``rev``."""
        result = self._git(["ls-tree", "-r", "-z", "--name-only", rev], "repository_open_failed")
        if isinstance(result, Err):
            return result
        return Ok([p for p in result.value.split("\0") if p])

    def untracked_paths(self) -> Result[set[str], SyncError]:
        """Files in the working tree not present in the index (ignored ones included)."""
        result = self._git(["ls-files", "--others", "-z"], "repository_open_failed")
        if isinstance(result, Err):
            return result
        return Ok({p for p in result.value.split("\0") if p})

    def status_entries(self) -> Result[list[StatusEntry], SyncError]:
        """Parsed ``git status --porcelain`` entries."""
        result = self._git(["status", "--porcelain=v1", "-z"], "repository_open_failed")
        if isinstance(result, Err):
            return result

        entries: list[StatusEntry] = []
        items = iter(result.value.split("\0"))
        for item in items:
            if len(item) < 4:
                continue
            entry = StatusEntry(xy=item[:2], path=item[3:])
            entries.append(entry)
            # Renames and copies are followed by their source path
            if entry.xy[0] in "RC":
                next(items, None)
        return Ok(entries)

    # -------------------------------------------------------------------------
    # Merging and committing
    # -------------------------------------------------------------------------

    def merge_trees(self, base: str, ours: str, theirs: str) -> Result[TreeMerge, SyncError]:
        """Three-way merge of two commits against ``base``, without touching the work tree.

        Requires git >= 2.40 (``merge-tree --write-tree --merge-base``).
        """
        cmd = [
            "merge-tree",
            "--write-tree",
            "--name-only",
            "--no-messages",
            "-z",
            f"--merge-base={base}",
            ours,
            theirs,
        ]
        match self._run(cmd):
            case Ok(stdout):
                return Ok(self._parse_merge_tree(stdout))
            case Err(e) if e.returncode == 1 and e.stdout:
                return Ok(self._parse_merge_tree(e.stdout))
            case Err(e):
                return Err(self._error("commit_failed", "merge-tree", e))

    def identity(self) -> Result[tuple[str, str], SyncError]:
        """Configured ``user.name`` and ``user.email``."""
        values: list[str] = []
        for key in ("user.name", "user.email"):
            match self._run(["config", "--get", key]):
                case Ok(stdout) if stdout.strip():
                    values.append(stdout.strip())
                case _:
                    return Err(
                        SyncError(
                            "commit_failed",
                            f"no committer identity configured ({key} is not set)",
                            hint=f"Run: git -C {self.path} config {key} <value>",
                        )
                    )
        return Ok((values[0], values[1]))

    def commit_tree(self, tree: str, parents: list[str], message: str) -> Result[str, SyncError]:
        """Create a commit object and return its id (no ref is moved)."""
        cmd = ["commit-tree", tree]
        for parent in parents:
            cmd.extend(["-p", parent])
        cmd.extend(["-m", message])
        result = self._git(cmd, "commit_failed")
        if isinstance(result, Err):
            return result
        return Ok(result.value.strip())

    def write_merge_state(self, theirs: str, message: str) -> Result[None, SyncError]:
        """Record an in-progress merge so ``git commit`` completes it."""
        for name, content in (("MERGE_HEAD", f"{theirs}\n"), ("MERGE_MSG", f"{message}\n")):
            path_result = self.git_path(name)
            if isinstance(path_result, Err):
                return path_result
            try:
                path_result.value.write_text(content, encoding="utf-8")
            except OSError as e:
                return Err(SyncError("commit_failed", f"could not write {name}: {e}"))
        return Ok(None)

    # -------------------------------------------------------------------------
    # Refs, HEAD and work tree
    # -------------------------------------------------------------------------

    def update_ref(
        self,
        refname: str,
        new_id: str,
        old_id: str | None,
        message: str,
    ) -> Result[None, SyncError]:
        """Move ``refname`` to ``new_id`` if it still points at ``old_id``.

        ``old_id=None`` requires that the reference does not exist yet.
        """
        cmd = ["update-ref", "--create-reflog", "-m", message, refname, new_id, old_id or ""]
        return self._git(cmd, "commit_failed").map(lambda _: None)

    def set_head(self, refname: str) -> Result[None, SyncError]:
        return self._git(["symbolic-ref", "HEAD", refname], "commit_failed").map(lambda _: None)

    def checkout_force(self, branch: str) -> Result[None, SyncError]:
        """Switch to ``branch`` discarding local modifications of tracked files."""
        cmd = ["checkout", "--force", "--quiet", branch, "--"]
        return self._git(cmd, "commit_failed").map(lambda _: None)

    def update_worktree(self, old: str, new: str) -> Result[None, SyncError]:
        """Move index and work tree from ``old`` to ``new``, keeping local edits.

        Fails without changes if a locally modified file would be overwritten.
        """
        cmd = ["read-tree", "-m", "-u", old, new]
        return self._git(cmd, "commit_failed").map(lambda _: None)

    def reset_index(self, rev: str) -> Result[None, SyncError]:
        """Point the index at ``rev`` without touching the work tree."""
        return self._git(["read-tree", rev], "commit_failed").map(lambda _: None)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        """Run a git command in this repository."""
        return run_process(
            ["git", "-C", str(self.path), *args],
            cwd=self.path,
            timeout=_GIT_TIMEOUT_SECONDS,
        )

    def _git(self, args: list[str], kind: ErrorKind) -> Result[str, SyncError]:
        """Run a git command, mapping failures to ``kind``."""
        result = self._run(args)
        if isinstance(result, Err):
            return Err(self._error(kind, args[0], result.error))
        return Ok(result.value)

    def _error(self, kind: ErrorKind, command: str, error: ProcessError) -> SyncError:
        detail = error.stderr.strip() or error.stdout.strip() or str(error)
        return SyncError(kind, f"git {command} failed in {self.path}: {detail}")

    def _parse_merge_tree(self, output: str) -> TreeMerge:
        fields = [f for f in output.split("\0") if f]
        tree = fields[0].strip() if fields else ""
        conflicts = tuple(dict.fromkeys(fields[1:]))
        return TreeMerge(tree=tree, conflicts=conflicts)
