"""Tests for git/repository.py."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from glone.core.result import Err, Ok
from glone.git.repository import Repository, StatusEntry, TreeMerge, branch_ref

if TYPE_CHECKING:
    from glone.test.conftest import GitSandbox


# =============================================================================
# Value types
# =============================================================================


def test_branch_ref() -> None:
    assert branch_ref("main") == "refs/heads/main"


class TestStatusEntry:
    def test_untracked(self) -> None:
        assert StatusEntry(xy="??", path="new.txt").is_untracked

    def test_modified_is_tracked(self) -> None:
        assert not StatusEntry(xy=" M", path="a.txt").is_untracked


class TestTreeMerge:
    def test_clean(self) -> None:
        assert not TreeMerge(tree="t").has_conflicts

    def test_conflicts(self) -> None:
        assert TreeMerge(tree="t", conflicts=("a",)).has_conflicts


# =============================================================================
# Against real repositories
# =============================================================================


class TestOpen:
    def test_root_of_clone(self, git_sandbox: GitSandbox, tmp_path: Path) -> None:
        local = git_sandbox.clone(git_sandbox.remote(), tmp_path / "local")

        repo = Repository(local)

        assert repo.open() == Ok(None)

    def test_plain_directory(self, git_sandbox: GitSandbox, tmp_path: Path) -> None:
        plain = tmp_path / "plain"
        plain.mkdir()
        (plain / "file.txt").write_text("x")

        result = Repository(plain).open()

        assert isinstance(result, Err)
        assert result.error.kind == "repository_open_failed"

    def test_subdirectory_is_not_a_root(self, git_sandbox: GitSandbox, tmp_path: Path) -> None:
        local = git_sandbox.clone(git_sandbox.remote(), tmp_path / "local")
        sub = local / "sub"
        sub.mkdir()

        result = Repository(sub).open()

        assert isinstance(result, Err)
        assert "not a repository root" in result.error.message

    def test_remote_url(self, git_sandbox: GitSandbox, tmp_path: Path) -> None:
        bare = git_sandbox.remote()
        repo = Repository(git_sandbox.clone(bare, tmp_path / "local"))

        assert repo.remote_url("origin") == str(bare)
        assert repo.remote_url("upstream") is None


class TestRefs:
    def test_find_ref(self, git_sandbox: GitSandbox, tmp_path: Path) -> None:
        local = git_sandbox.clone(git_sandbox.remote(), tmp_path / "local")
        repo = Repository(local)

        head = git_sandbox.git(local, "rev-parse", "HEAD")

        assert repo.find_ref("refs/heads/main") == Ok(head)
        assert repo.find_ref("refs/heads/missing") == Ok(None)

    def test_head_ref(self, git_sandbox: GitSandbox, tmp_path: Path) -> None:
        local = git_sandbox.clone(git_sandbox.remote(), tmp_path / "local")

        assert Repository(local).head_ref() == "refs/heads/main"
        git_sandbox.git(local, "checkout", "--quiet", "--detach")
        assert Repository(local).head_ref() is None

    def test_ancestry(self, git_sandbox: GitSandbox, tmp_path: Path) -> None:
        bare = git_sandbox.remote()
        local = git_sandbox.clone(bare, tmp_path / "local")
        old = git_sandbox.git(local, "rev-parse", "HEAD")
        new = git_sandbox.commit(local, {"a.txt": "a"}, "a")
        repo = Repository(local)

        assert repo.is_ancestor(old, new) == Ok(True)
        assert repo.is_ancestor(new, old) == Ok(False)
        assert repo.merge_base(old, new) == Ok(old)

    def test_unrelated_histories_have_no_base(
        self, git_sandbox: GitSandbox, tmp_path: Path
    ) -> None:
        local = git_sandbox.clone(git_sandbox.remote(), tmp_path / "local")
        main = git_sandbox.git(local, "rev-parse", "HEAD")
        git_sandbox.git(local, "checkout", "--quiet", "--orphan", "other")
        orphan = git_sandbox.commit(local, {"o.txt": "o"}, "orphan")

        assert Repository(local).merge_base(main, orphan) == Ok(None)

    def test_update_ref_checks_old_value(self, git_sandbox: GitSandbox, tmp_path: Path) -> None:
        local = git_sandbox.clone(git_sandbox.remote(), tmp_path / "local")
        old = git_sandbox.git(local, "rev-parse", "HEAD")
        new = git_sandbox.commit(local, {"a.txt": "a"}, "a")
        repo = Repository(local)

        stale = repo.update_ref("refs/heads/main", old, "0" * 40, "stale")
        assert isinstance(stale, Err)
        assert repo.find_ref("refs/heads/main") == Ok(new)

        assert repo.update_ref("refs/heads/main", old, new, "rewind") == Ok(None)
        assert repo.find_ref("refs/heads/main") == Ok(old)

    def test_update_ref_create_only(self, git_sandbox: GitSandbox, tmp_path: Path) -> None:
        local = git_sandbox.clone(git_sandbox.remote(), tmp_path / "local")
        head = git_sandbox.git(local, "rev-parse", "HEAD")
        repo = Repository(local)

        assert repo.update_ref("refs/heads/new", head, None, "create") == Ok(None)
        assert isinstance(repo.update_ref("refs/heads/new", head, None, "again"), Err)


class TestWorkTree:
    def test_status_and_untracked(self, git_sandbox: GitSandbox, tmp_path: Path) -> None:
        local = git_sandbox.clone(git_sandbox.remote(), tmp_path / "local")
        (local / "README.md").write_text("changed\n")
        (local / "new.txt").write_text("new\n")
        repo = Repository(local)

        status = repo.status_entries()

        assert isinstance(status, Ok)
        by_path = {e.path: e for e in status.value}
        assert by_path["README.md"].xy == " M"
        assert by_path["new.txt"].is_untracked
        assert repo.untracked_paths() == Ok({"new.txt"})

    def test_tree_paths(self, git_sandbox: GitSandbox, tmp_path: Path) -> None:
        bare = git_sandbox.remote(files={"README.md": "r", "src/app.py": "x"})
        local = git_sandbox.clone(bare, tmp_path / "local")

        result = Repository(local).tree_paths("HEAD")

        assert isinstance(result, Ok)
        assert sorted(result.value) == ["README.md", "src/app.py"]


@pytest.mark.usefixtures("merge_tree_git")
class TestMergeTrees:
    def _diverge(
        self, git_sandbox: GitSandbox, tmp_path: Path, ours: dict[str, str], theirs: dict[str, str]
    ) -> tuple[Repository, str, str, str]:
        local = git_sandbox.clone(git_sandbox.remote(), tmp_path / "local")
        base = git_sandbox.git(local, "rev-parse", "HEAD")
        mine = git_sandbox.commit(local, ours, "ours")
        git_sandbox.git(local, "checkout", "--quiet", "-b", "side", base)
        other = git_sandbox.commit(local, theirs, "theirs")
        git_sandbox.git(local, "checkout", "--quiet", "main")
        return Repository(local), base, mine, other

    def test_clean_merge(self, git_sandbox: GitSandbox, tmp_path: Path) -> None:
        repo, base, mine, other = self._diverge(git_sandbox, tmp_path, {"a": "a"}, {"b": "b"})

        result = repo.merge_trees(base, mine, other)

        assert isinstance(result, Ok)
        assert not result.value.has_conflicts
        assert len(result.value.tree) >= 40

    def test_conflicting_merge(self, git_sandbox: GitSandbox, tmp_path: Path) -> None:
        repo, base, mine, other = self._diverge(
            git_sandbox, tmp_path, {"README.md": "mine\n"}, {"README.md": "theirs\n"}
        )

        result = repo.merge_trees(base, mine, other)

        assert isinstance(result, Ok)
        assert result.value.conflicts == ("README.md",)

    def test_commit_tree_does_not_move_refs(self, git_sandbox: GitSandbox, tmp_path: Path) -> None:
        repo, base, mine, other = self._diverge(git_sandbox, tmp_path, {"a": "a"}, {"b": "b"})
        merged = repo.merge_trees(base, mine, other)
        assert isinstance(merged, Ok)

        commit = repo.commit_tree(merged.value.tree, [mine, other], "merge")

        assert isinstance(commit, Ok)
        assert repo.find_ref("refs/heads/main") == Ok(mine)
        parents = git_sandbox.git(repo.path, "rev-list", "--parents", "-n", "1", commit.value)
        assert parents.split()[1:] == [mine, other]


class TestIdentity:
    def test_configured(self, git_sandbox: GitSandbox, tmp_path: Path) -> None:
        local = git_sandbox.clone(git_sandbox.remote(), tmp_path / "local")
        assert Repository(local).identity() == Ok(("Glone Test", "glone@example.com"))

    def test_missing(self, git_sandbox: GitSandbox, tmp_path: Path) -> None:
        local = git_sandbox.clone(git_sandbox.remote(), tmp_path / "local")
        git_sandbox.forget_identity()

        result = Repository(local).identity()

        assert isinstance(result, Err)
        assert result.error.kind == "commit_failed"
        assert result.error.hint is not None
