"""Shared fixtures: throwaway git remotes and checkouts under tmp_path."""

from __future__ import annotations

import logging
import re
import shutil
import subprocess
from collections.abc import Iterator
from pathlib import Path

import pytest

# GIT_CONFIG_GLOBAL, fetch --atomic
MIN_GIT_VERSION = (2, 32)
# merge-tree --write-tree --merge-base
MIN_MERGE_TREE_VERSION = (2, 40)

IDENTITY = "[user]\n\tname = Glone Test\n\temail = glone@example.com\n"


def _git_version() -> tuple[int, int] | None:
    if shutil.which("git") is None:
        return None
    out = subprocess.run(["git", "--version"], capture_output=True, text=True).stdout
    match = re.search(r"(\d+)\.(\d+)", out)
    if match is None:
        return None
    return int(match.group(1)), int(match.group(2))


def git(cwd: Path, *args: str) -> str:
    """Run git in ``cwd`` and return stripped stdout (raises on failure)."""
    proc = subprocess.run(
        ["git", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )
    return proc.stdout.strip()


class GitSandbox:
    """Creates bare remotes with an upstream work tree that pushes to them."""

    def __init__(self, root: Path, global_config: Path) -> None:
        self.root = root
        self.global_config = global_config

    def remote(self, name: str = "remote", files: dict[str, str] | None = None) -> Path:
        """Bare repository whose ``main`` has one commit; returns its path."""
        bare = self.root / f"{name}.git"
        git(self.root, "init", "--quiet", "--bare", "-b", "main", str(bare))

        upstream = self.upstream(bare)
        upstream.mkdir()
        git(upstream, "init", "--quiet", "-b", "main")
        git(upstream, "remote", "add", "origin", str(bare))
        self.commit(upstream, files or {"README.md": "hello\n"}, "initial")
        git(upstream, "push", "--quiet", "origin", "main")
        return bare

    def upstream(self, bare: Path) -> Path:
        return self.root / f"{bare.stem}-upstream"

    def push(self, bare: Path, files: dict[str, str], message: str) -> str:
        """Commit ``files`` upstream and push; returns the new commit id."""
        upstream = self.upstream(bare)
        commit_id = self.commit(upstream, files, message)
        git(upstream, "push", "--quiet", "origin", "main")
        return commit_id

    def commit(self, repo: Path, files: dict[str, str], message: str) -> str:
        for rel, content in files.items():
            path = repo / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        git(repo, "add", "--all")
        git(
            repo,
            "-c",
            "user.name=Upstream",
            "-c",
            "user.email=upstream@example.com",
            "commit",
            "--quiet",
            "-m",
            message,
        )
        return git(repo, "rev-parse", "HEAD")

    def clone(self, bare: Path, dest: Path) -> Path:
        git(self.root, "clone", "--quiet", "--branch", "main", str(bare), str(dest))
        return dest

    def git(self, cwd: Path, *args: str) -> str:
        return git(cwd, *args)

    def forget_identity(self) -> None:
        self.global_config.write_text("", encoding="utf-8")


@pytest.fixture
def git_sandbox(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> GitSandbox:
    version = _git_version()
    if version is None:
        pytest.skip("git not available")
    if version < MIN_GIT_VERSION:
        pytest.skip(f"git >= {MIN_GIT_VERSION[0]}.{MIN_GIT_VERSION[1]} required")

    global_config = tmp_path / "gitconfig"
    global_config.write_text(IDENTITY, encoding="utf-8")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(global_config))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_TERMINAL_PROMPT", "0")
    for var in ("GIT_DIR", "GIT_WORK_TREE", "GIT_INDEX_FILE"):
        monkeypatch.delenv(var, raising=False)

    root = tmp_path / "git"
    root.mkdir()
    return GitSandbox(root, global_config)


@pytest.fixture
def merge_tree_git() -> None:
    """Skip unless git can merge trees against an explicit base."""
    version = _git_version()
    if version is None or version < MIN_MERGE_TREE_VERSION:
        major, minor = MIN_MERGE_TREE_VERSION
        pytest.skip(f"git >= {major}.{minor} required for merge-tree --merge-base")


@pytest.fixture(autouse=True)
def _restore_glone_logger() -> Iterator[None]:
    """Undo setup_logging() so one CLI test does not hide records from caplog."""
    logger = logging.getLogger("glone")
    handlers = list(logger.handlers)
    level = logger.level
    propagate = logger.propagate
    yield
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)
    logger.propagate = propagate
