from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from glone.core.config import Provider
from glone.core.errors import SyncError
from glone.core.outcome import (
    Cloned,
    ConflictDetected,
    Failed,
    FastForwarded,
    Merged,
    SyncOutcome,
    UpToDate,
    describe,
)
from glone.core.result import Err, Ok, Result
from glone.git.analysis import MergeAnalysis, analyze
from glone.git.credentials import CredentialStrategy, resolve_strategy
from glone.git.merge import create_branch, fast_forward, three_way_merge
from glone.git.repository import Repository, branch_ref
from glone.git.transport import DEFAULT_NETWORK_TIMEOUT, NullObserver, ProgressObserver
from glone.git.transport import clone as clone_repo
from glone.git.transport import fetch as fetch_repo
from glone.output.console import ConsoleProtocol, Style

__all__ = ["SyncReport", "SyncService", "has_checkout"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SyncReport:
    """What happened to one provider.

    Attributes:
        provider: The provider that was synchronized
        outcome: Final outcome
        fetched: Remote tip fetched on the pull path, kept even if the merge failed
    """

    provider: Provider
    outcome: SyncOutcome
    fetched: str | None = None

    @property
    def ok(self) -> bool:
        return not isinstance(self.outcome, Failed | ConflictDetected)


def has_checkout(path: Path) -> bool:
    """Structural check deciding between pull and clone.

    A non-empty directory is taken to be a repository; if it is not one the
    pull fails with ``repository_open_failed`` instead of re-cloning over it.
    Missing paths and empty directories are cloned into.
    """
    if not path.is_dir():
        return False
    return any(path.iterdir())


class SyncService:
    """Clone or update every configured provider.

    Policy:
    - Missing or empty sync_dir: clone the tracked branch.
    - Existing checkout: fetch the branch from origin, then fast-forward,
      merge, or leave conflicts for manual resolution.
    - One provider failing never stops the others.
    """

    def __init__(
        self,
        *,
        console: ConsoleProtocol,
        observer: ProgressObserver | None = None,
        timeout: float = DEFAULT_NETWORK_TIMEOUT,
    ) -> None:
        self._console = console
        self._observer = observer or NullObserver()
        self._timeout = timeout

    def sync_all(self, providers: Sequence[Provider]) -> list[SyncReport]:
        reports: list[SyncReport] = []
        for provider in providers:
            report = self.run(provider)
            self._print_report(report)
            reports.append(report)
        return reports

    def synchronize(self, provider: Provider) -> SyncOutcome:
        return self.run(provider).outcome

    def run(self, provider: Provider) -> SyncReport:
        logger.info("Starting the sync for %s (%s)", provider.name, provider.url)
        strategy = resolve_strategy(provider.auth)

        try:
            existing = has_checkout(provider.sync_dir)
        except OSError as e:
            return self._failed(provider, SyncError("repository_open_failed", str(e)))

        if existing:
            return self._pull(provider, strategy)
        return self._clone(provider, strategy)

    def _clone(self, provider: Provider, strategy: CredentialStrategy) -> SyncReport:
        result = clone_repo(
            provider.url,
            provider.sync_dir,
            provider.branch,
            strategy,
            self._observer,
            label=provider.name,
            timeout=self._timeout,
        )
        if isinstance(result, Err):
            return self._failed(provider, result.error)
        return SyncReport(provider=provider, outcome=Cloned(head=result.value))

    def _pull(self, provider: Provider, strategy: CredentialStrategy) -> SyncReport:
        repo = Repository(provider.sync_dir)

        opened = repo.open()
        if isinstance(opened, Err):
            return self._failed(provider, opened.error)

        origin = repo.remote_url("origin")
        if origin is None:
            return self._failed(
                provider,
                SyncError(
                    "repository_open_failed",
                    f"{provider.sync_dir} has no 'origin' remote",
                    hint=f"Run: git -C {provider.sync_dir} remote add origin {provider.url}",
                ),
            )
        if origin != provider.url:
            logger.warning(
                "origin of %s is %s, configured url is %s", provider.name, origin, provider.url
            )

        fetched = fetch_repo(
            repo,
            [provider.branch],
            strategy,
            self._observer,
            label=provider.name,
            timeout=self._timeout,
        )
        if isinstance(fetched, Err):
            return self._failed(provider, fetched.error)
        remote_id = fetched.value

        local = repo.find_ref(branch_ref(provider.branch))
        if isinstance(local, Err):
            return self._failed(provider, local.error, fetched=remote_id)
        local_id = local.value

        analysis = analyze(repo, local_id, remote_id)
        if isinstance(analysis, Err):
            return self._failed(provider, analysis.error, fetched=remote_id)

        outcome: SyncOutcome
        match analysis.value:
            case MergeAnalysis.UP_TO_DATE:
                logger.info("There is nothing to do for %s", provider.name)
                outcome = UpToDate(head=local_id or remote_id)
            case MergeAnalysis.UNBORN:
                outcome = self._settle(create_branch(repo, provider.branch, remote_id))
            case MergeAnalysis.FAST_FORWARDABLE:
                logger.info("Doing a fast forward for %s", provider.name)
                outcome = self._settle(
                    fast_forward(repo, provider.branch, local_id or "", remote_id)
                )
            case MergeAnalysis.DIVERGENT:
                logger.info("Doing a three-way merge for %s", provider.name)
                outcome = self._settle(
                    three_way_merge(repo, provider.branch, local_id or "", remote_id)
                )

        if isinstance(outcome, Failed):
            logger.error("Sync of %s failed: %s", provider.name, outcome.error)
        return SyncReport(provider=provider, outcome=outcome, fetched=remote_id)

    def _settle(
        self,
        result: Result[FastForwarded | Merged | ConflictDetected, SyncError],
    ) -> SyncOutcome:
        match result:
            case Ok(outcome):
                return outcome
            case Err(error):
                return Failed(error=error)

    def _failed(
        self,
        provider: Provider,
        error: SyncError,
        *,
        fetched: str | None = None,
    ) -> SyncReport:
        logger.error("Sync of %s failed: %s", provider.name, error)
        return SyncReport(provider=provider, outcome=Failed(error=error), fetched=fetched)

    def _print_report(self, report: SyncReport) -> None:
        name = report.provider.name
        text = describe(report.outcome)
        match report.outcome:
            case Failed(error=error):
                self._console.error(f"{name}: {text}")
                if error.hint:
                    self._console.print(f"hint: {error.hint}", Style.DIM)
                if report.fetched:
                    self._console.print(f"fetched {report.fetched[:10]} (not merged)", Style.DIM)
            case ConflictDetected():
                self._console.warning(f"{name}: {text}")
                self._console.print(
                    f"resolve in {report.provider.sync_dir}, then git add and git commit",
                    Style.DIM,
                )
            case FastForwarded(flagged_paths=flagged) if flagged:
                self._console.warning(f"{name}: {text}")
            case _:
                self._console.success(f"{name}: {text}")
