"""
Main syncer logic for keeping a fleet of forks up to date.

Every repository runs its own pipeline on a worker thread: update the main
branch from upstream, detect local branches already merged upstream, then
delete those branches concurrently. Failures stay inside the repository
they happened in.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path

from .config import SyncConfig
from .errors import CleanupError, DetectionError, UpdateError
from .gateway import GitGateway
from .git_ops import ManagedRepository


@dataclass
class RepositoryResult:
    """Outcome of one repository's pipeline."""

    repository: ManagedRepository
    updated: bool = False
    merged_branches: list[str] = field(default_factory=list)
    cleaned_branches: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.updated and not self.errors


@dataclass
class SyncResult:
    """Result of a sync run, repositories in the order they finished."""

    results: list[RepositoryResult] = field(default_factory=list)

    @property
    def updated_repositories(self) -> list[ManagedRepository]:
        return [r.repository for r in self.results if r.updated]

    @property
    def failed(self) -> list[RepositoryResult]:
        return [r for r in self.results if not r.success]


class RepoSyncer:
    """Drives update, detection and cleanup across many repositories."""

    def __init__(
        self,
        config: SyncConfig,
        logger: logging.Logger,
        gateway: GitGateway | None = None,
    ):
        """Initialize the syncer with configuration and a logger."""
        self.config = config
        self.logger = logger
        self.gateway = gateway or GitGateway()

    def sync(self, paths: list[Path]) -> SyncResult:
        """
        Sync every repository concurrently, one worker per path.

        Returns once every pipeline, including the branch cleanups it
        started, has finished.
        """
        result = SyncResult()
        if not paths:
            return result

        repositories = [
            ManagedRepository(path, self.gateway, self.config, self.logger)
            for path in paths
        ]
        with ThreadPoolExecutor(max_workers=len(repositories)) as pool:
            futures = {
                pool.submit(self.sync_repository, repo): repo for repo in repositories
            }
            for future in as_completed(futures):
                repo = futures[future]
                try:
                    result.results.append(future.result())
                except Exception as e:
                    # Keep one broken pipeline from hiding the others
                    self.logger.exception("Repository '%s' sync crashed", repo.name)
                    result.results.append(RepositoryResult(repo, errors=[str(e)]))
        return result

    def sync_repository(self, repo: ManagedRepository) -> RepositoryResult:
        """Run update, detection and cleanup for a single repository."""
        result = RepositoryResult(repo)

        try:
            repo.update()
        except UpdateError as e:
            self.logger.error("Repository '%s' failed to update: %s", repo.name, e)
            result.errors.append(str(e))
            return result
        result.updated = True
        self.logger.info("Repository '%s' successfully updated", repo.name)

        try:
            branches = repo.list_pushed_local_branches()
        except DetectionError as e:
            self.logger.error(
                "Failed to get list of pushed branches for %s (merged so far: [%s]): %s",
                repo.name, ", ".join(e.branches), e,
            )
            result.merged_branches = e.branches
            result.errors.append(str(e))
            return result
        result.merged_branches = branches

        if not branches:
            return result

        self.logger.info(
            "Cleaning up %d branches for %s [%s]",
            len(branches), repo.name, ", ".join(branches),
        )
        self._clean_branches(repo, branches, result)
        return result

    def _clean_branches(
        self,
        repo: ManagedRepository,
        branches: list[str],
        result: RepositoryResult,
    ) -> None:
        """Delete branches concurrently and wait for all of them."""
        with ThreadPoolExecutor(max_workers=len(branches)) as pool:
            futures = {pool.submit(repo.clean_branch, name): name for name in branches}
            for future in as_completed(futures):
                name = futures[future]
                try:
                    future.result()
                except CleanupError as e:
                    self.logger.error(
                        "Failed to cleanup '%s' branch in '%s' repository: %s",
                        name, repo.name, e,
                    )
                    result.errors.append(str(e))
                else:
                    self.logger.debug("Removed branch '%s' from %s", name, repo.name)
                    result.cleaned_branches.append(name)
