"""
Git operations for the syncer.

Provides the in-memory model of one managed repository: updating its main
branch from upstream, finding local branches already merged upstream and
deleting them locally and on the fork.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from .config import SyncConfig
from .errors import CleanupError, CommandError, DetectionError, UpdateError
from .gateway import GitGateway

# Short hash, author email and subject, one commit per line
LOG_FORMAT = "format:%h;%ae;%s"


@dataclass(frozen=True)
class Commit:
    """A commit pulled in by an update."""

    ref: str
    author: str
    subject: str


def parse_log_output(output: str) -> list[Commit]:
    """Parse ``git log`` output produced with LOG_FORMAT."""
    commits = []
    for line in output.splitlines():
        line = line.strip()
        if not line:
            continue
        # Subjects may contain the separator, so split at most twice
        fields = line.split(";", 2)
        fields += [""] * (3 - len(fields))
        commits.append(Commit(ref=fields[0], author=fields[1], subject=fields[2]))
    return commits


def parse_branch_output(output: str) -> list[str]:
    """Parse ``git branch --no-color`` output into branch names."""
    branches = []
    for line in output.splitlines():
        name = line.replace("*", "").strip()
        # Skip blank lines and "(HEAD detached at ...)" entries
        if not name or name.startswith("("):
            continue
        branches.append(name)
    return branches


class ManagedRepository:
    """A local fork checkout kept in sync with its upstream."""

    def __init__(
        self,
        path: Path | str,
        gateway: GitGateway | None = None,
        config: SyncConfig | None = None,
        logger: logging.Logger | None = None,
    ):
        self.path = Path(path).resolve()
        self.name = self.path.name
        self.gateway = gateway or GitGateway()
        self.config = config or SyncConfig()
        self.logger = logger or logging.getLogger(__name__)
        # Commits pulled by the last successful update()
        self.changes: list[Commit] = []

    def __repr__(self) -> str:
        return f"ManagedRepository({str(self.path)!r})"

    def git(self, *args: str) -> str:
        """Run a git command in this repository."""
        return self.gateway.run(self.path, *args)

    def current_branch_name(self) -> str:
        """Get the abbreviated name of the checked out ref."""
        return self.git("rev-parse", "--abbrev-ref", "HEAD").strip()

    def current_ref(self) -> str:
        """Get the short hash of HEAD."""
        return self.git("rev-parse", "--short", "HEAD").strip()

    def list_branches(self) -> list[str]:
        """List local branches, raising CommandError if git fails."""
        return parse_branch_output(self.git("branch", "--no-color"))

    def branches(self) -> list[str]:
        """List local branches, or an empty list if they can't be listed."""
        try:
            return self.list_branches()
        except CommandError:
            return []

    def list_changes(self, from_ref: str, to_ref: str = "HEAD") -> list[Commit]:
        """Get non-merge commits in ``from_ref..to_ref``, newest first."""
        output = self.git(
            "log", "--no-merges", f"--pretty={LOG_FORMAT}", f"{from_ref}..{to_ref}"
        )
        return parse_log_output(output)

    def update(self) -> None:
        """
        Fetch new commits from upstream, merge them into the main branch and
        push the result to the fork.

        The branch checked out before the call is checked out again when
        the call returns, whether it succeeded or not. On success
        ``changes`` holds the commits that were pulled.
        """
        self.changes = []
        main = self.config.main_branch

        try:
            original_branch = self.current_branch_name()
            old_ref = self.current_ref()
        except CommandError as e:
            raise UpdateError(
                f"Unable to resolve the current branch ({e.reason}):\n{e.output}"
            ) from e

        # Detached HEAD reports "HEAD"; go back to the commit instead
        restore_to = old_ref if original_branch == "HEAD" else original_branch

        if original_branch != main:
            self._update_step(f"Unable to checkout the {main} branch", "checkout", main)

        with self._checked_out_on_exit(restore_to, skip=original_branch == main):
            self._update_step(
                "Unable to fetch commits from upstream",
                "fetch", self.config.upstream_remote,
            )
            self._update_step(
                "Unable to merge commits from upstream",
                "merge", self.config.upstream_ref,
            )
            self._update_step(
                "Unable to push commits to remote fork",
                "push", self.config.origin_remote, main,
            )
            try:
                changes = self.list_changes(old_ref, "HEAD")
            except CommandError as e:
                raise UpdateError(
                    f"Unable to list pulled commits ({e.reason}):\n{e.output}"
                ) from e

        self.changes = changes

    def list_pushed_local_branches(self) -> list[str]:
        """
        List local branches whose commits are all in the upstream main branch.

        Each candidate is checked out and compared with ``git cherry``; it
        qualifies when the comparison succeeds with no output. The main
        branch is checked out again on exit.
        """
        main = self.config.main_branch
        with self._checked_out_on_exit(main):
            try:
                names = self.list_branches()
            except CommandError as e:
                raise DetectionError(
                    f"Unable to list branches ({e.reason}):\n{e.output}"
                ) from e

            qualified: list[str] = []
            for name in names:
                if name == main:
                    continue
                try:
                    self.git("checkout", name)
                except CommandError as e:
                    raise DetectionError(
                        f"Failed to checkout {name}: {e.reason}\n{e.output}", qualified
                    ) from e
                if self._merged_upstream():
                    qualified.append(name)
            return qualified

    def clean_branch(self, name: str) -> None:
        """
        Delete a branch locally and on the fork.

        The remote branch is only deleted once the local one is gone. No
        checkout happens here, so several branches of one repository can be
        cleaned at the same time.
        """
        if name == self.config.main_branch:
            raise CleanupError(
                f"Refusing to remove the main branch '{name}'", branch=name, side="local"
            )
        try:
            self.git("branch", "-D", name)
        except CommandError as e:
            raise CleanupError(
                f"Unable to remove local branch '{name}' ({e.reason}):\n{e.output}",
                branch=name,
                side="local",
            ) from e

        remote = self.config.origin_remote
        try:
            self.git("push", remote, f":{name}")
        except CommandError as e:
            raise CleanupError(
                f"Unable to remove remote branch '{remote}/{name}' ({e.reason}):\n{e.output}",
                branch=name,
                side="remote",
            ) from e

    def _merged_upstream(self) -> bool:
        try:
            output = self.git("cherry", self.config.upstream_ref)
        except CommandError:
            return False
        return not output.strip()

    def _update_step(self, message: str, *args: str) -> str:
        try:
            return self.git(*args)
        except CommandError as e:
            raise UpdateError(f"{message} ({e.reason}):\n{e.output}") from e

    @contextmanager
    def _checked_out_on_exit(self, target: str, skip: bool = False):
        """Check out ``target`` when the block exits, however it exits."""
        try:
            yield
        finally:
            if not skip:
                try:
                    self.git("checkout", target)
                except CommandError as e:
                    self.logger.warning(
                        "Unable to checkout '%s' in %s: %s", target, self.name, e
                    )
