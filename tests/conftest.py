"""Pytest configuration and fixtures for git_sync tests."""

import logging
import tempfile
import threading
import time
from pathlib import Path

import pytest
from git import Repo

from git_sync.errors import CommandError

MAIN = "master"


class FakeGateway:
    """Scripted stand-in for GitGateway that records every call.

    ``responses`` maps an argument tuple to the output to return, an
    exception to raise, or a callable taking the working directory.
    """

    DEFAULTS = {
        ("rev-parse", "--abbrev-ref", "HEAD"): f"{MAIN}\n",
        ("rev-parse", "--short", "HEAD"): "abc1234\n",
        ("branch", "--no-color"): f"* {MAIN}\n",
    }

    def __init__(self, delay: float = 0.0):
        self.responses = dict(self.DEFAULTS)
        self.calls: list[tuple[Path, tuple[str, ...]]] = []
        self.delay = delay
        self.max_concurrent_repos = 0
        self._active: dict[Path, int] = {}
        self._lock = threading.Lock()

    def run(self, working_dir, *args):
        path = Path(working_dir)
        with self._lock:
            self.calls.append((path, args))
            self._active[path] = self._active.get(path, 0) + 1
            self.max_concurrent_repos = max(
                self.max_concurrent_repos,
                sum(1 for count in self._active.values() if count),
            )
        try:
            if self.delay:
                time.sleep(self.delay)
            response = self.responses.get(args, "")
            if callable(response):
                response = response(path)
            if isinstance(response, BaseException):
                raise response
            return response
        finally:
            with self._lock:
                self._active[path] -= 1

    def args_for(self, path: Path | None = None) -> list[tuple[str, ...]]:
        """Arguments of recorded calls, optionally for one path only."""
        return [args for p, args in self.calls if path is None or p == Path(path)]


def failure(*args: str, output: str = "fatal: boom", status: int = 1) -> CommandError:
    """Build the error FakeGateway raises for a failing command."""
    return CommandError(args, status, output)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def gateway():
    """A fresh scripted gateway."""
    return FakeGateway()


@pytest.fixture
def logger():
    """Logger handed to the code under test; records reach caplog."""
    log = logging.getLogger("git_sync.tests")
    log.setLevel(logging.DEBUG)
    return log


def _configure_user(repo: Repo) -> None:
    with repo.config_writer() as writer:
        writer.set_value("user", "name", "Test User")
        writer.set_value("user", "email", "test@example.com")


def commit_file(repo: Repo, name: str, content: str, message: str) -> str:
    """Write a file, commit it and return the new commit hash."""
    path = Path(repo.working_tree_dir) / name
    path.write_text(content)
    repo.index.add([name])
    return repo.index.commit(message).hexsha


def _init_bare(path: Path) -> Repo:
    bare = Repo.init(path, bare=True)
    bare.git.symbolic_ref("HEAD", f"refs/heads/{MAIN}")
    return bare


class Fork:
    """A local checkout with an ``upstream`` and an ``origin`` remote."""

    def __init__(self, root: Path, name: str):
        root.mkdir(parents=True, exist_ok=True)
        self.upstream_path = root / f"{name}-upstream.git"
        self.origin_path = root / f"{name}-origin.git"
        self.path = root / name

        self.upstream = _init_bare(self.upstream_path)
        self.origin = _init_bare(self.origin_path)

        # Seed upstream from a scratch clone
        seed = Repo.init(root / f"{name}-seed")
        _configure_user(seed)
        commit_file(seed, "README.md", f"# {name}\n", "Initial commit")
        seed.git.branch("-M", MAIN)
        seed.git.push(str(self.upstream_path), f"{MAIN}:{MAIN}")
        seed.git.push(str(self.origin_path), f"{MAIN}:{MAIN}")

        self.local = Repo.init(self.path)
        _configure_user(self.local)
        self.local.create_remote("upstream", str(self.upstream_path))
        self.local.create_remote("origin", str(self.origin_path))
        self.local.git.fetch("origin")
        self.local.git.fetch("upstream")
        self.local.git.checkout("-B", MAIN, f"origin/{MAIN}")

        self._seed = seed

    def push_upstream(self, name: str, content: str, message: str) -> str:
        """Add a commit to upstream's main branch that the fork lacks."""
        self._seed.git.pull(str(self.upstream_path), MAIN)
        sha = commit_file(self._seed, name, content, message)
        self._seed.git.push(str(self.upstream_path), f"{MAIN}:{MAIN}")
        return sha

    def local_branches(self) -> list[str]:
        return sorted(head.name for head in self.local.heads)

    def origin_branches(self) -> list[str]:
        return sorted(head.name for head in self.origin.heads)


@pytest.fixture
def make_fork(temp_dir: Path):
    """Factory creating forks under the temporary directory."""

    def factory(name: str = "project") -> Fork:
        return Fork(temp_dir / "forks", name)

    return factory
