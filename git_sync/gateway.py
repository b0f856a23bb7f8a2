"""
Command gateway for git.

Every repository operation goes through GitGateway.run, which executes the
git binary once in a working directory and hands back combined output.
"""

from pathlib import Path

from git import Git
from git.exc import GitCommandNotFound

from .errors import CommandError


class GitGateway:
    """Runs git commands in a working directory using GitPython."""

    def run(self, working_dir: Path | str, *args: str) -> str:
        """
        Run ``git <args>`` in ``working_dir``.

        Returns stdout and stderr joined into one string. Raises
        CommandError if git cannot be started or exits non-zero.
        """
        # GitPython falls back to the process cwd for unusable directories
        if not Path(working_dir).is_dir():
            raise CommandError(args, None, f"No such directory: {working_dir}")

        runner = Git(str(working_dir))
        command = [Git.GIT_PYTHON_GIT_EXECUTABLE or "git", *args]
        try:
            status, stdout, stderr = runner.execute(
                command,
                with_extended_output=True,
                with_exceptions=False,
            )
        except GitCommandNotFound as e:
            raise CommandError(args, None, str(e)) from e

        output = _combine(stdout, stderr)
        if status != 0:
            raise CommandError(args, status, output)
        return output


def _combine(stdout: str, stderr: str) -> str:
    if stdout and stderr:
        return f"{stdout}\n{stderr}"
    return stdout or stderr or ""
