"""
Configuration handling for git_sync.

Defines the settings schema (branch and remote names) and reads the list
of managed repositories from a base directory.
"""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from .errors import ConfigError


# File listing repository paths, relative to the base directory
DEFAULT_REPOS_FILE = ".gitrepos"


class SyncConfig(BaseModel):
    """Settings shared by every repository in a sync run."""

    # Long-lived integration branch, never deleted
    main_branch: str = Field(
        default="master", description="Main branch in every repository"
    )
    upstream_remote: str = Field(
        default="upstream",
        description="Remote of the original project, merged from",
    )
    origin_remote: str = Field(
        default="origin",
        description="Remote of the fork, pushed to and pruned",
    )
    repos_file: str = Field(
        default=DEFAULT_REPOS_FILE,
        description="Name of the file listing repository paths",
    )

    @property
    def upstream_ref(self) -> str:
        """Remote tracking ref of the upstream main branch."""
        return f"{self.upstream_remote}/{self.main_branch}"

    @classmethod
    def from_yaml(cls, path: Path) -> "SyncConfig":
        """Load configuration from a YAML file."""
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
            return cls.model_validate(data)
        except (OSError, yaml.YAMLError, ValidationError) as e:
            raise ConfigError(f"Unable to load settings from {path}: {e}") from e


def read_repository_list(base_dir: Path, repos_file: str = DEFAULT_REPOS_FILE) -> list[Path]:
    """
    Read the repository list from ``base_dir/repos_file``.

    Each non-blank line is a path relative to ``base_dir``. Returned paths
    are canonical. Raises ConfigError if the file cannot be read.
    """
    base_dir = Path(base_dir)
    list_path = base_dir / repos_file
    try:
        lines = list_path.read_text().splitlines()
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Unable to read {list_path}: {e}") from e

    paths = []
    for line in lines:
        entry = line.strip()
        if not entry:
            continue
        paths.append((base_dir / entry).resolve())
    return paths
