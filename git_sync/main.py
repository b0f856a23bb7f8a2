"""
CLI entry point for git_sync.

Reads the repository list from a base directory, syncs every repository
with its upstream and prints the commits that were pulled.
"""

from pathlib import Path

import click
from rich.console import Console

from .config import SyncConfig, read_repository_list
from .errors import ConfigError
from .log import create_logger
from .report import print_change_report
from .syncer import RepoSyncer

console = Console()


def load_config(config_path: Path | None, **overrides: str | None) -> SyncConfig:
    """Load settings from YAML (if given) and apply command line overrides."""
    config = SyncConfig.from_yaml(config_path) if config_path else SyncConfig()
    updates = {key: value for key, value in overrides.items() if value}
    if updates:
        config = config.model_copy(update=updates)
    return config


@click.command()
@click.version_option(package_name="git-sync")
@click.argument(
    "directory",
    required=False,
    type=click.Path(path_type=Path),
)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML file with branch and remote settings",
)
@click.option("--main-branch", default=None, help="Main branch name (default: master)")
@click.option("--upstream", default=None, help="Upstream remote name (default: upstream)")
@click.option("--origin", default=None, help="Fork remote name (default: origin)")
@click.option("--verbose", "-v", is_flag=True, help="Show debug output")
def cli(
    directory: Path | None,
    config_path: Path | None,
    main_branch: str | None,
    upstream: str | None,
    origin: str | None,
    verbose: bool,
):
    """Sync the forks listed in DIRECTORY/.gitrepos with their upstreams.

    The main branch of every repository is updated from upstream and pushed
    to origin. Local branches already merged upstream are then deleted
    locally and on origin.
    """
    logger = create_logger(verbose=verbose)

    if directory is None:
        logger.critical("No directory specified. Quitting.")
        raise SystemExit(1)

    try:
        config = load_config(
            config_path,
            main_branch=main_branch,
            upstream_remote=upstream,
            origin_remote=origin,
        )
    except ConfigError as e:
        logger.critical("%s. Aborting.", e)
        raise SystemExit(1)

    try:
        paths = read_repository_list(directory, config.repos_file)
    except ConfigError as e:
        logger.debug("%s", e)
        logger.critical("Unable to read %s/%s file. Aborting.", directory, config.repos_file)
        raise SystemExit(1)

    syncer = RepoSyncer(config, logger)
    result = syncer.sync(paths)
    print_change_report(result.updated_repositories, console)

    if result.failed:
        logger.error(
            "%d of %d repositories had errors: %s",
            len(result.failed),
            len(result.results),
            ", ".join(r.repository.name for r in result.failed),
        )


if __name__ == "__main__":
    cli()
