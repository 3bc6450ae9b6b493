"""
Command line interface for twiglet.
"""

import logging
from typing import Dict, Tuple

import click

from ..infrastructure.error_handler import TwigletError
from ..infrastructure.logger import configure_logging, logger
from ..models import DEFAULT_BRANCH, RepositoryRef, SessionConfiguration
from .api import SubtreeDownloader


def _parse_replace_rules(ctx, param, values: Tuple[str, ...]) -> Dict[str, str]:
    """Turn repeated ``OLD=NEW`` options into an ordered mapping."""

    rules: Dict[str, str] = {}
    for value in values:
        search, sep, replacement = value.partition("=")
        if not sep or not search:
            raise click.BadParameter(f"expected OLD=NEW, got {value!r}")
        rules[search] = replacement
    return rules


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("repo")
@click.option("--folder", default="/", show_default=True,
              help="Folder of the repository to download.")
@click.option("--branch", default=DEFAULT_BRANCH, show_default=True,
              help="Branch to download from.")
@click.option("--auth", envvar="GITHUB_TOKEN", default=None,
              help="GitHub auth token (defaults to $GITHUB_TOKEN).")
@click.option("--output", "-o", default=None,
              help="Local output folder (defaults to the repository name).")
@click.option("--logs/--no-logs", default=True, show_default=True,
              help="Display downloading logs.")
@click.option("--nochecksum", is_flag=True, default=False,
              help="Disable checksum verification of downloaded files.")
@click.option("--exclude", "-e", multiple=True,
              help="Ignore-file style pattern to skip; repeatable.")
@click.option("--replace", "-r", "replace_rules", multiple=True, callback=_parse_replace_rules,
              help="Replace OLD with NEW in every downloaded file; repeatable, applied in order.")
@click.option("--concurrency", default=1, show_default=True, type=click.IntRange(min=1),
              help="Maximum simultaneous file downloads.")
@click.option("--timeout", default=300.0, show_default=True, type=click.FloatRange(min=0, min_open=True),
              help="Per request timeout in seconds.")
@click.option("--verbose", "-v", is_flag=True, default=False,
              help="Enable debug logging.")
def main(repo, folder, branch, auth, output, logs, nochecksum, exclude,
         replace_rules, concurrency, timeout, verbose):
    """Download FOLDER of the GitHub repository REPO (owner/name)."""

    try:
        repository = RepositoryRef.parse(repo, branch=branch, auth_token=auth or None)
        config = SessionConfiguration(
            branch=branch,
            auth_token=auth or None,
            exclusion_patterns=list(exclude),
            replace_rules=replace_rules,
            verbose_logging=logs,
            verify_checksum=not nochecksum,
            timeout=timeout,
            max_concurrent_downloads=concurrency,
        )
    except ValueError as e:
        raise click.BadParameter(str(e))
    except TwigletError as e:
        raise click.ClickException(str(e))

    destination = output or repository.name
    configure_logging(logging.DEBUG if verbose else logging.INFO)
    downloader = SubtreeDownloader(config=config)

    try:
        downloader.run(repository, folder, destination)
    except TwigletError as e:
        raise click.ClickException(str(e))

    if logs:
        logger.info("download completed successfully")


if __name__ == "__main__":
    main()
