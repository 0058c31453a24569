import asyncio
import logging
from pathlib import Path
from typing import List, Optional

import click

from vpm_index.core.config import ImporterConfig, build_config
from vpm_index.core.dependencies import get_http_client, get_importer
from vpm_index.domain.errors import IndexerError
from vpm_index.services.importer.package_importer import ChannelReport

logger = logging.getLogger(__name__)


async def run_import(config: ImporterConfig) -> List[ChannelReport]:
    """
    Run one indexing pass: list releases and upsert them into every channel.
    """
    async with get_http_client(config) as client:
        importer = get_importer(config, client)
        return await importer.run()


@click.command("vpm-index")
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML file with default values for any of the options below.",
)
@click.option(
    "--output",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory for vpm.json and vpm-prerelease.json (default: current directory).",
)
@click.option("--repository", default=None, help="Source repository as owner/name.")
@click.option("--package", default=None, help="Package name published by the releases.")
@click.option("--archive-prefix", default=None, help="Archive asset prefix (default: the package name).")
@click.option("--token", envvar="GITHUB_TOKEN", default=None, help="Access token for the GitHub API.")
@click.option("--api-url", default=None, help="GitHub API base URL.")
@click.option("--repo-url", default=None, help="URL the stable index is served from.")
@click.option("--repo-author", default=None)
@click.option("--repo-name", default=None)
@click.option("--repo-id", default=None)
@click.option("--prerelease-repo-url", default=None, help="URL the prerelease index is served from.")
@click.option("--prerelease-repo-author", default=None)
@click.option("--prerelease-repo-name", default=None)
@click.option("--prerelease-repo-id", default=None)
@click.option("--documentation-url", default=None, help="Documentation link stamped on new versions.")
@click.option("--timeout", type=float, default=None, help="HTTP timeout in seconds.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(config_file: Optional[Path], verbose: bool, **options) -> None:
    """Build or update a VPM package index from GitHub releases."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        config = build_config(config_file, **options)
        asyncio.run(run_import(config))
    except IndexerError as e:
        logger.error(str(e))
        raise SystemExit(1)


if __name__ == "__main__":
    main()
