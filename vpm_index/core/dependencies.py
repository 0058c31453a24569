from typing import List

import httpx

from vpm_index.core.config import ImporterConfig
from vpm_index.data.repository import RepositoryStore
from vpm_index.services.checksum import ChecksumResolver
from vpm_index.services.importer.package_importer import Channel, ReleaseImporter
from vpm_index.services.importer.metadata_resolver import PackageMetadataResolver
from vpm_index.services.importer.release_provider import GitHubReleaseProvider
from vpm_index.services.importer.release_selector import ReleaseCandidateSelector
from vpm_index.storage.json_db_manager import JsonDocumentStorage


def get_http_client(config: ImporterConfig) -> httpx.AsyncClient:
    return httpx.AsyncClient(follow_redirects=True, timeout=config.timeout)


def get_channels(config: ImporterConfig, checksum_resolver: ChecksumResolver) -> List[Channel]:
    """
    Build one store per configured channel. Existing index files are loaded
    here, so a corrupt index fails the run before any channel is processed.
    """
    channels = [
        Channel(
            name="stable",
            store=RepositoryStore(
                JsonDocumentStorage(config.stable_index_path),
                config.stable_init(),
                checksum_resolver,
            ),
            include_prereleases=False,
        )
    ]

    prerelease_init = config.prerelease_init()
    if prerelease_init is not None:
        channels.append(
            Channel(
                name="prerelease",
                store=RepositoryStore(
                    JsonDocumentStorage(config.prerelease_index_path),
                    prerelease_init,
                    checksum_resolver,
                ),
                include_prereleases=True,
            )
        )
    return channels


def get_importer(config: ImporterConfig, client: httpx.AsyncClient) -> ReleaseImporter:
    checksum_resolver = ChecksumResolver(client)
    return ReleaseImporter(
        package_name=config.package,
        provider=GitHubReleaseProvider(client, config.repository, config.token, config.api_url),
        selector=ReleaseCandidateSelector(config.effective_archive_prefix),
        metadata_resolver=PackageMetadataResolver(client, config.documentation_url),
        channels=get_channels(config, checksum_resolver),
    )
