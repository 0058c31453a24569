"""
Fetch a release's package.json and stamp the distribution fields onto it.
"""
from __future__ import annotations

import copy
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Union

import httpx

from vpm_index.domain.errors import MetadataError
from vpm_index.domain.models import PackageMetadata, ReleaseCandidate
from vpm_index.domain.vpm_utils import mark_archive_url

logger = logging.getLogger(__name__)


class DeferredMetadata:
    """
    Wraps a metadata fetch so it runs at most once, and only when awaited.
    """

    def __init__(self, factory: Callable[[], Awaitable[Optional[PackageMetadata]]]):
        self._factory = factory
        self._called = False
        self._result: Optional[PackageMetadata] = None

    @property
    def called(self) -> bool:
        return self._called

    async def __call__(self) -> Optional[PackageMetadata]:
        if not self._called:
            self._called = True
            self._result = await self._factory()
        return self._result


class PackageMetadataResolver:
    """Downloads and parses package.json assets."""

    def __init__(self, client: httpx.AsyncClient, documentation_url: Optional[str] = None):
        self._client = client
        self.documentation_url = documentation_url
        # Payloads fetched during this run, keyed by URL. Failures are kept too
        # so a broken asset is only fetched and reported once.
        self._payloads: Dict[str, Union[Dict[str, Any], MetadataError]] = {}

    async def download_metadata(self, url: str) -> Dict[str, Any]:
        cached = self._payloads.get(url)
        if isinstance(cached, MetadataError):
            raise cached
        if cached is not None:
            return cached

        try:
            payload = await self._download(url)
        except MetadataError as e:
            self._payloads[url] = e
            raise
        self._payloads[url] = payload
        return payload

    async def _download(self, url: str) -> Dict[str, Any]:
        logger.debug(f"Downloading package metadata from {url}")
        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise MetadataError(f"Failed to get {url}: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise MetadataError(f"{url} is not valid JSON: {e}") from e

        if not isinstance(payload, dict):
            raise MetadataError(f"{url} is not a JSON object, got: {response.text[:200]}")
        return payload

    async def resolve(self, candidate: ReleaseCandidate, repo_url: str) -> Optional[PackageMetadata]:
        """
        Return the stamped metadata for a candidate, or None if its package.json
        could not be fetched or parsed.
        """
        release_name = candidate.release.display_name
        try:
            payload = await self.download_metadata(candidate.metadata_asset.browser_download_url)
        except MetadataError as e:
            logger.error(f"Failed to parse package.json for release {release_name}: {e}")
            return None

        # Each channel stamps its own copy.
        metadata = PackageMetadata.model_validate(copy.deepcopy(payload))

        metadata.url = mark_archive_url(candidate.archive_asset.browser_download_url)
        metadata.repo = repo_url
        if self.documentation_url:
            metadata.documentation_url = self.documentation_url
        if candidate.release.html_url:
            metadata.changelog_url = candidate.release.html_url
        return metadata

    def deferred(self, candidate: ReleaseCandidate, repo_url: str) -> DeferredMetadata:
        return DeferredMetadata(lambda: self.resolve(candidate, repo_url))
