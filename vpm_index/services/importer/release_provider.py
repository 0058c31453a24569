"""
List releases of a GitHub repository.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional

import httpx
from pydantic import ValidationError

from vpm_index.domain.errors import ReleaseListingError
from vpm_index.domain.models import Release
from vpm_index.domain.vpm_utils import split_repository

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
PAGE_SIZE = 100


class GitHubReleaseProvider:
    """Pages through the releases of one repository, in provider order."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        repository: str,
        token: Optional[str] = None,
        api_url: str = GITHUB_API_URL,
    ):
        self._client = client
        self.owner, self.repo = split_repository(repository)
        self.token = token
        self.api_url = api_url.rstrip("/")

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def list_releases(self) -> List[Release]:
        url: Optional[str] = f"{self.api_url}/repos/{self.owner}/{self.repo}/releases"
        params: Optional[Dict[str, int]] = {"per_page": PAGE_SIZE}
        releases: List[Release] = []

        while url:
            logger.debug(f"Listing releases from {url}")
            try:
                response = await self._client.get(url, params=params, headers=self._headers())
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise ReleaseListingError(
                    f"Failed to get releases for {self.owner}/{self.repo} with status code "
                    f"{e.response.status_code} {e.response.reason_phrase}"
                ) from e
            except httpx.HTTPError as e:
                raise ReleaseListingError(f"Failed to get releases for {self.owner}/{self.repo}: {e}") from e

            try:
                payload = response.json()
            except ValueError as e:
                raise ReleaseListingError(f"Release listing at {url} is not valid JSON") from e
            if not isinstance(payload, list):
                raise ReleaseListingError(f"Release listing at {url} is not a JSON array")

            try:
                releases.extend(Release.model_validate(item) for item in payload)
            except ValidationError as e:
                raise ReleaseListingError(f"Unexpected release payload from {url}: {e}") from e

            # The next link already carries the query string.
            url = response.links.get("next", {}).get("url")
            params = None

        logger.info(f"Found {len(releases)} release(s) in {self.owner}/{self.repo}")
        return releases
