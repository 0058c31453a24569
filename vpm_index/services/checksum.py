"""
Resolve SHA-256 digests for package archives.

Sources are tried cheapest first:
1. the provider digest attached to the archive asset ("sha256:<hex>"),
2. a "<archive>.sha256" sidecar asset,
3. downloading the archive and hashing it.
"""
from __future__ import annotations

import hashlib
import logging
from typing import Dict, Optional

import httpx

from vpm_index.domain.errors import MalformedChecksum
from vpm_index.domain.models import ArchiveReference
from vpm_index.domain.vpm_utils import is_sha256_hex, normalize_digest

logger = logging.getLogger(__name__)

DIGEST_ALGORITHM_TAG = "sha256:"
CHECKSUM_SUFFIX = ".sha256"


class ChecksumResolver:
    """Produces verified SHA-256 hex digests for archives. Never writes state."""

    def __init__(self, client: httpx.AsyncClient):
        self._client = client
        # Archives hashed during this run, keyed by URL.
        self._computed: Dict[str, str] = {}

    async def resolve(
        self,
        archive: ArchiveReference,
        allow_download: bool = True,
    ) -> Optional[str]:
        """
        Return the archive digest, or None if no source could provide one.

        With allow_download=False only the provider digest and the sidecar are
        consulted. Raises MalformedChecksum if the sidecar is not a digest.
        """
        digest = self.digest_from_provider(archive)
        if digest is not None:
            logger.debug(f"Using provider digest for {archive.name}")
            return digest

        if archive.sidecar_url:
            return await self.fetch_sidecar(archive.sidecar_url)

        if not allow_download:
            return None

        return await self.compute(archive.url)

    @staticmethod
    def digest_from_provider(archive: ArchiveReference) -> Optional[str]:
        if not archive.digest:
            return None
        if not archive.digest.lower().startswith(DIGEST_ALGORITHM_TAG):
            logger.debug(f"Ignoring non-sha256 digest for {archive.name}: {archive.digest}")
            return None

        value = archive.digest[len(DIGEST_ALGORITHM_TAG):]
        if not is_sha256_hex(value):
            logger.warning(f"Ignoring malformed provider digest for {archive.name}: {archive.digest}")
            return None
        return normalize_digest(value)

    async def fetch_sidecar(self, url: str) -> Optional[str]:
        logger.debug(f"Fetching checksum sidecar {url}")
        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to fetch checksum sidecar {url}: {e}")
            return None

        tokens = response.text.split()
        token = tokens[0] if tokens else ""
        if not is_sha256_hex(token):
            raise MalformedChecksum(f"Sidecar {url} does not start with a SHA-256 digest: {token!r}")
        return normalize_digest(token)

    async def compute(self, url: str) -> Optional[str]:
        if url in self._computed:
            return self._computed[url]

        logger.info(f"Downloading {url} to compute its SHA256")
        hasher = hashlib.sha256()
        try:
            async with self._client.stream("GET", url) as response:
                response.raise_for_status()
                async for chunk in response.aiter_bytes():
                    hasher.update(chunk)
        except httpx.HTTPError as e:
            logger.error(f"Error fetching or computing SHA256 for {url}: {e}")
            return None

        digest = hasher.hexdigest()
        self._computed[url] = digest
        return digest
