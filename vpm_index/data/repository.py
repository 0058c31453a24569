from __future__ import annotations

import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

from vpm_index.domain.errors import ChecksumConflict, MalformedChecksum
from vpm_index.domain.models import (
    ArchiveReference,
    PackageMetadata,
    PackageVersionSet,
    RepositoryDocument,
    RepositoryInit,
)
from vpm_index.domain.vpm_utils import is_sha256_hex, same_digest
from vpm_index.services.checksum import ChecksumResolver
from vpm_index.storage.db_manager import DocumentStorage

logger = logging.getLogger(__name__)

# Returns the stamped metadata for a release, or None if it could not be
# fetched or parsed.
MetadataProvider = Callable[[], Awaitable[Optional[PackageMetadata]]]


class AddStatus(str, Enum):
    ADDED = "added"
    # Already indexed; a missing checksum was filled in.
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"


class RepositoryStore:
    """
    Owns one index document for the duration of a run.

    The document is loaded once at construction (or seeded from `init` when no
    index exists yet), mutated in place by add_package() and written back by
    save().
    """

    def __init__(
        self,
        storage: DocumentStorage,
        init: RepositoryInit,
        checksum_resolver: ChecksumResolver,
    ):
        self._storage = storage
        self._checksums = checksum_resolver

        document = storage.load()
        if document is None:
            logger.info(f"No existing index found, starting a new one for {init.url}")
            document = RepositoryDocument.seed(init)
        self.document = document

    @property
    def url(self) -> str:
        return self.document.url

    def get_version(self, name: str, version: str) -> Optional[PackageMetadata]:
        return self.document.get_version(name, version)

    async def add_package(
        self,
        name: str,
        version: str,
        archive: ArchiveReference,
        metadata_provider: MetadataProvider,
    ) -> AddStatus:
        """
        Add name@version to the index, or confirm the existing entry.

        Metadata is only requested from `metadata_provider` when the version is
        not indexed yet. Failures that concern only this release are logged and
        reported as SKIPPED; ChecksumConflict propagates.
        """
        version_info = self.document.get_version(name, version)
        status = AddStatus.UNCHANGED

        if version_info is None:
            logger.info(f"Adding package {name}@{version} to the repository.")
            version_info = await metadata_provider()

            if version_info is None:
                logger.error(f"Failed to retrieve package info for {name}@{version}")
                return AddStatus.SKIPPED

            if version_info.name is None:
                version_info.name = name

            if version_info.name != name or version_info.version != version:
                logger.error(
                    f"Package name or version mismatch: expected {name}@{version}, "
                    f"got {version_info.name}@{version_info.version}"
                )
                return AddStatus.SKIPPED

            if version_info.repo is None:
                version_info.repo = self.document.url

            self.document.packages.setdefault(name, PackageVersionSet()).versions[version] = version_info
            status = AddStatus.ADDED

        filled = await self._reconcile_checksum(name, version, version_info, archive)
        if filled and status is AddStatus.UNCHANGED:
            status = AddStatus.UPDATED
        return status

    async def _reconcile_checksum(
        self,
        name: str,
        version: str,
        version_info: PackageMetadata,
        archive: ArchiveReference,
    ) -> bool:
        """Fill in or verify zipSHA256. Returns True if a digest was filled in."""
        recorded = version_info.zip_sha256
        if not is_sha256_hex(recorded):
            # Blank or garbage values were never a digest; they count as unset.
            if recorded is not None:
                logger.warning(f"Ignoring invalid zipSHA256 {recorded!r} for {name}@{version}")
            try:
                digest = await self._checksums.resolve(archive)
            except MalformedChecksum as e:
                logger.error(f"Cannot record SHA256 for {name}@{version}: {e}")
                return False

            if digest is None:
                logger.warning(f"Failed to compute SHA256 for {archive.url}, leaving it unset")
                return False

            version_info.zip_sha256 = digest
            logger.info(f"Computed SHA256 for {archive.url}: {digest}")
            return True

        # Only cheap sources are used to verify a recorded digest.
        try:
            digest = await self._checksums.resolve(archive, allow_download=False)
        except MalformedChecksum as e:
            logger.warning(f"Skipping SHA256 verification for {name}@{version}: {e}")
            return False

        if digest is not None and not same_digest(digest, recorded):
            raise ChecksumConflict(name, version, recorded, digest)
        return False

    async def save(self) -> None:
        await self._storage.save(self.document)
