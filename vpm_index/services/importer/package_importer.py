"""
Import package versions from source-control releases into the channel indexes.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List

from pydantic import BaseModel

from vpm_index.data.repository import AddStatus, RepositoryStore
from vpm_index.domain.models import Release, ReleaseCandidate
from vpm_index.services.importer.metadata_resolver import PackageMetadataResolver
from vpm_index.services.importer.release_provider import GitHubReleaseProvider
from vpm_index.services.importer.release_selector import ReleaseCandidateSelector

logger = logging.getLogger(__name__)


@dataclass
class Channel:
    """One output index and the releases it accepts."""

    name: str
    store: RepositoryStore
    include_prereleases: bool = False


class ChannelReport(BaseModel):
    """Outcome of one channel pass."""

    channel: str
    added: int = 0
    updated: int = 0
    unchanged: int = 0
    skipped: int = 0
    excluded_prereleases: int = 0

    def record(self, status: AddStatus) -> None:
        if status is AddStatus.ADDED:
            self.added += 1
        elif status is AddStatus.UPDATED:
            self.updated += 1
        elif status is AddStatus.UNCHANGED:
            self.unchanged += 1
        else:
            self.skipped += 1


class ReleaseImporter:
    """
    Drives one indexing run: list releases once, then fold them into every
    channel in turn, saving each channel's index as soon as its pass is done.
    """

    def __init__(
        self,
        package_name: str,
        provider: GitHubReleaseProvider,
        selector: ReleaseCandidateSelector,
        metadata_resolver: PackageMetadataResolver,
        channels: List[Channel],
    ):
        self.package_name = package_name
        self.provider = provider
        self.selector = selector
        self.metadata_resolver = metadata_resolver
        self.channels = channels

    def select_candidates(self, releases: List[Release]) -> List[ReleaseCandidate]:
        candidates = []
        for release in releases:
            if release.draft:
                logger.debug(f"Skipping draft release {release.display_name}")
                continue
            candidate = self.selector.select(release)
            if candidate is not None:
                candidates.append(candidate)
        return candidates

    async def import_channel(self, channel: Channel, candidates: List[ReleaseCandidate]) -> ChannelReport:
        report = ChannelReport(channel=channel.name)

        # Strictly sequential: the store's document is not safe for concurrent mutation.
        for candidate in candidates:
            if candidate.prerelease and not channel.include_prereleases:
                logger.debug(f"Release {candidate.release.display_name} is a prerelease, not adding it to {channel.name}")
                report.excluded_prereleases += 1
                continue

            status = await channel.store.add_package(
                self.package_name,
                candidate.version,
                candidate.archive,
                self.metadata_resolver.deferred(candidate, channel.store.url),
            )
            report.record(status)

        return report

    async def run(self) -> List[ChannelReport]:
        releases = await self.provider.list_releases()
        candidates = self.select_candidates(releases)
        logger.info(f"{len(candidates)} release(s) carry a {self.package_name} package")

        if not any(channel.include_prereleases for channel in self.channels):
            prereleases = sum(1 for c in candidates if c.prerelease)
            if prereleases:
                logger.info(f"No prerelease channel configured, ignoring {prereleases} prerelease(s)")

        reports = []
        for channel in self.channels:
            report = await self.import_channel(channel, candidates)
            await channel.store.save()
            logger.info(
                f"{channel.name}: {report.added} added, {report.updated} updated, "
                f"{report.unchanged} unchanged, {report.skipped} skipped"
            )
            reports.append(report)
        return reports
