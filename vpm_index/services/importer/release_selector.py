"""
Pick the package.json and package archive out of a release's assets.
"""
from __future__ import annotations

import logging
from typing import Dict, Optional

from vpm_index.domain.models import Release, ReleaseAsset, ReleaseCandidate
from vpm_index.services.checksum import CHECKSUM_SUFFIX

logger = logging.getLogger(__name__)

METADATA_ASSET_NAME = "package.json"
ARCHIVE_SUFFIX = ".zip"


class ReleaseCandidateSelector:
    """Classifies release assets. Channel-agnostic; drafts are filtered by the caller."""

    def __init__(self, archive_prefix: str):
        self.archive_prefix = archive_prefix

    def is_archive(self, asset: ReleaseAsset) -> bool:
        return asset.name.startswith(self.archive_prefix) and asset.name.endswith(ARCHIVE_SUFFIX)

    def select(self, release: Release) -> Optional[ReleaseCandidate]:
        """
        Return the release's candidate, or None if it does not carry both a
        package.json and a package archive.
        """
        meta_asset: Optional[ReleaseAsset] = None
        package_zip: Optional[ReleaseAsset] = None
        by_name: Dict[str, ReleaseAsset] = {}

        for asset in release.assets:
            by_name[asset.name] = asset
            if asset.name == METADATA_ASSET_NAME:
                meta_asset = asset
            if self.is_archive(asset):
                if package_zip is not None:
                    logger.debug(
                        f"Release {release.display_name} has several archives, "
                        f"using {asset.name} over {package_zip.name}"
                    )
                package_zip = asset

        if meta_asset is None or package_zip is None:
            logger.warning(
                f"Release {release.display_name} is missing {METADATA_ASSET_NAME} "
                f"or {self.archive_prefix}*{ARCHIVE_SUFFIX}"
            )
            return None

        return ReleaseCandidate(
            release=release,
            metadata_asset=meta_asset,
            archive_asset=package_zip,
            sidecar_asset=by_name.get(package_zip.name + CHECKSUM_SUFFIX),
        )
