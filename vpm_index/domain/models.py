"""
Pydantic models for the VPM package index.

This module defines all data models used throughout the application, including:
- Release records and assets as reported by the release provider
- Package metadata records filed in the index
- The persisted repository document and its seed identity

All models use Pydantic for validation, serialization, and type safety.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Release Provider Models
# ---------------------------------------------------------------------------


class ReleaseAsset(BaseModel):
    """
    A single downloadable file attached to a release.

    Only the fields the indexer needs are kept; everything else the provider
    returns is ignored.
    """

    model_config = ConfigDict(extra="ignore")

    name: str
    browser_download_url: str
    digest: Optional[str] = Field(
        default=None,
        description="Provider-supplied content digest in the form '<algorithm>:<hex>'.",
    )


class Release(BaseModel):
    """A tagged publication event with its attached assets."""

    model_config = ConfigDict(extra="ignore")

    tag_name: str
    name: Optional[str] = None
    html_url: Optional[str] = None
    draft: bool = False
    prerelease: bool = False
    assets: List[ReleaseAsset] = Field(default_factory=list)

    @property
    def display_name(self) -> str:
        return self.name or self.tag_name


class ArchiveReference(BaseModel):
    """
    Everything known about a package archive before it is fetched.

    Carries the cheap checksum hints (provider digest and sidecar location)
    alongside the download URL.
    """

    name: str
    url: str
    digest: Optional[str] = None
    sidecar_url: Optional[str] = None


class ReleaseCandidate(BaseModel):
    """
    A release that carries a publishable package. Never persisted.
    """

    release: Release
    metadata_asset: ReleaseAsset
    archive_asset: ReleaseAsset
    sidecar_asset: Optional[ReleaseAsset] = None

    @property
    def version(self) -> str:
        return self.release.tag_name

    @property
    def prerelease(self) -> bool:
        return self.release.prerelease

    @property
    def archive(self) -> ArchiveReference:
        return ArchiveReference(
            name=self.archive_asset.name,
            url=self.archive_asset.browser_download_url,
            digest=self.archive_asset.digest,
            sidecar_url=self.sidecar_asset.browser_download_url if self.sidecar_asset else None,
        )


# ---------------------------------------------------------------------------
# Index Models
# ---------------------------------------------------------------------------


class PackageMetadata(BaseModel):
    """
    Metadata for one version of a package, as filed in the index.

    Well-known fields are declared below; anything else the source
    package.json carries lives in the extension map (pydantic extras) and is
    written back untouched. Values are not type-checked: records already in an
    index are round-tripped exactly as they were read, explicit nulls included.
    """

    model_config = ConfigDict(extra="allow")

    name: Any = None
    version: Any = None
    display_name: Any = Field(default=None, alias="displayName")
    description: Any = None

    # Distribution fields stamped by the metadata resolver.
    url: Any = None
    repo: Any = None
    zip_sha256: Any = Field(default=None, alias="zipSHA256")
    documentation_url: Any = Field(default=None, alias="documentationUrl")
    changelog_url: Any = Field(default=None, alias="changelogUrl")

    @property
    def extensions(self) -> Dict[str, Any]:
        """Fields from the source metadata that have no well-known slot."""
        return self.model_extra if self.model_extra is not None else {}

    def to_document(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        # Only keys that were read or assigned; assignment marks a field as set.
        for field_name, info in type(self).model_fields.items():
            if field_name in self.model_fields_set:
                data[info.alias or field_name] = getattr(self, field_name)
        data.update(self.extensions)
        return data


class PackageVersionSet(BaseModel):
    """All indexed versions of a single package name."""

    model_config = ConfigDict(extra="allow")

    versions: Dict[str, PackageMetadata] = Field(default_factory=dict)

    def to_document(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "versions": {v: meta.to_document() for v, meta in self.versions.items()}
        }
        data.update(self.model_extra or {})
        return data


class RepositoryInit(BaseModel):
    """Identity used to seed a brand new index document."""

    author: str
    name: str
    id: Optional[str] = None
    url: str


class RepositoryDocument(BaseModel):
    """
    The persisted index for one distribution channel.
    Persisted in: <OUTPUT_DIR>/vpm.json (or vpm-prerelease.json)
    """

    model_config = ConfigDict(extra="allow")

    packages: Dict[str, PackageVersionSet] = Field(default_factory=dict)
    author: str = ""
    name: str = ""
    id: Optional[str] = None
    url: str = ""

    @classmethod
    def seed(cls, init: RepositoryInit) -> "RepositoryDocument":
        return cls(author=init.author, name=init.name, id=init.id, url=init.url)

    def get_version(self, name: str, version: str) -> Optional[PackageMetadata]:
        package = self.packages.get(name)
        if package is None:
            return None
        return package.versions.get(version)

    def to_document(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "packages": {name: pkg.to_document() for name, pkg in self.packages.items()},
            "author": self.author,
            "name": self.name,
        }
        if self.id:
            data["id"] = self.id
        data["url"] = self.url
        data.update(self.model_extra or {})
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_document(), indent=2, ensure_ascii=False) + "\n"
