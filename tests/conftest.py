"""Shared pytest fixtures for the VPM index tests."""

import hashlib
import json
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest

from vpm_index.domain.models import Release, ReleaseAsset, RepositoryInit
from vpm_index.services.checksum import ChecksumResolver

DOWNLOADS = "https://github.com/owner/pkg/releases/download"
INDEX_URL = "https://example.github.io/vpm/vpm.json"
PRERELEASE_INDEX_URL = "https://example.github.io/vpm/vpm-prerelease.json"

ZIP_BYTES = b"PK\x03\x04 fake package archive"
ZIP_SHA256 = hashlib.sha256(ZIP_BYTES).hexdigest()
OTHER_SHA256 = "ab" * 32


def asset_url(tag: str, name: str) -> str:
    return f"{DOWNLOADS}/{tag}/{name}"


def make_asset(tag: str, name: str, digest: Optional[str] = None) -> ReleaseAsset:
    return ReleaseAsset(name=name, browser_download_url=asset_url(tag, name), digest=digest)


def make_release(
    tag: str,
    asset_names: Optional[List[str]] = None,
    prerelease: bool = False,
    draft: bool = False,
    digests: Optional[Dict[str, str]] = None,
) -> Release:
    """Create a release with the given assets (default: package.json + pkg-<tag>.zip)."""
    if asset_names is None:
        asset_names = ["package.json", f"pkg-{tag}.zip"]
    digests = digests or {}
    return Release(
        tag_name=tag,
        name=f"Release {tag}",
        html_url=f"https://github.com/owner/pkg/releases/tag/{tag}",
        draft=draft,
        prerelease=prerelease,
        assets=[make_asset(tag, n, digests.get(n)) for n in asset_names],
    )


def release_payload(release: Release) -> Dict[str, Any]:
    """Render a release the way the GitHub API returns it."""
    return {
        "id": 1,
        "tag_name": release.tag_name,
        "name": release.name,
        "html_url": release.html_url,
        "draft": release.draft,
        "prerelease": release.prerelease,
        "assets": [
            {
                "id": 2,
                "name": a.name,
                "browser_download_url": a.browser_download_url,
                "digest": a.digest,
                "size": 10,
            }
            for a in release.assets
        ],
    }


class FakeUpstream:
    """Routes requests to canned responses and records every request made."""

    def __init__(self):
        self.routes: Dict[str, Tuple[int, bytes, Dict[str, str]]] = {}
        self.requests: List[httpx.Request] = []

    def add(
        self,
        url: str,
        *,
        json_body: Any = None,
        content: Optional[bytes] = None,
        text: Optional[str] = None,
        status: int = 200,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        if json_body is not None:
            content = json.dumps(json_body).encode("utf-8")
        elif text is not None:
            content = text.encode("utf-8")
        self.routes[url] = (status, content or b"", headers or {})

    def add_package(self, tag: str, metadata: Any, archive: bytes = ZIP_BYTES, zip_name: Optional[str] = None) -> None:
        self.add(asset_url(tag, "package.json"), json_body=metadata)
        self.add(asset_url(tag, zip_name or f"pkg-{tag}.zip"), content=archive)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)
        route = self.routes.get(url) or self.routes.get(url.split("?")[0])
        if route is None:
            return httpx.Response(404, content=b"not found")
        status, content, headers = route
        return httpx.Response(status, content=content, headers=headers)

    def fetched(self, url: str) -> int:
        return sum(1 for r in self.requests if str(r.url).split("?")[0] == url)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler), follow_redirects=True)


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def client(upstream: FakeUpstream) -> httpx.AsyncClient:
    return upstream.client()


@pytest.fixture
def checksum_resolver(client: httpx.AsyncClient) -> ChecksumResolver:
    return ChecksumResolver(client)


@pytest.fixture
def repo_init() -> RepositoryInit:
    return RepositoryInit(author="Example", name="Example packages", url=INDEX_URL)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"
