"""
Small helpers shared across the indexer: digest checks, archive URL marking
and repository identifiers.
"""
from __future__ import annotations

import re
from typing import Any, Optional

SHA256_HEX_RE = re.compile(r"[0-9a-fA-F]{64}")


def is_sha256_hex(value: Any) -> bool:
    return isinstance(value, str) and SHA256_HEX_RE.fullmatch(value) is not None


def normalize_digest(value: str) -> str:
    """
    Canonical form for a SHA-256 digest: stripped, lowercase hex.
    """
    return value.strip().lower()


def same_digest(a: Optional[str], b: Optional[str]) -> bool:
    if a is None or b is None:
        return False
    return normalize_digest(a) == normalize_digest(b)


def mark_archive_url(url: str) -> str:
    """
    Append a bare query marker to an archive URL so clients that cache by URL
    do not collide with an earlier fetch of the same location.

    URLs that already carry a query string are returned unchanged.
    """
    if "?" in url:
        return url
    return url + "?"


def split_repository(repository: str) -> tuple[str, str]:
    """Split an 'owner/name' identifier; raises ValueError on anything else."""
    parts = repository.strip().split("/")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise ValueError(f"Expected 'owner/name', got {repository!r}")
    return parts[0], parts[1]
