"""
Error taxonomy for the indexer.

Errors that only affect a single release are handled where they are raised;
the rest propagate to the command line and abort the run.
"""
from __future__ import annotations


class IndexerError(Exception):
    """Base class for every error raised by the indexer."""


class ConfigurationError(IndexerError):
    """The run configuration is incomplete or invalid."""


class ReleaseListingError(IndexerError):
    """The release provider could not list releases."""


class RepositoryLoadError(IndexerError):
    """An existing index file could not be read or parsed."""


class MetadataError(IndexerError):
    """A release's package.json could not be fetched or parsed."""


class MalformedChecksum(IndexerError):
    """A checksum source did not yield a 64 character hex digest."""


class ChecksumConflict(IndexerError):
    """A published version's archive digest changed underneath its tag."""

    def __init__(self, name: str, version: str, stored: str, computed: str):
        self.name = name
        self.version = version
        self.stored = stored
        self.computed = computed
        super().__init__(
            f"Checksum conflict for {name}@{version}: "
            f"index has {stored}, archive now hashes to {computed}"
        )
