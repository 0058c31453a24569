"""
Run configuration for the indexer.

Values come from an optional YAML file, overridden by command line options.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from vpm_index.domain.errors import ConfigurationError
from vpm_index.domain.models import RepositoryInit
from vpm_index.domain.vpm_utils import split_repository
from vpm_index.services.importer.release_provider import GITHUB_API_URL

STABLE_INDEX_FILENAME = "vpm.json"
PRERELEASE_INDEX_FILENAME = "vpm-prerelease.json"


class ImporterConfig(BaseModel):
    """Everything one indexing run needs."""

    output: Path = Field(
        default=Path("."),
        description="Directory the channel index files are written to.",
    )
    repository: str = Field(description="Source repository as 'owner/name'.")
    package: str = Field(description="Package name the releases publish.")
    archive_prefix: Optional[str] = Field(
        default=None,
        description="Prefix of the package archive asset. Defaults to the package name.",
    )
    token: Optional[str] = Field(default=None, description="Access token for the release provider.")
    api_url: str = GITHUB_API_URL

    repo_url: str = Field(description="URL the stable index is served from.")
    repo_author: str
    repo_name: str
    repo_id: Optional[str] = None

    prerelease_repo_url: Optional[str] = Field(
        default=None,
        description="URL the prerelease index is served from. Enables the prerelease channel.",
    )
    prerelease_repo_author: Optional[str] = None
    prerelease_repo_name: Optional[str] = None
    prerelease_repo_id: Optional[str] = None

    documentation_url: Optional[str] = None
    timeout: float = Field(default=60.0, gt=0)

    @field_validator("repository")
    @classmethod
    def _check_repository(cls, value: str) -> str:
        split_repository(value)
        return value.strip()

    @property
    def effective_archive_prefix(self) -> str:
        return self.archive_prefix or self.package

    @property
    def stable_index_path(self) -> Path:
        return self.output / STABLE_INDEX_FILENAME

    @property
    def prerelease_index_path(self) -> Path:
        return self.output / PRERELEASE_INDEX_FILENAME

    def stable_init(self) -> RepositoryInit:
        return RepositoryInit(
            author=self.repo_author,
            name=self.repo_name,
            id=self.repo_id or None,
            url=self.repo_url,
        )

    def prerelease_init(self) -> Optional[RepositoryInit]:
        if not self.prerelease_repo_url:
            return None

        repo_id = self.prerelease_repo_id
        if not repo_id and self.repo_id:
            repo_id = f"{self.repo_id}.prerelease"

        return RepositoryInit(
            author=self.prerelease_repo_author or self.repo_author,
            name=self.prerelease_repo_name or f"{self.repo_name} (Prerelease)",
            id=repo_id or None,
            url=self.prerelease_repo_url,
        )


def load_config_file(path: Path) -> Dict[str, Any]:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to read config file {path}: {e}") from e

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")
    # YAML files may use dashes like the command line options do.
    return {str(k).replace("-", "_"): v for k, v in raw.items()}


def build_config(config_file: Optional[Path] = None, **overrides: Any) -> ImporterConfig:
    """
    Merge the config file (if any) with explicit overrides. Overrides that are
    None are treated as not given.
    """
    values: Dict[str, Any] = {}
    if config_file is not None:
        values.update(load_config_file(config_file))
    values.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return ImporterConfig(**values)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
