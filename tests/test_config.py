from pathlib import Path

import pytest

from vpm_index.core.config import build_config
from vpm_index.domain.errors import ConfigurationError

REQUIRED = {
    "repository": "owner/pkg",
    "package": "com.example.pkg",
    "repo_url": "https://example.github.io/vpm/vpm.json",
    "repo_author": "Example",
    "repo_name": "Example packages",
}


def test_yaml_file_is_overridden_by_options(tmp_path):
    config_file = tmp_path / "vpm-index.yml"
    config_file.write_text(
        "repository: owner/pkg\n"
        "package: com.example.pkg\n"
        "repo-url: https://example.github.io/vpm/vpm.json\n"
        "repo-author: Example\n"
        "repo-name: From file\n"
        "output: site\n",
        encoding="utf-8",
    )

    config = build_config(config_file, repo_name="From option", token=None)

    assert config.repo_name == "From option"
    assert config.output == Path("site")
    assert config.stable_index_path == Path("site") / "vpm.json"
    assert config.effective_archive_prefix == "com.example.pkg"
    assert config.token is None


def test_prerelease_channel_is_disabled_by_default():
    assert build_config(**REQUIRED).prerelease_init() is None


def test_prerelease_identity_defaults():
    config = build_config(**REQUIRED, repo_id="com.example", prerelease_repo_url="https://x/pre.json")

    init = config.prerelease_init()

    assert init.author == "Example"
    assert init.name == "Example packages (Prerelease)"
    assert init.id == "com.example.prerelease"
    assert init.url == "https://x/pre.json"


def test_stable_id_is_optional():
    assert build_config(**REQUIRED).stable_init().id is None


def test_malformed_repository_is_rejected():
    with pytest.raises(ConfigurationError, match="owner/name"):
        build_config(**{**REQUIRED, "repository": "not-a-repo"})


def test_missing_required_values_are_rejected():
    values = dict(REQUIRED)
    del values["package"]

    with pytest.raises(ConfigurationError):
        build_config(**values)


def test_config_file_must_be_a_mapping(tmp_path):
    config_file = tmp_path / "vpm-index.yml"
    config_file.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        build_config(config_file, **REQUIRED)
