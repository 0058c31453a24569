import json

import pytest
from click.testing import CliRunner

import vpm_index.main as cli

from conftest import INDEX_URL, ZIP_SHA256, make_release, release_payload

LIST_URL = "https://api.github.com/repos/owner/pkg/releases?per_page=100"

ARGS = [
    "--repository", "owner/pkg",
    "--package", "com.example.pkg",
    "--archive-prefix", "pkg",
    "--repo-url", INDEX_URL,
    "--repo-author", "Example",
    "--repo-name", "Example packages",
]


@pytest.fixture
def fake_github(upstream, monkeypatch):
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.setattr(cli, "get_http_client", lambda config: upstream.client())
    return upstream


def test_run_writes_index(tmp_path, fake_github):
    fake_github.add(LIST_URL, json_body=[release_payload(make_release("1.0.0"))])
    fake_github.add_package("1.0.0", {"name": "com.example.pkg", "version": "1.0.0"})

    result = CliRunner().invoke(cli.main, ARGS + ["--output", str(tmp_path / "site")])

    assert result.exit_code == 0, result.output
    document = json.loads((tmp_path / "site" / "vpm.json").read_text(encoding="utf-8"))
    assert document["packages"]["com.example.pkg"]["versions"]["1.0.0"]["zipSHA256"] == ZIP_SHA256


def test_config_file_supplies_options(tmp_path, fake_github):
    fake_github.add(LIST_URL, json_body=[])
    config_file = tmp_path / "vpm-index.yml"
    config_file.write_text(
        f"repository: owner/pkg\npackage: com.example.pkg\nrepo_url: {INDEX_URL}\n"
        f"repo_author: Example\nrepo_name: Example packages\noutput: {tmp_path}\n",
        encoding="utf-8",
    )

    result = CliRunner().invoke(cli.main, ["--config", str(config_file)])

    assert result.exit_code == 0, result.output
    assert json.loads((tmp_path / "vpm.json").read_text(encoding="utf-8"))["packages"] == {}


def test_token_is_read_from_environment(tmp_path, fake_github, monkeypatch):
    fake_github.add(LIST_URL, json_body=[])
    monkeypatch.setenv("GITHUB_TOKEN", "from-env")

    result = CliRunner().invoke(cli.main, ARGS + ["--output", str(tmp_path)])

    assert result.exit_code == 0, result.output
    assert fake_github.requests[0].headers["Authorization"] == "Bearer from-env"


def test_missing_configuration_fails(tmp_path, fake_github):
    result = CliRunner().invoke(cli.main, ["--output", str(tmp_path)])

    assert result.exit_code == 1
    assert fake_github.requests == []


def test_fatal_error_exits_nonzero(tmp_path, fake_github):
    fake_github.add(LIST_URL, status=500)

    result = CliRunner().invoke(cli.main, ARGS + ["--output", str(tmp_path)])

    assert result.exit_code == 1
    assert not (tmp_path / "vpm.json").exists()
