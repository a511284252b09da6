"""Tests for verdocs.cli: publish and versions commands via CliRunner."""

from __future__ import annotations

import io
import json
import sys
from pathlib import Path

import pytest
import yaml
from rich.console import Console
from typer.testing import CliRunner

from tests._support.gitrepo import branch_files, branch_tip, requires_git, tag
from verdocs.cli import app

pytestmark = [requires_git, pytest.mark.integration]

runner = CliRunner()

WRITE_INDEX = (
    "import pathlib, sys; out = pathlib.Path(sys.argv[1]); "
    "(out / 'index.html').write_text('docs ' + sys.argv[2])"
)


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "verdocs.yml"
    path.write_text(
        yaml.safe_dump(
            {
                "generator_command": [sys.executable, "-c", WRITE_INDEX, "{output}", "{version}"],
                "log_level": "WARNING",
            }
        )
    )
    return path


def invoke_publish(git_repo: Path, config_file: Path, *extra: str):
    return runner.invoke(
        app,
        ["publish", *extra, "--repo", str(git_repo), "--config", str(config_file)],
    )


class TestRoot:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert result.output.startswith("verdocs ")

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert "publish" in result.output
        assert "versions" in result.output


class TestPublish:
    def test_missing_tag(self):
        result = runner.invoke(app, ["publish"])
        assert result.exit_code == 1
        assert "Usage:" in result.output
        assert "Missing argument 'TAG'" in result.output

    def test_publishes(self, git_repo, config_file):
        tag(git_repo, "v1.0.0")

        result = invoke_publish(git_repo, config_file, "v1.0.0")

        assert result.exit_code == 0, result.output
        assert "PASSED" in result.output
        files = branch_files(git_repo, "gh-pages")
        assert "v1.0.0/index.html" in files
        assert "latest/index.html" in files

    def test_second_run_is_noop(self, git_repo, config_file):
        tag(git_repo, "v1.0.0")
        invoke_publish(git_repo, config_file, "v1.0.0")
        tip = branch_tip(git_repo, "gh-pages")

        result = invoke_publish(git_repo, config_file, "v1.0.0")

        assert result.exit_code == 0, result.output
        assert "no changes" in result.output
        assert branch_tip(git_repo, "gh-pages") == tip

    def test_branch_option(self, git_repo, config_file):
        tag(git_repo, "v1.0.0")
        result = invoke_publish(git_repo, config_file, "v1.0.0", "--branch", "site")
        assert result.exit_code == 0, result.output
        assert branch_tip(git_repo, "site") is not None
        assert branch_tip(git_repo, "gh-pages") is None

    def test_invalid_tag(self, git_repo, config_file):
        result = invoke_publish(git_repo, config_file, "nightly")
        assert result.exit_code == 1
        assert "Error [version] (VALIDATION)" in result.output

    def test_unknown_ref(self, git_repo, config_file):
        result = invoke_publish(git_repo, config_file, "v3.0.0")
        assert result.exit_code == 1
        assert "Error [workspace] (VCS)" in result.output

    def test_generator_failure(self, git_repo, tmp_path):
        tag(git_repo, "v1.0.0")
        failing = tmp_path / "failing.yml"
        failing.write_text(
            yaml.safe_dump({"generator_command": [sys.executable, "-c", "import sys; sys.exit(2)"]})
        )

        result = invoke_publish(git_repo, failing, "v1.0.0")

        assert result.exit_code == 1
        assert "Error [build] (GENERATION)" in result.output
        assert branch_files(git_repo, "gh-pages") == ["_config.yml"]

    def test_outside_repository(self, tmp_path, config_file):
        plain = tmp_path / "plain"
        plain.mkdir()
        result = runner.invoke(app, ["publish", "v1.0.0", "--repo", str(plain), "--config", str(config_file)])
        assert result.exit_code == 1
        assert "(CONFIG)" in result.output

    def test_json_output(self, git_repo, config_file, monkeypatch):
        quiet = Console(file=io.StringIO())
        monkeypatch.setattr(sys.modules["verdocs.cli.app"], "err_console", quiet)
        monkeypatch.setattr("verdocs.cli.utils.err_console", quiet)
        tag(git_repo, "v1.0.0")

        result = invoke_publish(git_repo, config_file, "v1.0.0", "--json")

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["overall_status"] == "PASSED"
        assert data["version"] == "v1.0.0"
        assert data["commit"]["status"] == "committed"
        assert [s["name"] for s in data["stages"]][-1] == "commit"


class TestVersions:
    def test_lists_published_versions(self, git_repo, config_file):
        tag(git_repo, "v1.0.0")
        invoke_publish(git_repo, config_file, "v1.0.0")
        tag(git_repo, "v1.2.0", {"CHANGES.md": "1.2.0"})
        invoke_publish(git_repo, config_file, "v1.2.0")

        result = runner.invoke(app, ["versions", "--repo", str(git_repo), "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data == {"branch": "gh-pages", "latest": "v1.2.0", "versions": ["v1.2.0", "v1.0.0"]}

    def test_table(self, git_repo, config_file):
        tag(git_repo, "v1.0.0")
        invoke_publish(git_repo, config_file, "v1.0.0")
        result = runner.invoke(app, ["versions", "--repo", str(git_repo)])
        assert result.exit_code == 0
        assert "v1.0.0" in result.output

    def test_nothing_published(self, git_repo):
        result = runner.invoke(app, ["versions", "--repo", str(git_repo)])
        assert result.exit_code == 0
        assert "No versions published on gh-pages" in result.output
