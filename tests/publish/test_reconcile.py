"""Tests for verdocs.publish.reconcile: latest gating and root reconciliation."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import pytest
import yaml

from tests._support.gitrepo import git, requires_git, seed_pages, tag
from verdocs.config import PublishConfig
from verdocs.publish.branch import PublishBranchResolver
from verdocs.publish.git import GitRepository
from verdocs.publish.reconcile import PublishTree, VersionSetReconciler, published_versions
from verdocs.publish.version import VersionLabel, parse_tag
from verdocs.publish.workspace import WorkingCopy, WorkspaceManager

pytestmark = [requires_git, pytest.mark.integration]

OLD_SITE = {
    "v1.0.0/index.html": "one",
    "v1.2.0/index.html": "one-two",
    "latest/index.html": "stale redirect",
    "index.md": "# Old landing\n",
    "old.css": "old",
    "_config.yml": "include: []\n",
}


@contextmanager
def open_copies(
    repo: GitRepository, config: PublishConfig, temp_root: Path, ref: str
) -> Iterator[tuple[WorkingCopy, WorkingCopy]]:
    """Source copy of ``ref`` plus the publish branch, with ``ref`` "built"."""
    with WorkspaceManager(repo, temp_root=temp_root) as workspaces:
        source = workspaces.acquire(ref)
        publish = PublishBranchResolver(repo, workspaces, config).resolve()
        built = publish.path / str(parse_tag(ref))
        built.mkdir(exist_ok=True)
        (built / "index.html").write_text(f"docs {ref}", encoding="utf-8")
        yield source, publish


def names(root: Path) -> set[str]:
    return {p.name for p in root.iterdir() if p.name != ".git"}


class TestPublishTree:
    def test_classifies_entries(self, tmp_path: Path):
        for name in ["v1.0.0", "v2.0.0-rc.1", "v01.0.0", "latest", "assets", ".git"]:
            (tmp_path / name).mkdir()
        (tmp_path / "v9.9.9").write_text("a file, not a version")
        (tmp_path / "index.md").write_text("#")

        tree = PublishTree.scan(tmp_path)

        assert tree.labels == [VersionLabel(1, 0, 0), VersionLabel(2, 0, 0, "rc.1")]
        assert tree.latest == VersionLabel(2, 0, 0, "rc.1")
        assert tree.latest_pointer == tmp_path / "latest"
        assert sorted(tree.custom_entries) == ["assets", "index.md", "v01.0.0", "v9.9.9"]

    def test_empty(self, tmp_path: Path):
        tree = PublishTree.scan(tmp_path)
        assert tree.labels == []
        assert tree.latest is None


class TestFirstPublish:
    def test_latest_build_copies_custom_docs(self, repo, git_repo, config, workspace_root):
        tag(git_repo, "v1.0.0")
        with open_copies(repo, config, workspace_root, "v1.0.0") as (source, publish):
            outcome = VersionSetReconciler(repo, config).reconcile(VersionLabel(1, 0, 0), publish, source)

            assert outcome.is_latest
            assert outcome.latest == VersionLabel(1, 0, 0)
            assert outcome.custom_docs_copied
            assert not outcome.landing_page_generated
            assert (publish.path / "index.md").read_text() == "# Custom landing\n"
            assert (publish.path / "assets" / "style.css").is_file()
            assert (publish.path / "_config.yml").is_file()
            assert "../v1.0.0/" in (publish.path / "latest" / "index.html").read_text()

    def test_landing_generated_without_custom_docs(self, repo, git_repo, workspace_root):
        config = PublishConfig(custom_docs_dir="no-such-dir", site_title="My API")
        tag(git_repo, "v1.0.0")
        with open_copies(repo, config, workspace_root, "v1.0.0") as (source, publish):
            outcome = VersionSetReconciler(repo, config).reconcile(VersionLabel(1, 0, 0), publish, source)

            assert not outcome.custom_docs_copied
            assert outcome.landing_page_generated
            assert (publish.path / "index.md").read_text() == "# My API\n\n- [v1.0.0](v1.0.0/)\n"


class TestLatestGating:
    def test_old_patch_leaves_root_alone(self, repo, git_repo, config, workspace_root):
        seed_pages(repo, config, workspace_root, OLD_SITE)
        tag(git_repo, "v1.0.1", {"docs/index.md": "# Patched landing\n"})

        with open_copies(repo, config, workspace_root, "v1.0.1") as (source, publish):
            outcome = VersionSetReconciler(repo, config).reconcile(VersionLabel(1, 0, 1), publish, source)

            assert not outcome.is_latest
            assert outcome.latest == VersionLabel(1, 2, 0)
            assert outcome.removed == []
            assert (publish.path / "index.md").read_text() == "# Old landing\n"
            assert (publish.path / "old.css").read_text() == "old"
            assert not (publish.path / "assets").exists()
            redirect = (publish.path / "latest" / "index.html").read_text()
            assert "../v1.2.0/" in redirect
            assert "stale" not in redirect

    def test_new_latest_rebuilds_root(self, repo, git_repo, config, workspace_root):
        seed_pages(repo, config, workspace_root, {**OLD_SITE, "stale/page.html": "x"})
        tag(git_repo, "v2.0.0")

        with open_copies(repo, config, workspace_root, "v2.0.0") as (source, publish):
            outcome = VersionSetReconciler(repo, config).reconcile(VersionLabel(2, 0, 0), publish, source)

            assert outcome.is_latest
            assert sorted(outcome.removed) == ["index.md", "old.css", "stale"]
            assert names(publish.path) == {
                "v1.0.0",
                "v1.2.0",
                "v2.0.0",
                "latest",
                "_config.yml",
                "index.md",
                "assets",
            }
            assert (publish.path / "index.md").read_text() == "# Custom landing\n"
            assert (publish.path / "_config.yml").read_text() == "include: []\n"
            assert (publish.path / "v1.0.0" / "index.html").read_text() == "one"
            assert "../v2.0.0/" in (publish.path / "latest" / "index.html").read_text()

    def test_untracked_files_survive_cleaning(self, repo, git_repo, config, workspace_root):
        seed_pages(repo, config, workspace_root, OLD_SITE)
        tag(git_repo, "v2.0.0")
        with open_copies(repo, config, workspace_root, "v2.0.0") as (source, publish):
            (publish.path / "untracked.txt").write_text("keep me")
            VersionSetReconciler(repo, config).reconcile(VersionLabel(2, 0, 0), publish, source)
            assert (publish.path / "untracked.txt").exists()

    def test_non_ascii_root_entry_is_removed(self, repo, git_repo, config, workspace_root):
        seed_pages(repo, config, workspace_root, {"v1.0.0/index.html": "one", "über.md": "alt"})
        tag(git_repo, "v2.0.0")
        with open_copies(repo, config, workspace_root, "v2.0.0") as (source, publish):
            outcome = VersionSetReconciler(repo, config).reconcile(VersionLabel(2, 0, 0), publish, source)

            assert outcome.removed == ["über.md"]
            assert not (publish.path / "über.md").exists()
            assert (publish.path / "v1.0.0" / "index.html").read_text() == "one"

    def test_glob_characters_match_literally(self, repo, git_repo, config, workspace_root):
        seed_pages(repo, config, workspace_root, {"v1.0.0/index.html": "one", "v*": "star"})
        tag(git_repo, "v2.0.0")
        with open_copies(repo, config, workspace_root, "v2.0.0") as (source, publish):
            outcome = VersionSetReconciler(repo, config).reconcile(VersionLabel(2, 0, 0), publish, source)

            assert outcome.removed == ["v*"]
            assert not (publish.path / "v*").exists()
            assert (publish.path / "v1.0.0" / "index.html").read_text() == "one"

    def test_latest_file_replaced_by_redirect_dir(self, repo, git_repo, config, workspace_root):
        seed_pages(repo, config, workspace_root, {"v1.0.0/index.html": "one", "latest": "not a dir"})
        tag(git_repo, "v0.9.0")
        with open_copies(repo, config, workspace_root, "v0.9.0") as (source, publish):
            VersionSetReconciler(repo, config).reconcile(VersionLabel(0, 9, 0), publish, source)

            assert (publish.path / "latest").is_dir()
            assert "../v1.0.0/" in (publish.path / "latest" / "index.html").read_text()

    def test_existing_landing_page_is_kept(self, repo, git_repo, workspace_root):
        config = PublishConfig(custom_docs_dir="no-such-dir")
        tag(git_repo, "v1.0.0")
        with open_copies(repo, config, workspace_root, "v1.0.0") as (source, publish):
            (publish.path / "index.html").write_text("<h1>hand written</h1>")
            outcome = VersionSetReconciler(repo, config).reconcile(VersionLabel(1, 0, 0), publish, source)

            assert not outcome.landing_page_generated
            assert not (publish.path / "index.md").exists()
            assert (publish.path / "index.html").read_text() == "<h1>hand written</h1>"

    def test_tracked_landing_page_is_replaced(self, repo, git_repo, workspace_root):
        config = PublishConfig(custom_docs_dir="no-such-dir")
        seed_pages(repo, config, workspace_root, {"v1.0.0/index.html": "one", "index.html": "<h1>hi</h1>"})
        tag(git_repo, "v1.1.0")
        with open_copies(repo, config, workspace_root, "v1.1.0") as (source, publish):
            outcome = VersionSetReconciler(repo, config).reconcile(VersionLabel(1, 1, 0), publish, source)

            assert outcome.removed == ["index.html"]
            assert outcome.landing_page_generated
            assert not (publish.path / "index.html").exists()
            assert "- [v1.1.0](v1.1.0/)" in (publish.path / "index.md").read_text()

    def test_landing_lists_versions_newest_first(self, repo, git_repo, workspace_root):
        config = PublishConfig(custom_docs_dir="no-such-dir")
        seed_pages(
            repo,
            config,
            workspace_root,
            {"v1.0.0/index.html": "a", "v1.2.0/index.html": "b"},
        )
        tag(git_repo, "v2.0.0-rc.1")
        with open_copies(repo, config, workspace_root, "v2.0.0-rc.1") as (source, publish):
            VersionSetReconciler(repo, config).reconcile(VersionLabel(2, 0, 0, "rc.1"), publish, source)
            lines = (publish.path / "index.md").read_text().splitlines()
            assert lines[2:] == [
                "- [v2.0.0-rc.1](v2.0.0-rc.1/)",
                "- [v1.2.0](v1.2.0/)",
                "- [v1.0.0](v1.0.0/)",
            ]


class TestVersionsData:
    def test_written_every_run(self, repo, git_repo, workspace_root):
        config = PublishConfig(versions_data_file="_data/versions.yml")
        seed_pages(repo, config, workspace_root, {"v1.2.0/index.html": "b"})
        tag(git_repo, "v1.0.1")
        with open_copies(repo, config, workspace_root, "v1.0.1") as (source, publish):
            VersionSetReconciler(repo, config).reconcile(VersionLabel(1, 0, 1), publish, source)
            data = yaml.safe_load((publish.path / "_data" / "versions.yml").read_text())
            assert data == ["1.2.0", "1.0.1"]

    def test_disabled_by_default(self, repo, git_repo, config, workspace_root):
        tag(git_repo, "v1.0.0")
        with open_copies(repo, config, workspace_root, "v1.0.0") as (source, publish):
            reconciler = VersionSetReconciler(repo, config)
            assert reconciler.write_versions_data(publish) is None


class TestPublishedVersions:
    def test_reads_branch_tip(self, repo, git_repo, config, workspace_root):
        seed_pages(repo, config, workspace_root, OLD_SITE)
        assert published_versions(repo, "gh-pages") == [VersionLabel(1, 2, 0), VersionLabel(1, 0, 0)]

    def test_missing_branch(self, repo):
        assert published_versions(repo, "gh-pages", remote="origin") == []

    def test_remote_tracking_fallback(self, repo, git_repo, bare_remote, config, workspace_root):
        seed_pages(repo, config, workspace_root, {"v3.0.0/index.html": "x"})
        git(git_repo, "push", "-q", "origin", "gh-pages")
        git(git_repo, "fetch", "-q", "origin")
        git(git_repo, "branch", "-q", "-D", "gh-pages")

        assert published_versions(repo, "gh-pages") == []
        assert published_versions(repo, "gh-pages", remote="origin") == [VersionLabel(3, 0, 0)]


@pytest.mark.parametrize("built, expected", [("v0.9.0", "v1.2.0"), ("v1.3.0", "v1.3.0")])
def test_redirect_always_targets_maximum(repo, git_repo, config, workspace_root, built, expected):
    seed_pages(repo, config, workspace_root, OLD_SITE)
    tag(git_repo, built)
    with open_copies(repo, config, workspace_root, built) as (source, publish):
        VersionSetReconciler(repo, config).reconcile(parse_tag(built), publish, source)
        assert f"../{expected}/" in (publish.path / "latest" / "index.html").read_text()
