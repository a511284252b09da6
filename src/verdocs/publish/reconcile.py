"""Reconcile the publish branch root with the set of published versions.

Stability: stable
Since: 0.1.0
Dependencies: git (external), jinja2, pyyaml
Doc-Types: API_REFERENCE, TECHNICAL_DESIGN
Tags: reconcile, versions, latest, landing-page

The root of the publish branch holds three kinds of entries:

- version directories, named by canonical ``VersionLabel`` strings;
- the latest pointer, a reserved directory holding a redirect;
- custom entries: landing page, site configuration, static assets.

After a version has been built, ``VersionSetReconciler.reconcile`` runs:

1. Scan the root for version directories and take the maximum as latest.
   Nothing about "latest" is stored anywhere else, so directories added
   or deleted by hand are picked up on the next run.
2. Only if the version just built *is* that maximum, rebuild the root:
   remove tracked custom entries (not version directories, not the site
   configuration, not the latest pointer), copy the source tree's custom
   docs directory over the root, and synthesize a landing page when none
   exists.
3. Always rewrite the latest redirect to target the maximum, and the
   versions data file when one is configured.

Publishing a patch for an old release line therefore never replaces the
landing page or assets with the old source tree's copies, while the
redirect keeps pointing at the true maximum whatever order versions are
published in.

Architecture::

    PublishTree.scan(root)
          │
          ├── versions ──► latest_of() ──► is_latest(built)?
          │                                   │ yes
          │                                   ▼
          │                 clean_root → copy_custom_docs → ensure_landing_page
          │
          └── write_latest_redirect(latest)  (always)
              write_versions_data()          (when configured)
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from verdocs.core.logging import get_logger
from verdocs.publish.git import GitRepository
from verdocs.publish.pages import PageRenderer
from verdocs.publish.version import VersionLabel, is_latest, latest_of, sort_labels, try_parse_label
from verdocs.publish.workspace import WorkingCopy

if TYPE_CHECKING:
    from verdocs.config import PublishConfig

logger = get_logger(__name__)


@dataclass
class PublishTree:
    """Classified top-level entries of a publish working copy."""

    root: Path
    versions: dict[VersionLabel, Path] = field(default_factory=dict)
    latest_pointer: Path | None = None
    custom_entries: list[str] = field(default_factory=list)

    @classmethod
    def scan(cls, root: Path, latest_dir: str = "latest") -> PublishTree:
        """Partition the entries directly under ``root``.

        Only directories whose name is exactly a canonical label count as
        version directories; ``.git`` and other dot-entries are ignored.
        """
        tree = cls(root=root)
        for entry in sorted(root.iterdir(), key=lambda p: p.name):
            name = entry.name
            if name.startswith("."):
                continue
            if name == latest_dir:
                tree.latest_pointer = entry
                continue
            label = try_parse_label(name) if entry.is_dir() else None
            if label is not None:
                tree.versions[label] = entry
            else:
                tree.custom_entries.append(name)
        return tree

    @property
    def labels(self) -> list[VersionLabel]:
        """Version labels, ascending."""
        return sort_labels(self.versions)

    @property
    def latest(self) -> VersionLabel | None:
        return latest_of(self.versions)


@dataclass
class ReconcileOutcome:
    """What a reconciliation pass decided and changed."""

    built: VersionLabel
    latest: VersionLabel
    is_latest: bool
    versions: list[VersionLabel]
    removed: list[str] = field(default_factory=list)
    custom_docs_copied: bool = False
    landing_page_generated: bool = False


class VersionSetReconciler:
    """Keep the latest pointer, landing page and custom root content in sync.

    Manifesto:
        The directory listing is the single source of truth for which
        versions exist. "Latest" is derived from it on every run, and only
        the latest source tree is allowed to shape the root of the site.

    Guardrails:
        - Do NOT delete version directories or untracked files
          ✅ Only tracked, non-reserved, non-version root entries go
        - Do NOT overwrite an existing landing page
          ✅ Synthesize one only when none of ``landing_pages`` exists
        - Do NOT gate the redirect on publish order
          ✅ Always point it at the maximum label

    Examples:
        >>> reconciler = VersionSetReconciler(repo, config)
        >>> outcome = reconciler.reconcile(VersionLabel(1, 2, 0), pages, source)
        >>> outcome.latest
        VersionLabel('v1.2.0')
    """

    def __init__(
        self,
        repo: GitRepository,
        config: PublishConfig,
        renderer: PageRenderer | None = None,
    ):
        self.repo = repo
        self.config = config
        self.renderer = renderer or PageRenderer()

    def scan(self, publish: WorkingCopy) -> PublishTree:
        return PublishTree.scan(publish.path, self.config.latest_dir)

    def reconcile(
        self,
        built: VersionLabel,
        publish: WorkingCopy,
        source: WorkingCopy,
    ) -> ReconcileOutcome:
        """Run the full reconciliation pass for a freshly built version."""
        tree = self.scan(publish)
        latest = latest_of([built, *tree.versions])
        built_is_latest = is_latest(built, tree.versions)

        if built_is_latest:
            logger.info("reconcile.latest", version=str(built))
        else:
            logger.info("reconcile.not_latest", version=str(built), latest=str(latest))

        outcome = ReconcileOutcome(
            built=built,
            latest=latest,
            is_latest=built_is_latest,
            versions=tree.labels,
        )

        if built_is_latest:
            outcome.removed = self.clean_root(publish)
            outcome.custom_docs_copied = self.copy_custom_docs(source, publish)
            outcome.landing_page_generated = self.ensure_landing_page(publish)

        self.write_latest_redirect(publish, latest)
        self.write_versions_data(publish)
        return outcome

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def clean_root(self, publish: WorkingCopy) -> list[str]:
        """Remove tracked custom entries from the branch root.

        Returns:
            Names of the removed entries.
        """
        reserved = self.config.reserved_root_entries()
        tracked = self.repo.ls_tree_names("HEAD", cwd=publish.path)
        doomed = [
            name
            for name in tracked
            if name not in reserved and try_parse_label(name) is None
        ]
        if doomed:
            self.repo.remove_paths(doomed, cwd=publish.path)
            logger.info("reconcile.root_cleaned", removed=doomed)
        return doomed

    def copy_custom_docs(self, source: WorkingCopy, publish: WorkingCopy) -> bool:
        """Copy ``<source>/<custom_docs_dir>/`` over the branch root."""
        custom = source.path / self.config.custom_docs_dir
        if not custom.is_dir():
            logger.info("reconcile.no_custom_docs", path=str(custom))
            return False
        shutil.copytree(
            custom,
            publish.path,
            dirs_exist_ok=True,
            ignore=shutil.ignore_patterns(".git"),
        )
        logger.info("reconcile.custom_docs_copied", source=str(custom))
        return True

    def ensure_landing_page(self, publish: WorkingCopy) -> bool:
        """Write a landing page listing every version, newest first, if none exists."""
        candidates = [*self.config.landing_pages, self.config.landing_page]
        if any((publish.path / name).exists() for name in candidates):
            return False
        versions = sort_labels(self.scan(publish).versions, descending=True)
        content = self.renderer.render_landing(self.config.site_title, versions)
        (publish.path / self.config.landing_page).write_text(content, encoding="utf-8")
        logger.info("reconcile.landing_generated", versions=[str(v) for v in versions])
        return True

    def write_latest_redirect(self, publish: WorkingCopy, latest: VersionLabel) -> Path:
        pointer = publish.path / self.config.latest_dir
        if pointer.is_symlink() or pointer.is_file():
            pointer.unlink()
        pointer.mkdir(parents=True, exist_ok=True)
        target = pointer / "index.html"
        target.write_text(self.renderer.render_redirect(latest), encoding="utf-8")
        logger.info("reconcile.redirect_written", target=str(latest))
        return target

    def write_versions_data(self, publish: WorkingCopy) -> Path | None:
        if not self.config.versions_data_file:
            return None
        versions = sort_labels(self.scan(publish).versions, descending=True)
        path = publish.path / self.config.versions_data_file
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.renderer.render_versions_data(versions), encoding="utf-8")
        return path


def published_versions(
    repo: GitRepository,
    branch: str,
    *,
    remote: str | None = None,
) -> list[VersionLabel]:
    """Version directories at the tip of ``branch``, newest first.

    Reads the tree directly (``git ls-tree``), so no working copy is
    needed. Falls back to ``<remote>/<branch>`` when there is no local
    branch; returns an empty list when neither exists.
    """
    treeish = f"refs/heads/{branch}"
    if repo.resolve_commit(treeish) is None:
        if not remote or repo.resolve_commit(f"refs/remotes/{remote}/{branch}") is None:
            return []
        treeish = f"refs/remotes/{remote}/{branch}"
    names = repo.ls_tree_names(treeish, dirs_only=True)
    labels = [label for label in map(try_parse_label, names) if label is not None]
    return sort_labels(labels, descending=True)


__all__ = ["PublishTree", "ReconcileOutcome", "VersionSetReconciler", "published_versions"]
