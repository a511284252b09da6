"""Explicit repository handle over the ``git`` CLI.

Stability: stable
Since: 0.1.0
Dependencies: git (external)
Doc-Types: API_REFERENCE, TECHNICAL_DESIGN
Tags: git, worktree, subprocess

Every component receives a ``GitRepository`` instead of relying on the
current directory being a checkout. Commands run through ``subprocess``
with ``cwd`` pinned to the repository (or to a worktree via ``cwd=``), so
tests can point the handle at a throwaway repository in ``tmp_path``.

Only the operations a publish run needs are exposed: worktree add/remove,
branch existence queries, orphan creation, staging, staged-diff detection
and commit. No operation talks to a remote except ``has_remote_branch``
(``git ls-remote``) and ``fetch_branch``.
"""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

from verdocs.core.errors import GitCommandError, RepositoryNotFound
from verdocs.core.logging import get_logger

logger = get_logger(__name__)


def _find_git() -> str:
    git = shutil.which("git")
    if git is None:
        raise GitCommandError("git CLI not found on PATH", command=["git"])
    return git


class GitRepository:
    """Handle on one git repository.

    Parameters
    ----------
    root
        Top-level directory of the repository (main worktree).
    timeout
        Optional per-command timeout in seconds. ``None`` (the default)
        lets git block for as long as it needs.

    Example::

        repo = GitRepository.discover(Path.cwd())
        if repo.has_local_branch("gh-pages"):
            repo.worktree_add(tmp_dir, "gh-pages")
    """

    def __init__(self, root: Path, *, timeout: float | None = None) -> None:
        self.root = Path(root)
        self.timeout = timeout
        self._git = _find_git()

    def __repr__(self) -> str:
        return f"GitRepository({str(self.root)!r})"

    @classmethod
    def discover(cls, path: Path | None = None, **kwargs) -> GitRepository:
        """Locate the repository enclosing ``path`` (default: cwd).

        Raises:
            RepositoryNotFound: If ``path`` is not inside a git checkout.
        """
        start = Path(path) if path is not None else Path.cwd()
        git = _find_git()
        result = subprocess.run(
            [git, "rev-parse", "--show-toplevel"],
            cwd=str(start),
            capture_output=True,
            text=True,
        )
        if result.returncode != 0:
            raise RepositoryNotFound(str(start))
        return cls(Path(result.stdout.strip()), **kwargs)

    # ------------------------------------------------------------------
    # Low-level execution
    # ------------------------------------------------------------------

    def run(
        self,
        args: list[str],
        *,
        cwd: Path | None = None,
        check: bool = True,
    ) -> subprocess.CompletedProcess[str]:
        """Run ``git <args>`` and return the completed process.

        Raises:
            GitCommandError: If git cannot be started, times out, or exits
                non-zero while ``check`` is set.
        """
        cmd = [self._git, *args]
        workdir = str(cwd or self.root)
        logger.debug("git.exec", args=args, cwd=workdir)
        try:
            result = subprocess.run(
                cmd,
                cwd=workdir,
                capture_output=True,
                text=True,
                encoding="utf-8",
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise GitCommandError(
                f"git {' '.join(args)} timed out after {self.timeout}s",
                command=["git", *args],
                cause=exc,
            ) from exc
        except OSError as exc:
            raise GitCommandError(
                f"Could not run git {' '.join(args)}: {exc}",
                command=["git", *args],
                cause=exc,
            ) from exc
        if check and result.returncode != 0:
            stderr = result.stderr.strip()
            raise GitCommandError(
                f"git {' '.join(args)} failed (exit {result.returncode})"
                + (f": {stderr}" if stderr else ""),
                command=["git", *args],
                returncode=result.returncode,
                stderr=stderr,
            )
        return result

    # ------------------------------------------------------------------
    # Refs and branches
    # ------------------------------------------------------------------

    def resolve_commit(self, ref: str) -> str | None:
        """Return the commit SHA ``ref`` points to, or None."""
        result = self.run(
            ["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"],
            check=False,
        )
        if result.returncode != 0:
            return None
        return result.stdout.strip()

    def head_commit(self, cwd: Path | None = None) -> str | None:
        """SHA of HEAD in the main worktree (or ``cwd``), None if unborn."""
        result = self.run(["rev-parse", "--verify", "--quiet", "HEAD"], cwd=cwd, check=False)
        if result.returncode != 0:
            return None
        return result.stdout.strip()

    def branch_commit(self, branch: str) -> str | None:
        """SHA at the tip of local ``branch``, None if it does not exist."""
        return self.resolve_commit(f"refs/heads/{branch}")

    def has_local_branch(self, branch: str) -> bool:
        result = self.run(
            ["show-ref", "--verify", "--quiet", f"refs/heads/{branch}"],
            check=False,
        )
        return result.returncode == 0

    def has_remote(self, remote: str) -> bool:
        result = self.run(["remote"], check=False)
        return remote in result.stdout.split()

    def has_remote_branch(self, remote: str, branch: str) -> bool:
        """Ask ``remote`` whether it has ``branch``.

        ``git ls-remote --exit-code`` exits 2 when nothing matched; any other
        failure (unreachable remote, bad URL) is raised.
        """
        result = self.run(
            ["ls-remote", "--exit-code", "--heads", remote, branch],
            check=False,
        )
        if result.returncode == 0:
            return True
        if result.returncode == 2:
            return False
        stderr = result.stderr.strip()
        raise GitCommandError(
            f"git ls-remote {remote} failed (exit {result.returncode})"
            + (f": {stderr}" if stderr else ""),
            command=["git", "ls-remote", "--exit-code", "--heads", remote, branch],
            returncode=result.returncode,
            stderr=stderr,
        )

    def fetch_branch(self, remote: str, branch: str) -> None:
        """Update ``refs/remotes/<remote>/<branch>`` from the remote."""
        self.run(
            ["fetch", "--quiet", remote, f"+refs/heads/{branch}:refs/remotes/{remote}/{branch}"]
        )

    def ls_tree_names(
        self,
        treeish: str = "HEAD",
        *,
        cwd: Path | None = None,
        dirs_only: bool = False,
    ) -> list[str]:
        """Top-level entry names of ``treeish`` (tracked files only).

        NUL-separated output keeps non-ASCII names unquoted.
        """
        args = ["ls-tree", "-z", "--name-only", treeish]
        if dirs_only:
            args.insert(1, "-d")
        result = self.run(args, cwd=cwd)
        return [name for name in result.stdout.split("\0") if name]

    # ------------------------------------------------------------------
    # Worktrees
    # ------------------------------------------------------------------

    def worktree_add_detached(self, path: Path, ref: str | None = None) -> None:
        args = ["worktree", "add", "--quiet", "--detach", str(path)]
        if ref is not None:
            args.append(ref)
        self.run(args)

    def worktree_add(self, path: Path, branch: str) -> None:
        self.run(["worktree", "add", "--quiet", str(path), branch])

    def worktree_add_tracking(self, path: Path, branch: str, upstream: str) -> None:
        """Create local ``branch`` tracking ``upstream`` and check it out at ``path``."""
        self.run(["worktree", "add", "--quiet", "--track", "-b", branch, str(path), upstream])

    def worktree_remove(self, path: Path) -> None:
        self.run(["worktree", "remove", "--force", str(path)])

    def worktree_prune(self) -> None:
        self.run(["worktree", "prune"])

    def worktree_paths(self) -> list[Path]:
        """Paths of every registered worktree, main worktree first."""
        result = self.run(["worktree", "list", "--porcelain"])
        return [
            Path(line[len("worktree "):])
            for line in result.stdout.splitlines()
            if line.startswith("worktree ")
        ]

    # ------------------------------------------------------------------
    # Working-copy operations (always with cwd=<worktree>)
    # ------------------------------------------------------------------

    def checkout_orphan(self, branch: str, *, cwd: Path) -> None:
        self.run(["checkout", "--quiet", "--orphan", branch], cwd=cwd)

    def remove_all(self, *, cwd: Path) -> None:
        """Drop every tracked path from index and disk."""
        self.run(["rm", "-r", "-f", "--quiet", "--ignore-unmatch", "."], cwd=cwd)

    def remove_paths(self, paths: list[str], *, cwd: Path) -> None:
        """Remove exact paths; glob characters in names are not expanded."""
        if not paths:
            return
        self.run(["--literal-pathspecs", "rm", "-r", "-f", "--quiet", "--", *paths], cwd=cwd)

    def add_all(self, *, cwd: Path) -> None:
        """Stage additions, modifications and deletions."""
        self.run(["add", "--all", "."], cwd=cwd)

    def add_paths(self, paths: list[str], *, cwd: Path) -> None:
        self.run(["add", "--", *paths], cwd=cwd)

    def has_staged_changes(self, *, cwd: Path) -> bool:
        """Compare the index against HEAD (``git diff --cached --quiet``)."""
        result = self.run(["diff", "--cached", "--quiet"], cwd=cwd, check=False)
        if result.returncode == 0:
            return False
        if result.returncode == 1:
            return True
        stderr = result.stderr.strip()
        raise GitCommandError(
            f"git diff --cached failed (exit {result.returncode})"
            + (f": {stderr}" if stderr else ""),
            command=["git", "diff", "--cached", "--quiet"],
            returncode=result.returncode,
            stderr=stderr,
        )

    def commit(self, message: str, *, cwd: Path, allow_empty: bool = False) -> str:
        """Commit the index and return the new HEAD SHA."""
        args = ["commit", "--quiet", "-m", message]
        if allow_empty:
            args.insert(1, "--allow-empty")
        self.run(args, cwd=cwd)
        return self.run(["rev-parse", "HEAD"], cwd=cwd).stdout.strip()


__all__ = ["GitRepository"]
