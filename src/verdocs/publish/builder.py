"""Run the external documentation generator into a version directory.

Stability: stable
Since: 0.1.0
Dependencies: generator / installer (external)
Doc-Types: API_REFERENCE, TECHNICAL_DESIGN
Tags: builder, generator, subprocess

The generator and the dependency installer are opaque collaborators: each
is "run this command in the source working copy" and either succeeds or
fails. Commands are argument lists with ``{source}``, ``{output}``,
``{version}`` (``v1.2.3``) and ``{version_number}`` (``1.2.3``) placeholders::

    ["mkdocs", "build", "--site-dir", "{output}"]
    ["pdoc", "-o", "{output}", "mypackage"]
    ["npx", "typedoc", "--out", "{output}"]

Neither is retried. The only check verdocs adds is that the version
directory is non-empty afterwards: an empty directory is
``EmptyDocumentationOutput`` and the run aborts before anything is
committed.
"""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from verdocs.core.errors import (
    DependencyInstallFailed,
    EmptyDocumentationOutput,
    GenerationFailed,
)
from verdocs.core.logging import get_logger
from verdocs.publish.version import VersionLabel
from verdocs.publish.workspace import WorkingCopy

if TYPE_CHECKING:
    from verdocs.config import PublishConfig

logger = get_logger(__name__)

_STDERR_TAIL = 20


class DocumentationGenerator(Protocol):
    """Anything that can turn a source tree into a static site."""

    def generate(self, source: Path, output: Path, version: VersionLabel) -> None: ...


class DependencyInstaller(Protocol):
    def install(self, source: Path) -> None: ...


def _expand(command: list[str], **values: str) -> list[str]:
    expanded = []
    for part in command:
        for key, value in values.items():
            part = part.replace("{" + key + "}", value)
        expanded.append(part)
    return expanded


def _tail(text: str, lines: int = _STDERR_TAIL) -> str:
    return "\n".join(text.strip().splitlines()[-lines:])


class CommandGenerator:
    """Generator backed by an external command run inside the source copy."""

    def __init__(self, command: list[str], *, timeout: float | None = None):
        if not command:
            raise ValueError("Generator command must not be empty")
        self.command = list(command)
        self.timeout = timeout

    def __repr__(self) -> str:
        return f"CommandGenerator({self.command!r})"

    def generate(self, source: Path, output: Path, version: VersionLabel) -> None:
        cmd = _expand(
            self.command,
            source=str(source),
            output=str(output),
            version=str(version),
            version_number=version.number,
        )
        logger.debug("generator.exec", cmd=cmd, cwd=str(source))
        try:
            result = subprocess.run(
                cmd,
                cwd=str(source),
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise GenerationFailed(
                f"Generator timed out after {self.timeout}s: {' '.join(cmd)}", cause=exc
            ).with_context(command=" ".join(cmd)) from exc
        except OSError as exc:
            raise GenerationFailed(
                f"Could not start generator {cmd[0]!r}: {exc}", cause=exc
            ).with_context(command=" ".join(cmd)) from exc

        if result.returncode != 0:
            detail = _tail(result.stderr) or _tail(result.stdout)
            raise GenerationFailed(
                f"Generator exited with status {result.returncode}"
                + (f":\n{detail}" if detail else "")
            ).with_context(command=" ".join(cmd), returncode=result.returncode)


class CommandInstaller:
    """Installer backed by an external command (``npm ci``, ``pip install .``)."""

    def __init__(self, command: list[str], *, timeout: float | None = None):
        self.command = list(command)
        self.timeout = timeout

    def install(self, source: Path) -> None:
        cmd = _expand(self.command, source=str(source))
        logger.debug("installer.exec", cmd=cmd, cwd=str(source))
        try:
            result = subprocess.run(
                cmd,
                cwd=str(source),
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except (subprocess.TimeoutExpired, OSError) as exc:
            raise DependencyInstallFailed(
                f"Dependency installation failed: {exc}", cause=exc
            ).with_context(command=" ".join(cmd)) from exc
        if result.returncode != 0:
            detail = _tail(result.stderr) or _tail(result.stdout)
            raise DependencyInstallFailed(
                f"Dependency installer exited with status {result.returncode}"
                + (f":\n{detail}" if detail else "")
            ).with_context(command=" ".join(cmd), returncode=result.returncode)


class DocumentationBuilder:
    """Build one version's documentation into the publish working copy.

    Parameters
    ----------
    generator
        Collaborator producing the static site.
    installer
        Optional collaborator run once before generation.
    carry_files
        Paths (relative to ``repo_root``) copied into the source copy when
        the checked-out revision lacks them, so older tags can be built
        with the current generator configuration.
    repo_root
        Root of the invoking repository, source of ``carry_files``.
    """

    def __init__(
        self,
        generator: DocumentationGenerator,
        *,
        installer: DependencyInstaller | None = None,
        carry_files: list[str] | None = None,
        repo_root: Path | None = None,
    ):
        self.generator = generator
        self.installer = installer
        self.carry_files = list(carry_files or [])
        self.repo_root = repo_root

    @classmethod
    def from_config(cls, config: PublishConfig, *, repo_root: Path | None = None) -> DocumentationBuilder:
        installer = (
            CommandInstaller(config.install_command, timeout=config.generator_timeout)
            if config.install_command
            else None
        )
        return cls(
            CommandGenerator(config.generator_command, timeout=config.generator_timeout),
            installer=installer,
            carry_files=config.carry_files,
            repo_root=repo_root,
        )

    def output_dir(self, version: VersionLabel, publish: WorkingCopy) -> Path:
        return publish.path / str(version)

    def build(self, source: WorkingCopy, version: VersionLabel, publish: WorkingCopy) -> Path:
        """Generate docs for ``source`` into ``<publish>/<version>/``.

        An existing version directory is reused, not replaced.

        Raises:
            GenerationFailed: If the installer or generator fails.
            EmptyDocumentationOutput: If the directory is empty afterwards.
        """
        output = self.output_dir(version, publish)
        output.mkdir(parents=True, exist_ok=True)
        logger.info("build.output_dir", version=str(version), path=str(output))

        self._carry_over(source.path)

        if self.installer is not None:
            logger.info("build.installing", source=str(source.path))
            self.installer.install(source.path)

        logger.info("build.generating", version=str(version))
        self.generator.generate(source.path, output, version)

        if not any(output.iterdir()):
            raise EmptyDocumentationOutput(str(output))

        logger.info("build.generated", version=str(version), files=sum(1 for _ in output.rglob("*")))
        return output

    def _carry_over(self, source: Path) -> None:
        if not self.carry_files or self.repo_root is None:
            return
        for rel in self.carry_files:
            origin = self.repo_root / rel
            target = source / rel
            if target.exists() or not origin.is_file():
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(origin, target)
            logger.info("build.carried_file", file=rel)


__all__ = [
    "DocumentationGenerator",
    "DependencyInstaller",
    "CommandGenerator",
    "CommandInstaller",
    "DocumentationBuilder",
]
