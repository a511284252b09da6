"""
Structured error types for verdocs.

Every failure a publish run can hit is a ``VerdocsError`` subclass carrying
a category, the stage it happened in and whatever structured context the
raising code knew about (ref, branch, path, command, exit code). The CLI
turns any of them into a one-line diagnostic and exit code 1.

Nothing in verdocs is retried automatically: ``retryable`` is kept on the
base class so callers (CI wrappers) can make their own decision, but every
built-in error defaults to ``False``.

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                        VerdocsError                           │
        │        (category, retryable, context, cause)                  │
        ├──────────────────────────────────────────────────────────────┤
        │  InvalidVersionFormat   GitCommandError       GenerationFailed │
        │  (VALIDATION)           (VCS)                 (GENERATION)     │
        │                         RefNotFound           DependencyInstall│
        │  ConfigError            BranchResolution      EmptyDocument-   │
        │  RepositoryNotFound     CommitFailed          ationOutput      │
        │  (CONFIG)               (VCS)                 (GENERATION)     │
        │                                                                │
        │  PublishInterrupted (INTERNAL): SIGTERM during a run           │
        └──────────────────────────────────────────────────────────────┘

Examples:
    >>> err = InvalidVersionFormat("release-candidate")
    >>> err.category
    <ErrorCategory.VALIDATION: 'VALIDATION'>
    >>> err.with_context(stage="version").context.stage
    'version'

Tags:
    error-handling, exception-hierarchy, error-context, verdocs
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error categories used for reporting and exit diagnostics."""

    VALIDATION = "VALIDATION"  # Bad user input (tag, config values)
    VCS = "VCS"  # git backend failures
    GENERATION = "GENERATION"  # Documentation generator / installer
    CONFIG = "CONFIG"  # Missing repository, unreadable config file
    INTERNAL = "INTERNAL"  # Bugs, unexpected state


@dataclass
class ErrorContext:
    """Structured metadata attached to an error.

    Attributes:
        stage: Publish stage that failed (``version``, ``workspace``, ...)
        ref: Git ref involved, if any
        branch: Publish branch name
        path: Filesystem path involved
        command: Command line that was executed
        returncode: Exit status of ``command``
        metadata: Additional key-value pairs
    """

    stage: str | None = None
    ref: str | None = None
    branch: str | None = None
    path: str | None = None
    command: str | None = None
    returncode: int | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["stage", "ref", "branch", "path", "command", "returncode"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class VerdocsError(Exception):
    """
    Base exception for all verdocs errors.

    Subclasses set ``default_category`` (and, if ever needed,
    ``default_retryable``) so raising code only passes the message and
    the context it has.

    Examples:
        >>> error = VerdocsError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.to_dict()["retryable"]
        False
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    @property
    def stage(self) -> str | None:
        return self.context.stage

    def with_context(self, **kwargs: Any) -> VerdocsError:
        """
        Add context to this error (fluent API).

        Usage:
            raise RefNotFound("v9.9.9").with_context(stage="workspace")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class InvalidVersionFormat(VerdocsError):
    """The tag does not end in a ``MAJOR.MINOR.PATCH[-PRERELEASE]`` version."""

    default_category = ErrorCategory.VALIDATION

    def __init__(self, raw: str, message: str | None = None, **kwargs: Any):
        self.raw = raw
        super().__init__(
            message
            or f"Tag {raw!r} does not contain a valid semantic version "
            "(expected MAJOR.MINOR.PATCH[-PRERELEASE], e.g. 1.2.3 or v2.0.0-rc.1)",
            **kwargs,
        )


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(VerdocsError):
    """
    Configuration error.
    Never retryable - configuration must be fixed.
    """

    default_category = ErrorCategory.CONFIG


class RepositoryNotFound(ConfigError):
    """No git repository encloses the requested path."""

    def __init__(self, path: str, message: str | None = None, **kwargs: Any):
        self.path = path
        super().__init__(message or f"Not inside a git repository: {path}", **kwargs)
        self.context.path = path


# =============================================================================
# VERSION CONTROL ERRORS
# =============================================================================


class GitCommandError(VerdocsError):
    """A ``git`` invocation exited non-zero (or could not be started)."""

    default_category = ErrorCategory.VCS

    def __init__(
        self,
        message: str,
        *,
        command: list[str] | None = None,
        returncode: int | None = None,
        stderr: str = "",
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.command = command or []
        self.returncode = returncode
        self.stderr = stderr
        if command:
            self.context.command = " ".join(command)
        if returncode is not None:
            self.context.returncode = returncode


class RefNotFound(VerdocsError):
    """The requested source ref does not resolve to a commit."""

    default_category = ErrorCategory.VCS

    def __init__(self, ref: str, message: str | None = None, **kwargs: Any):
        self.ref = ref
        super().__init__(message or f"Ref not found: {ref}", **kwargs)
        self.context.ref = ref


class BranchResolutionFailed(VerdocsError):
    """The publish branch could not be checked out, tracked or created."""

    default_category = ErrorCategory.VCS

    def __init__(self, branch: str, message: str | None = None, **kwargs: Any):
        self.branch = branch
        super().__init__(message or f"Could not resolve publish branch {branch!r}", **kwargs)
        self.context.branch = branch


class CommitFailed(VerdocsError):
    """Staging or committing the publish working copy failed."""

    default_category = ErrorCategory.VCS


# =============================================================================
# GENERATION ERRORS
# =============================================================================


class GenerationFailed(VerdocsError):
    """The documentation generator reported a failure."""

    default_category = ErrorCategory.GENERATION


class DependencyInstallFailed(GenerationFailed):
    """The dependency installer run before generation failed."""


class EmptyDocumentationOutput(VerdocsError):
    """The generator succeeded but left the version directory empty."""

    default_category = ErrorCategory.GENERATION

    def __init__(self, path: str, message: str | None = None, **kwargs: Any):
        self.path = path
        super().__init__(message or f"Documentation was not generated at {path}", **kwargs)
        self.context.path = path


# =============================================================================
# RUN CONTROL
# =============================================================================


class PublishInterrupted(VerdocsError):
    """The run received a termination signal; working copies are still released."""

    default_category = ErrorCategory.INTERNAL

    def __init__(self, signum: int, message: str | None = None, **kwargs: Any):
        self.signum = signum
        super().__init__(message or f"Publish run interrupted by signal {signum}", **kwargs)


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "VerdocsError",
    "InvalidVersionFormat",
    "ConfigError",
    "RepositoryNotFound",
    "GitCommandError",
    "RefNotFound",
    "BranchResolutionFailed",
    "CommitFailed",
    "GenerationFailed",
    "DependencyInstallFailed",
    "EmptyDocumentationOutput",
    "PublishInterrupted",
]
