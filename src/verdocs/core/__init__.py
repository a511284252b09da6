"""Shared primitives for verdocs: error hierarchy and structured logging."""

from verdocs.core.errors import (
    BranchResolutionFailed,
    CommitFailed,
    ConfigError,
    DependencyInstallFailed,
    EmptyDocumentationOutput,
    ErrorCategory,
    ErrorContext,
    GenerationFailed,
    GitCommandError,
    InvalidVersionFormat,
    PublishInterrupted,
    RefNotFound,
    RepositoryNotFound,
    VerdocsError,
)
from verdocs.core.logging import LogContext, configure_logging, get_logger

__all__ = [
    "BranchResolutionFailed",
    "CommitFailed",
    "ConfigError",
    "DependencyInstallFailed",
    "EmptyDocumentationOutput",
    "ErrorCategory",
    "ErrorContext",
    "GenerationFailed",
    "GitCommandError",
    "InvalidVersionFormat",
    "PublishInterrupted",
    "LogContext",
    "RefNotFound",
    "RepositoryNotFound",
    "VerdocsError",
    "configure_logging",
    "get_logger",
]
