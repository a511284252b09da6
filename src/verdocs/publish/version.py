"""Version labels for published documentation sets.

Stability: stable
Since: 0.1.0
Dependencies: stdlib-only
Doc-Types: API_REFERENCE, TECHNICAL_DESIGN
Tags: version, semver, ordering

A tag such as ``release-1.2.3`` or ``v2.0.0-rc.1`` is reduced to the
semantic version it ends with and re-prefixed with ``v``; that canonical
string names the version directory on the publish branch. Ordering follows
semantic-version precedence, never text sort, so ``v1.10.0`` sorts above
``v1.9.0`` and ``v2.0.0-rc.1`` below ``v2.0.0``.

Usage::

    from verdocs.publish.version import VersionLabel, parse_tag, is_latest

    label = parse_tag("release-1.2.3")      # VersionLabel('v1.2.3')
    latest = max(labels)
    if is_latest(label, labels):
        ...
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from functools import total_ordering

from verdocs.core.errors import InvalidVersionFormat

# Semantic version at the end of the tag; anything before it is a prefix.
# Build metadata (``+build.7``) is matched but not kept.
_TAG_RE = re.compile(r"(\d+)\.(\d+)\.(\d+)(?:-([0-9A-Za-z.-]+))?(?:\+[0-9A-Za-z.-]+)?$")

# Canonical directory names only.
_LABEL_RE = re.compile(r"^v(\d+)\.(\d+)\.(\d+)(?:-([0-9A-Za-z.-]+))?$")


def _identifier_key(identifier: str) -> tuple[int, int, str]:
    # Numeric identifiers sort before alphanumeric ones.
    if identifier.isdigit():
        return (0, int(identifier), identifier)
    return (1, 0, identifier)


@total_ordering
@dataclass(frozen=True)
class VersionLabel:
    """Canonical, totally ordered identifier of one published version.

    Equality is equality of the canonical string; ordering is
    semantic-version precedence.

    Examples:
        >>> VersionLabel(1, 2, 3)
        VersionLabel('v1.2.3')
        >>> VersionLabel(2, 0, 0, "rc.1") < VersionLabel(2, 0, 0)
        True
    """

    major: int
    minor: int
    patch: int
    prerelease: str | None = None

    def __str__(self) -> str:
        core = f"v{self.major}.{self.minor}.{self.patch}"
        return f"{core}-{self.prerelease}" if self.prerelease else core

    def __repr__(self) -> str:
        return f"VersionLabel({str(self)!r})"

    @property
    def number(self) -> str:
        """The label without its ``v`` prefix (``1.2.3-rc.1``)."""
        return str(self)[1:]

    @property
    def is_prerelease(self) -> bool:
        return self.prerelease is not None

    def sort_key(self) -> tuple:
        """Key implementing semantic-version precedence.

        A release sorts after every prerelease of the same core version;
        prerelease identifiers compare pairwise, and a shorter identifier
        list sorts first when all shared identifiers are equal.
        """
        if self.prerelease is None:
            pre: tuple = (1,)
        else:
            pre = (0, tuple(_identifier_key(part) for part in self.prerelease.split(".")))
        return (self.major, self.minor, self.patch, pre)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, VersionLabel):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    @classmethod
    def parse(cls, name: str) -> VersionLabel:
        """Parse a canonical label (``v1.2.3`` / ``v1.2.3-rc.1``).

        Only names that are exactly canonical are accepted, so ``v01.2.3``
        and ``1.2.3`` are rejected here even though ``parse_tag`` would
        normalize them.

        Raises:
            InvalidVersionFormat: If ``name`` is not a canonical label.
        """
        match = _LABEL_RE.match(name)
        if match is None:
            raise InvalidVersionFormat(name, f"Not a canonical version label: {name!r}")
        label = cls._from_match(match)
        if str(label) != name:
            raise InvalidVersionFormat(name, f"Not a canonical version label: {name!r}")
        return label

    @classmethod
    def _from_match(cls, match: re.Match[str]) -> VersionLabel:
        major, minor, patch, prerelease = match.groups()
        return cls(int(major), int(minor), int(patch), prerelease or None)


def parse_tag(raw: str) -> VersionLabel:
    """Derive the canonical label from a raw tag.

    The tag must end in ``MAJOR.MINOR.PATCH[-PRERELEASE][+BUILD]``; any
    prefix before that is discarded, and so is build metadata, which has
    no bearing on precedence.

    Examples:
        >>> str(parse_tag("1.2.3"))
        'v1.2.3'
        >>> str(parse_tag("release-2.0.0-rc.1"))
        'v2.0.0-rc.1'
        >>> str(parse_tag("v1.4.0+build.7"))
        'v1.4.0'

    Raises:
        InvalidVersionFormat: If no semantic version ends the tag.
    """
    match = _TAG_RE.search(raw.strip())
    if match is None:
        raise InvalidVersionFormat(raw)
    return VersionLabel._from_match(match)


def try_parse_label(name: str) -> VersionLabel | None:
    """Return the label for a canonical directory name, or None."""
    try:
        return VersionLabel.parse(name)
    except InvalidVersionFormat:
        return None


def sort_labels(labels: Iterable[VersionLabel], *, descending: bool = False) -> list[VersionLabel]:
    """Sort labels by semantic-version precedence."""
    return sorted(labels, reverse=descending)


def latest_of(labels: Iterable[VersionLabel]) -> VersionLabel | None:
    """Highest label, or None for an empty collection."""
    return max(labels, default=None)


def is_latest(built: VersionLabel, labels: Iterable[VersionLabel]) -> bool:
    """True when ``built`` is the maximum of ``labels`` (plus itself)."""
    latest = latest_of([built, *labels])
    return latest == built


__all__ = [
    "VersionLabel",
    "parse_tag",
    "try_parse_label",
    "sort_labels",
    "latest_of",
    "is_latest",
]
