"""
Revision identifiers for upstream branches.

A revision identifier is a branch label of the form ``<prefix><integer>``,
for example ``w1-26``. Identifiers are ordered by their integer suffix, and
the label is kept verbatim so it can be used to address the branch.
"""

from __future__ import annotations

import functools
import re
from collections.abc import Iterable
from dataclasses import dataclass

from branchsync.core.errors import AmbiguousRevision, NoCandidateFound


def _pattern(prefix: str, anchored: bool) -> re.Pattern[str]:
    body = rf"{re.escape(prefix)}(\d+)"
    return re.compile(rf"^{body}$" if anchored else body)


@functools.total_ordering
@dataclass(frozen=True, eq=True)
class RevisionId:
    """
    A ``<prefix><integer>`` branch label ordered by its number.

    Example:
        >>> RevisionId.parse("w1-26", "w1-")
        RevisionId(prefix='w1-', number=26, label='w1-26')
        >>> RevisionId.parse("w1-9", "w1-") < RevisionId.parse("w1-24", "w1-")
        True
    """

    prefix: str
    number: int
    label: str

    @classmethod
    def parse(cls, label: str, prefix: str) -> RevisionId:
        """
        Parse a label strictly.

        Raises:
            ValueError: If the label is not exactly ``<prefix><digits>``.
        """
        match = _pattern(prefix, anchored=True).fullmatch(label)
        if match is None:
            raise ValueError(f"Not a '{prefix}<number>' revision: {label!r}")
        return cls(prefix=prefix, number=int(match.group(1)), label=label)

    @classmethod
    def try_parse(cls, label: str, prefix: str) -> RevisionId | None:
        """Parse a label, returning None when it does not match."""
        try:
            return cls.parse(label, prefix)
        except ValueError:
            return None

    @classmethod
    def search(cls, text: str, prefix: str) -> RevisionId | None:
        """
        Find the first revision embedded in free text (e.g. a commit message).

        Returns:
            The first match, or None if the text contains no revision.
        """
        match = _pattern(prefix, anchored=False).search(text)
        if match is None:
            return None
        return cls(prefix=prefix, number=int(match.group(1)), label=match.group(0))

    def format(self) -> str:
        return self.label

    def __str__(self) -> str:
        return self.label

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, RevisionId):
            return NotImplemented
        return (self.number, self.label) < (other.number, other.label)


def sorted_revisions(labels: Iterable[str], prefix: str) -> list[RevisionId]:
    """Parse the matching labels and return them in ascending order."""
    parsed = (RevisionId.try_parse(label, prefix) for label in labels)
    return sorted(rev for rev in parsed if rev is not None)


def select_latest(labels: Iterable[str], prefix: str, remote: str | None = None) -> RevisionId:
    """
    Select the highest-numbered revision among branch labels.

    Labels that do not match ``<prefix><integer>`` are ignored. The result
    does not depend on the order of ``labels``.

    Raises:
        NoCandidateFound: If no label matches.
        AmbiguousRevision: If more than one label carries the highest number.
    """
    candidates = sorted_revisions(set(labels), prefix)
    if not candidates:
        raise NoCandidateFound(prefix, remote)

    latest = candidates[-1]
    tied = [rev.label for rev in candidates if rev.number == latest.number]
    if len(tied) > 1:
        raise AmbiguousRevision(latest.number, tied)

    return latest
