"""Resolve configured matchers into uniform predicates.

Every matcher, whatever its kind, becomes a ``(text, index, row) -> bool``
callable once, at setup time, so the header search and sheet selection never
branch on matcher kinds per cell.
"""

from __future__ import annotations

from ingestkit_sheets.models import Matcher, MatcherKind, MatchPredicate


def resolve_matcher(matcher: Matcher | None, default_text: str) -> MatchPredicate:
    """Build the predicate for *matcher*.

    Parameters
    ----------
    matcher:
        The configured matcher, or ``None`` to match *default_text*
        exactly (the field or sheet key).
    default_text:
        Text used when no matcher was configured.

    Returns
    -------
    MatchPredicate
        Called with the stringified candidate, its index, and the full
        stringified row (or list of sheet names).
    """
    if matcher is None:
        matcher = Matcher.exact(default_text)

    if matcher.kind is MatcherKind.EXACT:
        text = matcher.text

        def _exact(candidate: str, index: int, row: list[str]) -> bool:
            return candidate == text

        return _exact

    if matcher.kind is MatcherKind.PATTERN:
        pattern = matcher.pattern
        assert pattern is not None

        def _pattern(candidate: str, index: int, row: list[str]) -> bool:
            return pattern.search(candidate) is not None

        return _pattern

    predicate = matcher.predicate
    assert predicate is not None

    def _predicate(candidate: str, index: int, row: list[str]) -> bool:
        return bool(predicate(candidate, index, row))

    return _predicate


def first_match(predicate: MatchPredicate, candidates: list[str]) -> int:
    """Return the index of the first candidate satisfying *predicate*, or -1."""
    for index, candidate in enumerate(candidates):
        if predicate(candidate, index, candidates):
            return index
    return -1
