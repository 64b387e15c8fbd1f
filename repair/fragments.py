"""
Fix fragments: location-keyed sets of code replacements.

A FixFragment is one candidate patch. It maps source spans of the original
program to replacement text, and it keeps its entries in insertion order
because merging is order-sensitive: earlier entries win over later entries
that fall inside them.

A plain dict would lose the sub-span semantics, so the fragment is an
ordered association list with an overlap-aware insert.
"""

from __future__ import annotations

from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional, Tuple

from repair.locations import SourceSpan

Entry = Tuple[SourceSpan, str]


def contains(outer: SourceSpan, inner: SourceSpan) -> bool:
    """Containment predicate used by merging: is ``inner`` a sub-span of ``outer``?"""
    return inner.is_subspan_of(outer)


class FixFragment:
    """Immutable ordered mapping from SourceSpan to replacement text."""

    __slots__ = ("_entries",)

    def __init__(self, entries: Optional[Iterable[Entry]] = None) -> None:
        kept: List[Entry] = []
        seen = set()
        for span, replacement in entries or ():
            if span in seen:
                raise ValueError(f"Location {span} is replaced more than once")
            seen.add(span)
            kept.append((span, replacement))
        self._entries: Tuple[Entry, ...] = tuple(kept)

    @classmethod
    def single(cls, span: SourceSpan, replacement: str) -> "FixFragment":
        return cls([(span, replacement)])

    @classmethod
    def from_pairs(cls, pairs: Dict[str, str]) -> "FixFragment":
        """Build from ``{"L:C-L:C": replacement}``, the format produced by ``to_dict``."""
        return cls((SourceSpan.from_string(key), value) for key, value in pairs.items())

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Entry]:
        return iter(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FixFragment):
            return NotImplemented
        return self._entries == other._entries

    def __hash__(self) -> int:
        return hash(self._entries)

    def __repr__(self) -> str:
        body = ", ".join(f"{span}: {text!r}" for span, text in self._entries)
        return f"FixFragment({{{body}}})"

    def items(self) -> List[Entry]:
        return list(self._entries)

    def keys(self) -> List[SourceSpan]:
        return [span for span, _ in self._entries]

    def key_set(self) -> FrozenSet[SourceSpan]:
        """Identity used for deduplication: the touched locations, regardless of replacement text."""
        return frozenset(span for span, _ in self._entries)

    def get(self, span: SourceSpan, default: Optional[str] = None) -> Optional[str]:
        for key, value in self._entries:
            if key == span:
                return value
        return default

    def covers(self, span: SourceSpan) -> bool:
        """True if ``span`` falls inside any location this fragment already replaces."""
        return any(contains(key, span) for key, _ in self._entries)

    def insert_if_no_overlap(self, span: SourceSpan, replacement: str) -> "FixFragment":
        """Return a fragment with the entry appended, unless ``span`` is already covered."""
        if self.covers(span):
            return self
        return FixFragment(self._entries + ((span, replacement),))

    def merge(self, secondary: "FixFragment") -> "FixFragment":
        return merge(self, secondary)

    def to_dict(self) -> Dict[str, str]:
        return {span.to_string(): text for span, text in self._entries}


def merge(primary: FixFragment, secondary: FixFragment) -> FixFragment:
    """
    Merge two fragments, biased towards ``primary``.

    Every entry of ``primary`` is kept as-is. Entries of ``secondary`` whose
    location lies within a location kept from ``primary`` are dropped; the
    rest are appended in ``secondary``'s order. Not symmetric: callers pass
    the fitter parent first.
    """
    if not secondary:
        return primary
    if not primary:
        return secondary

    kept = list(primary)
    for span, replacement in secondary:
        if any(contains(key, span) for key, _ in primary):
            continue
        kept.append((span, replacement))
    return FixFragment(kept)
