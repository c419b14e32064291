# gel/match.py
"""Merged match value handed to actions.

A rule body produces a raw value (substring, list, ...) and, through `Tagged`
rules, a tag -> value mapping. Actions see both on one object:

    m[0], len(m), iter(m)   -> positional, delegated to the raw value
    m["left"], m.left       -> tagged sub-results

Attribute access to a tag that was not collected reads as None, so
`if m.left: ...` works for optional branches.
"""

from __future__ import annotations
from typing import Any, Dict, Iterator, Mapping


class Match:
    __slots__ = ("_raw", "_tags")

    def __init__(self, raw: Any, tags: Mapping[str, Any]):
        self._raw = raw
        self._tags = dict(tags)

    @property
    def raw(self) -> Any:
        return self._raw

    @property
    def tags(self) -> Dict[str, Any]:
        return dict(self._tags)

    def get(self, tag: str, default: Any = None) -> Any:
        return self._tags.get(tag, default)

    def keys(self):
        return self._tags.keys()

    def __getattr__(self, name: str) -> Any:
        # only reached when normal lookup fails
        if name.startswith("_"):
            raise AttributeError(name)
        return self._tags.get(name)

    def __getitem__(self, key: Any) -> Any:
        if isinstance(key, str):
            try:
                return self._tags[key]
            except KeyError:
                raise KeyError(f"no tag {key!r} in match") from None
        return self._raw[key]

    def __contains__(self, tag: object) -> bool:
        return tag in self._tags

    def __iter__(self) -> Iterator[Any]:
        return iter(self._raw)

    def __len__(self) -> int:
        return len(self._raw)

    def __str__(self) -> str:
        return str(self._raw)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Match):
            return self._raw == other._raw and self._tags == other._tags
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Match({self._raw!r}, {self._tags!r})"


def merge(raw: Any, tags: Mapping[str, Any]) -> Any:
    """Raw value alone when nothing was tagged, otherwise a Match."""
    if not tags:
        return raw
    return Match(raw, tags)
