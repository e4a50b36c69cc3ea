"""Ordered label sets for alert identity and annotations."""

import json
from collections.abc import Iterable, Iterator, Mapping


class LabelSet:
    """Ordered sequence of (name, value) pairs.

    Pairs keep the order they were given in. Names are not required to be
    unique; lookups return the first match.
    """

    __slots__ = ("_pairs",)

    def __init__(self, pairs: Iterable[tuple[str, str]] = ()):
        self._pairs: tuple[tuple[str, str], ...] = tuple(
            (str(name), str(value)) for name, value in pairs
        )

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, str] | None) -> "LabelSet":
        """Build a label set from a decoded JSON object, ordered by name."""
        if not mapping:
            return cls()
        return cls(sorted(mapping.items(), key=lambda item: item[0]))

    def get(self, name: str, default: str | None = None) -> str | None:
        """Return the value of the first pair called ``name``."""
        for label_name, value in self._pairs:
            if label_name == name:
                return value
        return default

    def canonical(self) -> str:
        """Serialize as ``{name="value", ...}`` in stored order."""
        body = ", ".join(
            f"{name}={json.dumps(value, ensure_ascii=False)}" for name, value in self._pairs
        )
        return "{" + body + "}"

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(self._pairs)

    def __len__(self) -> int:
        return len(self._pairs)

    def __bool__(self) -> bool:
        return bool(self._pairs)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LabelSet):
            return NotImplemented
        return self.canonical() == other.canonical()

    def __hash__(self) -> int:
        return hash(self.canonical())

    def __str__(self) -> str:
        return self.canonical()

    def __repr__(self) -> str:
        return f"LabelSet({self.canonical()})"
