"""
Header Multi-Map
Ordered, case-insensitive header collection for proxied requests and responses.
"""

from typing import Iterable, Iterator, List, Optional, Tuple


class Headers:
    """
    Ordered HTTP header multi-map.

    Stored as a sequence of ``(name, [values])`` entries. Lookups are
    case-insensitive; the first-seen casing of a name is kept, and values
    of a multi-valued header keep their original order.
    """

    def __init__(self, pairs: Optional[Iterable[Tuple[str, str]]] = None):
        self._entries: List[Tuple[str, List[str]]] = []
        if pairs:
            for name, value in pairs:
                self.add(name, value)

    def _index(self, name: str) -> int:
        lowered = name.lower()
        for i, (existing, _) in enumerate(self._entries):
            if existing.lower() == lowered:
                return i
        return -1

    def get(self, name: str, default: str = "") -> str:
        """Get the first value of a header, or ``default`` when absent."""
        i = self._index(name)
        if i < 0 or not self._entries[i][1]:
            return default
        return self._entries[i][1][0]

    def get_all(self, name: str) -> List[str]:
        """Get every value of a header, in order."""
        i = self._index(name)
        if i < 0:
            return []
        return list(self._entries[i][1])

    def set(self, name: str, value: str) -> None:
        """Replace all values of a header with a single value."""
        self.set_all(name, [value])

    def set_all(self, name: str, values: List[str]) -> None:
        """Replace all values of a header."""
        i = self._index(name)
        if i < 0:
            self._entries.append((name, list(values)))
        else:
            self._entries[i] = (self._entries[i][0], list(values))

    def add(self, name: str, value: str) -> None:
        """Append a value to a header, creating it if needed."""
        i = self._index(name)
        if i < 0:
            self._entries.append((name, [value]))
        else:
            self._entries[i][1].append(value)

    def delete(self, name: str) -> None:
        """Remove a header and all of its values."""
        i = self._index(name)
        if i >= 0:
            del self._entries[i]

    def names(self) -> List[str]:
        return [name for name, _ in self._entries]

    def items(self) -> Iterator[Tuple[str, List[str]]]:
        """Iterate over ``(name, values)`` entries."""
        for name, values in self._entries:
            yield name, list(values)

    def multi_items(self) -> List[Tuple[str, str]]:
        """Flatten into ``(name, value)`` pairs, one per value."""
        return [(name, value) for name, values in self._entries for value in values]

    def copy(self) -> "Headers":
        return Headers(self.multi_items())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self._index(name) >= 0

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Headers):
            return NotImplemented
        return self.multi_items() == other.multi_items()

    def __repr__(self) -> str:
        return f"Headers({self.multi_items()!r})"
