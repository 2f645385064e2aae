"""Ordered, case-insensitive, multi-valued request headers."""

from __future__ import annotations

from typing import Iterable, Iterator, Mapping


class RequestHeaders(Mapping[str, tuple[str, ...]]):
    """
    Immutable header multimap.

    Names are stored lower-cased in first-seen order; each maps to the tuple
    of values in the order they appeared on the wire.
    """

    __slots__ = ("_values", "_pairs")

    def __init__(self, pairs: Iterable[tuple[str, str]] = ()):
        values: dict[str, list[str]] = {}
        flat: list[tuple[str, str]] = []
        for name, value in pairs:
            key = name.lower()
            values.setdefault(key, []).append(value)
            flat.append((key, value))
        self._values: dict[str, tuple[str, ...]] = {k: tuple(v) for k, v in values.items()}
        self._pairs: tuple[tuple[str, str], ...] = tuple(flat)

    def __getitem__(self, name: str) -> tuple[str, ...]:
        return self._values[name.lower()]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, RequestHeaders):
            return self._pairs == other._pairs
        return super().__eq__(other)

    def __hash__(self) -> int:
        return hash(self._pairs)

    def __repr__(self) -> str:
        return f"RequestHeaders({list(self._pairs)!r})"

    def first(self, name: str, default: str | None = None) -> str | None:
        """Return the first value for `name`, or `default` if absent."""
        values = self._values.get(name.lower())
        return values[0] if values else default

    def get_all(self, name: str) -> tuple[str, ...]:
        return self._values.get(name.lower(), ())

    def items_flat(self) -> tuple[tuple[str, str], ...]:
        """All (name, value) pairs in wire order, names lower-cased."""
        return self._pairs
