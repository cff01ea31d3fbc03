"""Immutable, case-insensitive HTTP headers.

Implements ``Mapping[str, str]``. Stores the header pairs exactly as
received; lookups fold case.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping


class Headers(Mapping[str, str]):
    """Immutable, case-insensitive HTTP headers.

    ``__getitem__`` returns the first matching value.
    ``get_list`` returns all values for a header (e.g. multiple ``X-Forwarded-For``).
    """

    __slots__ = ("_raw",)

    def __init__(self, raw: tuple[tuple[str, str], ...] = ()) -> None:
        object.__setattr__(self, "_raw", raw)

    @classmethod
    def of(cls, headers: Mapping[str, str] | Iterable[tuple[str, str]] | None = None) -> Headers:
        """Build headers from a mapping or an iterable of ``(name, value)`` pairs."""
        if headers is None:
            return cls()
        if isinstance(headers, Headers):
            return headers
        if isinstance(headers, Mapping):
            return cls(tuple((str(k), str(v)) for k, v in headers.items()))
        return cls(tuple((str(k), str(v)) for k, v in headers))

    def __getitem__(self, key: str) -> str:
        key_lower = key.lower()
        for name, value in self._raw:
            if name.lower() == key_lower:
                return value
        raise KeyError(key)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        key_lower = key.lower()
        return any(name.lower() == key_lower for name, _ in self._raw)

    def __iter__(self) -> Iterator[str]:
        seen: set[str] = set()
        for name, _ in self._raw:
            key = name.lower()
            if key not in seen:
                seen.add(key)
                yield key

    def __len__(self) -> int:
        return len(set(self))

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {self[k]!r}" for k in self)
        return f"Headers({{{items}}})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        """Return the first value for *key*, or *default* if missing."""
        try:
            return self[key]
        except KeyError:
            return default

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key*."""
        key_lower = key.lower()
        return [value for name, value in self._raw if name.lower() == key_lower]

    @property
    def raw(self) -> tuple[tuple[str, str], ...]:
        """Access the header pairs as received."""
        return self._raw
