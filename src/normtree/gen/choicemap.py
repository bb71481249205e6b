"""Hierarchical choice maps.

A choice map records random choices by address. Each level maps keys either
to a value or to a nested choice map; a full address is the tuple of keys
leading to a value. Keys may themselves be tuples (e.g. ``(3, "node_type")``),
so navigation is always explicit: a *path* is a tuple of keys.
"""

from __future__ import annotations

from typing import Any, Hashable, Iterator, Mapping

Path = tuple[Hashable, ...]


class ChoiceMap:
    def __init__(self) -> None:
        self._values: dict[Hashable, Any] = {}
        self._submaps: dict[Hashable, ChoiceMap] = {}

    @staticmethod
    def from_flat(entries: Mapping[Path, Any]) -> ChoiceMap:
        cm = ChoiceMap()
        for path, value in entries.items():
            cm.set_value(path, value)
        return cm

    @staticmethod
    def of(**values: Any) -> ChoiceMap:
        """Build a single-level choice map from keyword arguments."""

        cm = ChoiceMap()
        for key, value in values.items():
            cm[key] = value
        return cm

    # --- single level -------------------------------------------------------
    def __getitem__(self, key: Hashable) -> Any:
        return self._values[key]

    def __setitem__(self, key: Hashable, value: Any) -> None:
        if key in self._submaps:
            raise KeyError(f"Address {key!r} already holds a submap")
        self._values[key] = value

    def __contains__(self, key: object) -> bool:
        return key in self._values or key in self._submaps

    def get_submap(self, key: Hashable) -> ChoiceMap:
        """Return the submap at ``key``, or an empty map if there is none."""

        return self._submaps.get(key) or ChoiceMap()

    def set_submap(self, key: Hashable, submap: ChoiceMap) -> None:
        if key in self._values:
            raise KeyError(f"Address {key!r} already holds a value")
        if submap.is_empty():
            self._submaps.pop(key, None)
        else:
            self._submaps[key] = submap.copy()

    def values(self) -> Iterator[tuple[Hashable, Any]]:
        yield from self._values.items()

    def submaps(self) -> Iterator[tuple[Hashable, ChoiceMap]]:
        yield from self._submaps.items()

    # --- paths --------------------------------------------------------------
    def _walk(self, prefix: Path, create: bool) -> ChoiceMap | None:
        cm: ChoiceMap | None = self
        for key in prefix:
            assert cm is not None
            if key not in cm._submaps:
                if not create:
                    return None
                if key in cm._values:
                    raise KeyError(f"Address {key!r} already holds a value")
                cm._submaps[key] = ChoiceMap()
            cm = cm._submaps[key]
        return cm

    def has_value(self, path: Path) -> bool:
        cm = self._walk(path[:-1], create=False)
        return cm is not None and path[-1] in cm._values

    def get_value(self, path: Path) -> Any:
        cm = self._walk(path[:-1], create=False)
        if cm is None or path[-1] not in cm._values:
            raise KeyError(f"No value at address {path!r}")
        return cm._values[path[-1]]

    def set_value(self, path: Path, value: Any) -> None:
        cm = self._walk(path[:-1], create=True)
        assert cm is not None
        cm[path[-1]] = value

    def flatten(self, prefix: Path = ()) -> dict[Path, Any]:
        """Return every value keyed by its full path; at each level values come before submaps."""

        out: dict[Path, Any] = {prefix + (k,): v for k, v in self._values.items()}
        for key, sub in self._submaps.items():
            out.update(sub.flatten(prefix + (key,)))
        return out

    # --- misc ---------------------------------------------------------------
    def is_empty(self) -> bool:
        return not self._values and all(s.is_empty() for s in self._submaps.values())

    def copy(self) -> ChoiceMap:
        return ChoiceMap.from_flat(self.flatten())

    def __len__(self) -> int:
        return len(self._values) + sum(len(s) for s in self._submaps.values())

    def __iter__(self) -> Iterator[tuple[Path, Any]]:
        return iter(self.flatten().items())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ChoiceMap):
            return NotImplemented
        return self.flatten() == other.flatten()

    def __repr__(self) -> str:
        items = ", ".join(f"{p!r}: {v!r}" for p, v in self.flatten().items())
        return f"ChoiceMap({{{items}}})"


__all__ = ["ChoiceMap", "Path"]
