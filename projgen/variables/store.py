"""The run-wide mapping of variable names to values."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any

Value = bool | str


def _check_scalar(name: str, value: Any) -> None:
    if not isinstance(value, (bool, str)):
        raise TypeError(
            f"Variable `{name}` must be a bool or a string, got {type(value).__name__}"
        )


def kind_name(value: Value) -> str:
    return "bool" if isinstance(value, bool) else "string"


class VariableStore:
    """Insertion-ordered ``name -> bool | str`` mapping.

    The store is the only mutable state shared by the resolver, the hook
    scripts and the tree walker.  A name never changes kind once set.
    """

    def __init__(self, initial: Mapping[str, Value] | None = None) -> None:
        self._values: dict[str, Value] = {}
        for name, value in (initial or {}).items():
            self.set(name, value)

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __getitem__(self, name: str) -> Value:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"VariableStore({self._values!r})"

    def get(self, name: str, default: Value | None = None) -> Value | None:
        return self._values.get(name, default)

    def insert(self, name: str, value: Value) -> bool:
        """Set *name* only if it has no value yet; return whether it was set.

        Lower-precedence sources use this so they never overwrite a value a
        higher-precedence source already provided.
        """
        _check_scalar(name, value)
        if name in self._values:
            return False
        self._values[name] = value
        return True

    def set(self, name: str, value: Value) -> None:
        """Overwrite *name*.

        Raises:
            TypeError: If *value* is not a scalar, or if *name* already
                holds a value of the other kind.
        """
        _check_scalar(name, value)
        current = self._values.get(name)
        if current is not None and kind_name(current) != kind_name(value):
            raise TypeError(
                f"Variable `{name}` holds a {kind_name(current)}; "
                f"cannot set it to a {kind_name(value)}"
            )
        self._values[name] = value

    def normalize(self, name: str, value: Value) -> None:
        """Replace *name* with *value* even if the kind changes.

        Only for converting a value to the kind its placeholder declares,
        e.g. the string ``"false"`` a hook set on a bool placeholder.
        """
        _check_scalar(name, value)
        self._values[name] = value

    def update(self, other: VariableStore) -> None:
        """Copy every value of *other* into this store (same kind rules as ``set``)."""
        for name in other:
            self.set(name, other[name])

    def copy(self) -> VariableStore:
        return VariableStore(self._values)

    def bindings(self) -> dict[str, Value]:
        """A plain dict snapshot, suitable as a render or expression context."""
        return dict(self._values)
