"""Typed, ordered field accessors over loosely shaped feed JSON."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class FieldAccessor[T]:
    """Reads one dotted path and returns a typed value or None.

    Attributes:
        path: Dotted path, recorded in diagnostics when the accessor wins.
        read: Function returning the typed value for an object, or None.
    """

    path: str
    read: Callable[[object], T | None]

    def __call__(self, obj: object) -> T | None:
        return self.read(obj)


def get_by_path(obj: object, path: str) -> object | None:
    """Walk a dotted path through nested mappings.

    Args:
        obj: Root object.
        path: Dotted path such as ``"payload.gameId"``.

    Returns:
        The value at the path, or None when any segment is missing.
    """

    current = obj
    for part in path.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return None
        current = current[part]
    return current


def _coerce_text(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def text_at(path: str) -> FieldAccessor[str]:
    """Accessor for a non-blank string, stripped."""

    return FieldAccessor(path=path, read=lambda obj: _coerce_text(get_by_path(obj, path)))


def value_at(path: str) -> FieldAccessor[object]:
    """Accessor for any non-null value."""

    return FieldAccessor(path=path, read=lambda obj: get_by_path(obj, path))


def text_accessors(paths: Iterable[str]) -> tuple[FieldAccessor[str], ...]:
    return tuple(text_at(path) for path in paths)


def first_match[T](
    obj: object,
    accessors: Iterable[FieldAccessor[T]],
) -> tuple[T, str] | None:
    """Return the first accessor value found, with the winning path.

    Args:
        obj: Object to read from.
        accessors: Accessors in priority order.

    Returns:
        Tuple of value and path, or None when nothing matched.
    """

    for accessor in accessors:
        value = accessor(obj)
        if value is not None:
            return value, accessor.path
    return None


def first_value[T](obj: object, accessors: Iterable[FieldAccessor[T]]) -> T | None:
    match = first_match(obj, accessors)
    return None if match is None else match[0]
