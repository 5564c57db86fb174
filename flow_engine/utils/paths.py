"""Dotted-path helpers shared by the context and the template resolver."""

from __future__ import annotations

from typing import Any, List, Union

PathPart = Union[str, int]


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


def split_path(path: str) -> List[PathPart]:
    """Split `items[0].id` or `items.0.id` into ["items", 0, "id"].

    Bracketed indices become ints. Plain numeric segments stay strings and are
    interpreted as indices only when the current value is a sequence.
    """
    parts: List[PathPart] = []
    current = ""
    in_bracket = False

    for char in path.strip():
        if char == "[":
            if current:
                parts.append(current)
                current = ""
            in_bracket = True
        elif char == "]":
            if in_bracket and current:
                parts.append(int(current) if current.lstrip("-").isdigit() else current)
                current = ""
            in_bracket = False
        elif char == "." and not in_bracket:
            if current:
                parts.append(current)
                current = ""
        else:
            current += char

    if current:
        parts.append(current)
    return parts


def _step(value: Any, part: PathPart) -> Any:
    if isinstance(value, dict):
        if part in value:
            return value[part]
        if isinstance(part, int) and str(part) in value:
            return value[str(part)]
        return MISSING
    if isinstance(value, (list, tuple)):
        if isinstance(part, str):
            if not part.isdigit():
                return MISSING
            part = int(part)
        if 0 <= part < len(value):
            return value[part]
        return MISSING
    return MISSING


def get_path(data: Any, path: str) -> Any:
    """Walk `path` through nested dicts/lists. Returns MISSING when any segment is absent."""
    if not path or not path.strip():
        return MISSING
    current = data
    for part in split_path(path):
        current = _step(current, part)
        if current is MISSING:
            return MISSING
    return current


def set_path(data: dict, path: str, value: Any) -> None:
    """Assign `value` at `path`, creating intermediate dicts as needed."""
    parts = split_path(path)
    if not parts:
        raise ValueError("Empty path")
    current = data
    for part in parts[:-1]:
        if isinstance(current, list) and isinstance(part, (int, str)) and str(part).isdigit():
            index = int(part)
            if index >= len(current):
                raise IndexError(f"Index {index} out of range in path '{path}'")
            current = current[index]
            continue
        next_value = current.get(part) if isinstance(current, dict) else None
        if not isinstance(next_value, (dict, list)):
            next_value = {}
            current[part] = next_value
        current = next_value
    last = parts[-1]
    if isinstance(current, list) and str(last).isdigit():
        current[int(last)] = value
    else:
        current[last] = value


def delete_path(data: dict, path: str) -> bool:
    """Remove the value at `path`. Returns False when nothing was there."""
    parts = split_path(path)
    if not parts:
        return False
    parent = data
    for part in parts[:-1]:
        parent = _step(parent, part)
        if parent is MISSING:
            return False
    last = parts[-1]
    if isinstance(parent, dict) and last in parent:
        del parent[last]
        return True
    if isinstance(parent, list) and str(last).isdigit() and int(last) < len(parent):
        del parent[int(last)]
        return True
    return False


__all__ = ["MISSING", "split_path", "get_path", "set_path", "delete_path"]
