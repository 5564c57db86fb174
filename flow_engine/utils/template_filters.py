"""
Filters available in template references: `{{ path | filter | filter:arg }}`.

Every filter takes the current value (and an optional string argument) and
returns the transformed value. Filters never raise; inputs a filter does not
understand are returned unchanged.
"""

import json
import logging
import re
from datetime import date, datetime, time, timezone
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

FilterFunc = Callable[[Any, Optional[str]], Any]

DATE_FORMAT = "%Y-%m-%d"
DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
TIME_FORMAT = "%H:%M:%S"

_PARSE_FORMATS = [
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d",
    "%d-%m-%Y",
    "%m/%d/%Y",
    "%d %B %Y",
    "%B %d, %Y",
    "%H:%M:%S",
    "%H:%M",
]


def stringify(value: Any) -> str:
    """Render a value for interpolation into a larger string."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list, tuple)):
        return to_json(value)
    if isinstance(value, datetime):
        return value.strftime(DATETIME_FORMAT)
    if isinstance(value, date):
        return value.strftime(DATE_FORMAT)
    return str(value)


def to_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)


# String filters


def _upper(value, arg=None):
    return value.upper() if isinstance(value, str) else value


def _lower(value, arg=None):
    return value.lower() if isinstance(value, str) else value


def _ucfirst(value, arg=None):
    if not isinstance(value, str) or not value:
        return value
    return value[0].upper() + value[1:]


def _ucwords(value, arg=None):
    if not isinstance(value, str):
        return value
    # Only the first letter of each word changes, the rest is left as written.
    return re.sub(r"(^|\s)(\S)", lambda m: m.group(1) + m.group(2).upper(), value)


def _trim(value, arg=None):
    return value.strip() if isinstance(value, str) else value


# Structural filters


def _json(value, arg=None):
    return to_json(value)


def _count(value, arg=None):
    if value is None:
        return 0
    if isinstance(value, (list, tuple, dict, str)):
        return len(value)
    return 1


def _first(value, arg=None):
    if isinstance(value, dict):
        value = list(value.values())
    if isinstance(value, (list, tuple, str)):
        return value[0] if value else ""
    return value


def _last(value, arg=None):
    if isinstance(value, dict):
        value = list(value.values())
    if isinstance(value, (list, tuple, str)):
        return value[-1] if value else ""
    return value


def _join(value, arg=None):
    separator = ", " if arg is None else arg
    if isinstance(value, dict):
        value = list(value.values())
    if isinstance(value, (list, tuple)):
        return separator.join(stringify(item) for item in value)
    return value


def _keys(value, arg=None):
    if isinstance(value, dict):
        return list(value.keys())
    if isinstance(value, (list, tuple)):
        return list(range(len(value)))
    return value


def _values(value, arg=None):
    if isinstance(value, dict):
        return list(value.values())
    if isinstance(value, tuple):
        return list(value)
    return value


def _reverse(value, arg=None):
    if isinstance(value, (list, tuple, str)):
        return value[::-1]
    if isinstance(value, dict):
        return dict(reversed(list(value.items())))
    return value


def _sort_key(item: Any):
    if item is None:
        return (0, 0)
    if isinstance(item, (bool, int, float)):
        return (1, item)
    if isinstance(item, str):
        return (2, item)
    return (3, stringify(item))


def _sort(value, arg=None):
    if isinstance(value, (list, tuple)):
        return sorted(value, key=_sort_key)
    if isinstance(value, dict):
        return dict(sorted(value.items(), key=lambda kv: _sort_key(kv[1])))
    return value


def _unique(value, arg=None):
    if isinstance(value, dict):
        seen: List[Any] = []
        result = {}
        for key, item in value.items():
            if item not in seen:
                seen.append(item)
                result[key] = item
        return result
    if isinstance(value, (list, tuple)):
        unique_items: List[Any] = []
        for item in value:
            if item not in unique_items:
                unique_items.append(item)
        return unique_items
    return value


# Temporal filters


def parse_datetime(value: Any) -> Optional[datetime]:
    """Best-effort conversion to datetime. Returns None for anything unparseable."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    if isinstance(value, time):
        return datetime.combine(date(1970, 1, 1), value)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        pass
    for fmt in _PARSE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def _temporal(fmt: str) -> FilterFunc:
    def apply(value, arg=None):
        parsed = parse_datetime(value)
        if parsed is None:
            return ""
        return parsed.strftime(arg or fmt)

    return apply


def _default(value, arg=None):
    return value


FILTERS: Dict[str, FilterFunc] = {
    "upper": _upper,
    "lower": _lower,
    "ucfirst": _ucfirst,
    "ucwords": _ucwords,
    "trim": _trim,
    "json": _json,
    "count": _count,
    "first": _first,
    "last": _last,
    "join": _join,
    "keys": _keys,
    "values": _values,
    "reverse": _reverse,
    "sort": _sort,
    "unique": _unique,
    "date": _temporal(DATE_FORMAT),
    "datetime": _temporal(DATETIME_FORMAT),
    "time": _temporal(TIME_FORMAT),
    "default": _default,
}


def parse_filter(expression: str):
    """Split `join:" - "` into ("join", " - "). Quotes around the argument are optional."""
    name, sep, arg = expression.strip().partition(":")
    if not sep:
        return name.strip(), None
    arg = arg.strip()
    if len(arg) >= 2 and arg[0] == arg[-1] and arg[0] in ("'", '"'):
        arg = arg[1:-1]
    return name.strip(), arg


def apply_filter(value: Any, expression: str) -> Any:
    name, arg = parse_filter(expression)
    func = FILTERS.get(name.lower())
    if func is None:
        logger.debug(f"Unknown template filter '{name}', passing value through")
        return value
    try:
        return func(value, arg)
    except Exception as e:  # filters must never break resolution
        logger.warning(f"Template filter '{name}' failed: {e}")
        return value


def apply_filters(value: Any, expressions: List[str]) -> Any:
    for expression in expressions:
        value = apply_filter(value, expression)
    return value


def register_filter(name: str, func: FilterFunc) -> None:
    """Add or replace a filter by name."""
    FILTERS[name.lower()] = func


__all__ = [
    "FILTERS",
    "apply_filter",
    "apply_filters",
    "parse_datetime",
    "parse_filter",
    "register_filter",
    "stringify",
    "to_json",
]
