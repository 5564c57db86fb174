"""Built-in field conditions."""

import re
from typing import Any

from ...utils.template_filters import stringify
from ..base import ConditionBrick


def _loose_equals(left: Any, right: Any) -> bool:
    if left == right:
        return True
    if isinstance(left, (dict, list)) or isinstance(right, (dict, list)):
        return False
    return stringify(left) == stringify(right)


def _to_number(value: Any):
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            return float(value) if any(c in value for c in ".eE") else int(value)
        except ValueError:
            return None
    return None


class FieldEquals(ConditionBrick):
    """Compare a context field with a value.

    Operators: `==` (loose, compares string forms of scalars), `===` (strict,
    type and value), `!=` and `!==`.
    """

    label = "Field Equals"
    required_fields = ("field",)

    def evaluate(self, context) -> bool:
        actual = context.get(self.config_value("field", ""))
        expected = self.config.get("value")
        operator = self.config_value("operator", "==")

        if operator == "===":
            return type(actual) is type(expected) and actual == expected
        if operator == "!==":
            return not (type(actual) is type(expected) and actual == expected)
        if operator == "!=":
            return not _loose_equals(actual, expected)
        return _loose_equals(actual, expected)


class FieldComparison(ConditionBrick):
    """Numeric comparison: `>`, `>=`, `<`, `<=`. Non-numeric operands evaluate to False."""

    label = "Field Comparison"
    required_fields = ("field", "value")

    OPERATORS = {
        ">": lambda a, b: a > b,
        ">=": lambda a, b: a >= b,
        "<": lambda a, b: a < b,
        "<=": lambda a, b: a <= b,
    }

    def evaluate(self, context) -> bool:
        actual = _to_number(context.get(self.config_value("field", "")))
        expected = _to_number(self.config.get("value"))
        compare = self.OPERATORS.get(self.config_value("operator", ">"))
        if actual is None or expected is None or compare is None:
            return False
        return compare(actual, expected)


class FieldContains(ConditionBrick):
    label = "Field Contains"
    required_fields = ("field",)

    def evaluate(self, context) -> bool:
        haystack = context.get(self.config_value("field", ""))
        needle = self.config.get("needle", self.config.get("value"))
        case_sensitive = bool(self.config_value("case_sensitive", True))

        if isinstance(haystack, (list, tuple)):
            if case_sensitive:
                return needle in haystack
            lowered = stringify(needle).lower()
            return any(stringify(item).lower() == lowered for item in haystack)

        if haystack is None or needle is None:
            return False
        haystack, needle = stringify(haystack), stringify(needle)
        if not case_sensitive:
            haystack, needle = haystack.lower(), needle.lower()
        return needle in haystack


class FieldIsEmpty(ConditionBrick):
    label = "Field Is Empty"
    required_fields = ("field",)

    def evaluate(self, context) -> bool:
        value = context.get(self.config_value("field", ""))
        is_empty = value is None or (isinstance(value, (str, list, tuple, dict)) and not value)
        return not is_empty if self.config_value("invert", False) else is_empty


class FieldMatchesRegex(ConditionBrick):
    """Match a field against a regular expression. `/.../i` style delimiters are accepted."""

    label = "Field Matches Regex"
    required_fields = ("field", "pattern")

    def evaluate(self, context) -> bool:
        value = context.get(self.config_value("field", ""))
        pattern = self.config_value("pattern", "")
        if value is None or not pattern:
            return False
        try:
            return re.search(self._compile(pattern), stringify(value)) is not None
        except re.error as e:
            self.logger.warning(f"Invalid pattern {pattern!r}: {e}")
            return False

    @staticmethod
    def _compile(pattern: str) -> "re.Pattern[str]":
        match = re.fullmatch(r"/(.*)/([imsx]*)", pattern, re.DOTALL)
        if not match:
            return re.compile(pattern)
        flags = 0
        for flag in match.group(2):
            flags |= {"i": re.I, "m": re.M, "s": re.S, "x": re.X}[flag]
        return re.compile(match.group(1), flags)
