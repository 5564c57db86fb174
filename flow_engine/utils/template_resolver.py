"""
Template Variable Resolver for flow_engine.

Resolves `{{ path }}` and `{{ path | filter | filter }}` references against an
ExecutionContext (or any plain mapping). A string that is exactly one reference
keeps the native type of the resolved value; references embedded in text are
stringified. Resolution never raises.
"""

import logging
import re
from collections.abc import Mapping
from typing import Any, Dict, List, Tuple

from .paths import MISSING, get_path
from .template_filters import apply_filters, stringify

logger = logging.getLogger(__name__)


class TemplateResolver:
    """Resolve template references in brick configuration."""

    # An unclosed "{{" before a reference stays literal text.
    TEMPLATE_RE = re.compile(r"\{\{((?:(?!\{\{).)+?)\}\}")

    @classmethod
    def is_template(cls, value: Any) -> bool:
        """Check if a value contains at least one template reference."""
        return isinstance(value, str) and cls.TEMPLATE_RE.search(value) is not None

    @classmethod
    def resolve(cls, value: Any, context: Any) -> Any:
        """
        Resolve a value that might contain template references.

        Args:
            value: string, dict, list/tuple or scalar
            context: ExecutionContext or a mapping used as the variable namespace

        Returns:
            The resolved value. Non-template scalars are returned as-is.
        """
        if isinstance(value, str):
            return cls._resolve_string(value, context)
        if isinstance(value, dict):
            return cls._resolve_dict(value, context)
        if isinstance(value, list):
            return [cls.resolve(item, context) for item in value]
        if isinstance(value, tuple):
            return tuple(cls.resolve(item, context) for item in value)
        return value

    @classmethod
    def render(cls, template: Any, context: Any) -> str:
        """Resolve and always return a string."""
        return stringify(cls.resolve(template, context))

    @classmethod
    def _resolve_string(cls, template: str, context: Any) -> Any:
        stripped = template.strip()
        matches = list(cls.TEMPLATE_RE.finditer(stripped))
        if len(matches) == 1 and matches[0].span() == (0, len(stripped)):
            value = cls._evaluate(matches[0].group(1), context)
            return None if value is MISSING else value

        if not matches:
            return template

        def replacer(match: "re.Match[str]") -> str:
            value = cls._evaluate(match.group(1), context)
            return "" if value is MISSING else stringify(value)

        return cls.TEMPLATE_RE.sub(replacer, template)

    @classmethod
    def _resolve_dict(cls, data: Dict[Any, Any], context: Any) -> Dict[Any, Any]:
        resolved: Dict[Any, Any] = {}
        for key, value in data.items():
            if isinstance(key, str) and cls.is_template(key):
                new_key = cls._resolve_string(key, context)
                key = new_key if isinstance(new_key, str) else stringify(new_key)
            # Later entries overwrite earlier ones when resolved keys collide.
            resolved[key] = cls.resolve(value, context)
        return resolved

    @classmethod
    def _evaluate(cls, expression: str, context: Any) -> Any:
        path, filters = cls._split_expression(expression)
        value = cls._lookup(context, path)
        if value is MISSING:
            logger.debug(f"Template variable not found: {path}")
            if not filters:
                return MISSING
            value = None
        return apply_filters(value, filters)

    @staticmethod
    def _lookup(context: Any, path: str) -> Any:
        if not path:
            return MISSING
        if isinstance(context, Mapping):
            return get_path(context, path)
        lookup = getattr(context, "lookup", None)
        if lookup is None:
            return MISSING
        return lookup(path)

    @staticmethod
    def _split_expression(expression: str) -> Tuple[str, List[str]]:
        """Split `path | f1 | f2:"a|b"` on pipes that are not inside quotes."""
        parts: List[str] = []
        current = ""
        quote = None
        for char in expression:
            if quote:
                if char == quote:
                    quote = None
                current += char
            elif char in ("'", '"'):
                quote = char
                current += char
            elif char == "|":
                parts.append(current)
                current = ""
            else:
                current += char
        parts.append(current)
        path = parts[0].strip()
        filters = [p.strip() for p in parts[1:] if p.strip()]
        return path, filters

    @classmethod
    def count_templates(cls, value: Any) -> int:
        """Count the number of template references in a value."""
        if isinstance(value, str):
            return len(cls.TEMPLATE_RE.findall(value))
        if isinstance(value, dict):
            return sum(cls.count_templates(k) + cls.count_templates(v) for k, v in value.items())
        if isinstance(value, (list, tuple)):
            return sum(cls.count_templates(item) for item in value)
        return 0


def resolve_config(config: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """Materialize a node's config against `context`."""
    resolved = TemplateResolver.resolve(config or {}, context)
    template_count = TemplateResolver.count_templates(config or {})
    if template_count > 0:
        logger.debug(f"Resolved {template_count} template references in config")
    return resolved


__all__ = ["TemplateResolver", "resolve_config"]
