"""Utility helpers: dotted paths and template resolution."""

from .paths import MISSING, delete_path, get_path, set_path, split_path
from .template_filters import apply_filters, register_filter, stringify
from .template_resolver import TemplateResolver, resolve_config

__all__ = [
    "MISSING",
    "TemplateResolver",
    "apply_filters",
    "delete_path",
    "get_path",
    "register_filter",
    "resolve_config",
    "set_path",
    "split_path",
    "stringify",
]
