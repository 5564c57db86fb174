"""
Brick registry.

Maps opaque brick refs to factories. A factory is a brick class or any
callable taking the resolved config and returning a brick instance.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from ..core.exceptions import BrickNotFoundError, DefinitionError
from ..core.graph import NodeKind

logger = logging.getLogger(__name__)

BrickFactory = Callable[[Dict[str, Any]], Any]


class BrickRegistry:
    """Registry of brick factories keyed by (kind, ref)."""

    def __init__(self) -> None:
        self._factories: Dict[Tuple[NodeKind, str], BrickFactory] = {}

    def register(
        self,
        ref: str,
        factory: BrickFactory,
        kind: Optional[Union[NodeKind, str]] = None,
    ) -> None:
        """Register a factory. `kind` defaults to the factory's `kind` attribute."""
        kind = kind if kind is not None else getattr(factory, "kind", None)
        if kind is None:
            raise DefinitionError(f"Cannot infer brick kind for '{ref}', pass kind explicitly")
        kind = NodeKind(kind)
        key = (kind, ref)
        if key in self._factories:
            logger.warning(f"Replacing brick factory for {kind.value}:{ref}")
        self._factories[key] = factory
        logger.debug(f"Registered brick {kind.value}:{ref}")

    def brick(self, ref: str, kind: Optional[Union[NodeKind, str]] = None):
        """Class decorator form of register()."""

        def decorator(factory):
            self.register(ref, factory, kind)
            return factory

        return decorator

    def unregister(self, ref: str, kind: Union[NodeKind, str]) -> None:
        self._factories.pop((NodeKind(kind), ref), None)

    def factory(self, kind: Union[NodeKind, str], ref: str) -> Optional[BrickFactory]:
        return self._factories.get((NodeKind(kind), ref))

    def has(self, kind: Union[NodeKind, str], ref: str) -> bool:
        return (NodeKind(kind), ref) in self._factories

    def resolve(self, kind: Union[NodeKind, str], ref: str, config: Optional[Dict[str, Any]] = None):
        """Instantiate the brick registered as `ref` for `kind`."""
        kind = NodeKind(kind)
        factory = self._factories.get((kind, ref))
        if factory is None:
            other_kinds = [k.value for (k, r) in self._factories if r == ref]
            if other_kinds:
                raise DefinitionError(
                    f"Brick '{ref}' is registered as {', '.join(other_kinds)}, not {kind.value}"
                )
            raise BrickNotFoundError(f"Unknown {kind.value} brick: '{ref}'")
        try:
            return factory(dict(config or {}))
        except DefinitionError:
            raise
        except Exception as e:
            raise DefinitionError(f"Failed to build brick '{ref}': {e}") from e

    def refs(self, kind: Optional[Union[NodeKind, str]] = None) -> List[str]:
        if kind is None:
            return sorted({ref for (_, ref) in self._factories})
        kind = NodeKind(kind)
        return sorted(ref for (k, ref) in self._factories if k == kind)

    def describe(self) -> Dict[str, List[str]]:
        """Registered refs grouped by kind."""
        return {kind.value: self.refs(kind) for kind in NodeKind}

    def __len__(self) -> int:
        return len(self._factories)

    def __contains__(self, ref: str) -> bool:
        return any(r == ref for (_, r) in self._factories)


# Global registry instance
_brick_registry: Optional[BrickRegistry] = None


def get_brick_registry() -> BrickRegistry:
    """Get the global brick registry, with built-in bricks when enabled in settings."""
    global _brick_registry
    if _brick_registry is None:
        from ..core.config import get_settings

        _brick_registry = BrickRegistry()
        if get_settings().builtin_bricks_enabled:
            from .builtin import register_builtin_bricks

            register_builtin_bricks(_brick_registry)
    return _brick_registry


def reset_brick_registry() -> None:
    global _brick_registry
    _brick_registry = None


__all__ = ["BrickFactory", "BrickRegistry", "get_brick_registry", "reset_brick_registry"]
