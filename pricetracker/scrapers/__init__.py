"""Strategy registry.

Every module in this package except the shared machinery is imported, then
the `BaseStrategy` class tree is walked. A class that sets its own `name`
claims that retailer name, lowercased; the first claim wins. Retailers
without a registered strategy use the generic fallback.
"""

from __future__ import annotations

import importlib
import logging
import pkgutil

from ..config import Settings
from .base import BaseStrategy
from .generic import GenericStrategy

__all__ = [
    "BaseStrategy",
    "GenericStrategy",
    "STRATEGIES",
    "get_strategy_class",
    "resolve_strategy",
    "list_strategies",
]

logger = logging.getLogger(__name__)

FALLBACK_STRATEGY = GenericStrategy.name

# Modules holding shared machinery rather than retailer strategies
_SUPPORT_MODULES = {"base", "browser_pool"}


def _import_strategy_modules() -> None:
    """Import every retailer module in this package so its classes exist."""
    for module_info in pkgutil.iter_modules(__path__):  # type: ignore[name-defined]
        if module_info.ispkg or module_info.name in _SUPPORT_MODULES:
            continue
        try:
            importlib.import_module(f"{__name__}.{module_info.name}")
        except Exception as exc:  # pragma: no cover - depends on optional modules
            logger.warning("Failed to import strategy module %s: %r", module_info.name, exc)


def _strategy_classes(root: type[BaseStrategy]) -> list[type[BaseStrategy]]:
    """All subclasses of root defined in this package, depth first."""
    found = []
    for cls in root.__subclasses__():
        if cls.__module__.startswith(f"{__name__}."):
            found.append(cls)
        found.extend(_strategy_classes(cls))
    return found


def _build_registry() -> dict[str, type[BaseStrategy]]:
    _import_strategy_modules()

    registry: dict[str, type[BaseStrategy]] = {}
    for cls in _strategy_classes(BaseStrategy):
        # Abstract bases like BrowserStrategy declare no name of their own.
        key = str(cls.__dict__.get("name") or "").strip().lower()
        if not key:
            continue
        if key in registry:
            logger.warning(
                "Strategy %s also claims retailer '%s'; keeping %s",
                cls.__qualname__, key, registry[key].__qualname__,
            )
            continue
        registry[key] = cls

    return dict(sorted(registry.items()))


STRATEGIES: dict[str, type[BaseStrategy]] = _build_registry()


def get_strategy_class(
    retailer_name: str,
    strategies: dict[str, type[BaseStrategy]] | None = None,
) -> type[BaseStrategy]:
    """Pick the strategy class for a retailer name, falling back to generic."""
    table = STRATEGIES if strategies is None else strategies
    key = (retailer_name or "").strip().lower()
    if key in table:
        return table[key]
    return table.get(FALLBACK_STRATEGY, GenericStrategy)


def resolve_strategy(
    retailer_name: str,
    settings: Settings | None = None,
    strategies: dict[str, type[BaseStrategy]] | None = None,
) -> BaseStrategy:
    """Get a strategy instance for a retailer name."""
    return get_strategy_class(retailer_name, strategies)(settings)


def list_strategies() -> list[str]:
    """List all registered strategy names."""
    return list(STRATEGIES.keys())
