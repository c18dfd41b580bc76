"""
Service factory functions for dependency injection.

Wires the SQLite unit of work into the core FIFO engine. Use cases and API
dependencies import from here.
"""

from stockledger.config import get_settings
from stockledger.core.services import FIFOEngine, UnitOfWorkFactory

# Singleton service instances
_fifo_engine: FIFOEngine | None = None


def get_fifo_engine(uow_factory: UnitOfWorkFactory | None = None) -> FIFOEngine:
    """
    Get or create the FIFOEngine instance.

    Args:
        uow_factory: Optional unit of work factory override. When given, a
            new engine is built and not cached.

    Returns:
        Configured FIFOEngine
    """
    global _fifo_engine

    if _fifo_engine is not None and uow_factory is None:
        return _fifo_engine

    # Lazy import infrastructure to avoid circular imports
    from stockledger.infrastructure.storage.sqlite import sqlite_uow_factory

    settings = get_settings()
    engine = FIFOEngine(
        uow_factory or sqlite_uow_factory(),
        max_conflict_retries=settings.inventory.max_conflict_retries,
        cost_precision=settings.inventory.cost_precision,
        max_page_size=settings.inventory.max_page_size,
    )

    if uow_factory is None:
        _fifo_engine = engine

    return engine


def reset_services() -> None:
    """Reset all singleton services (for testing)."""
    global _fifo_engine
    _fifo_engine = None


__all__ = [
    "get_fifo_engine",
    "reset_services",
]
