"""
Persistence facade exposing the keyed-grid sheet stores.
"""

from .stores.base_store import (
    Grid,
    PersistHealth,
    SheetStore,
    StoreAccessError,
    StoreError,
    StoreInitializationError,
    StoreLockedError,
)
from .stores.memory_store import MemorySheetStore
from .stores.xlsx_store import XLSXSheetStore

__all__ = [
    "Grid",
    "PersistHealth",
    "SheetStore",
    "StoreError",
    "StoreAccessError",
    "StoreLockedError",
    "StoreInitializationError",
    "MemorySheetStore",
    "XLSXSheetStore",
]
