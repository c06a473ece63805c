"""
Budget module - pricing of placed treatment markers.
"""

from .catalog import (
    DEFAULT_TREATMENTS,
    TreatmentCatalog,
    TreatmentCatalogEntry,
    load_catalog,
)
from .engine import DEFAULT_SESSION_AMOUNT, BudgetEngine
from .models import BudgetLine, SessionPlan

__all__ = [
    "BudgetEngine",
    "BudgetLine",
    "SessionPlan",
    "TreatmentCatalog",
    "TreatmentCatalogEntry",
    "DEFAULT_TREATMENTS",
    "DEFAULT_SESSION_AMOUNT",
    "load_catalog",
]
