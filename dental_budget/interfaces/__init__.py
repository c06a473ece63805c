"""
Interfaces module - adapters between the core and front-ends.

Provides the visit adapter that connects annotation surfaces
with the budget engine for any UI (web, desktop, CLI).
"""

from .visit_adapter import VisitAdapter

__all__ = ['VisitAdapter']
