"""
Core annotation module - UI-agnostic marker placement.

This module provides the annotation surface that any front-end
(web, desktop, CLI) can drive with pointer coordinates.
"""

from .surface import AnnotationSurface
from .events import AnnotationEvent, EventType, EventEmitter
from .state import ImageSlot, Marker, SurfaceState

__all__ = [
    "AnnotationSurface",
    "AnnotationEvent",
    "EventType",
    "EventEmitter",
    "ImageSlot",
    "Marker",
    "SurfaceState",
]
