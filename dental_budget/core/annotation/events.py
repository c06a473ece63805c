"""
Event system for the annotation and budget workflow.

Surfaces and the budget engine notify the view layer through these events
instead of calling into any specific UI framework.
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional
from dataclasses import dataclass

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Types of events that can occur during a visit."""

    # Image events
    IMAGE_LOADED = "image_loaded"
    IMAGE_LOAD_FAILED = "image_load_failed"
    SLOT_ADDED = "slot_added"
    SLOT_REMOVED = "slot_removed"

    # Marker events
    MARKER_PLACED = "marker_placed"
    MARKER_REMOVED = "marker_removed"
    ALL_CLEARED = "all_cleared"
    SELECTION_CHANGED = "selection_changed"

    # Treatment palette
    TREATMENT_ARMED = "treatment_armed"

    # Budget
    BUDGET_CHANGED = "budget_changed"

    # User-facing messages
    NOTICE = "notice"


@dataclass
class AnnotationEvent:
    """Event that occurs during annotation or pricing."""

    event_type: EventType
    data: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        if self.data is None:
            self.data = {}


class EventEmitter:
    """
    Simple event emitter for pub/sub pattern.

    Listeners are registered once and stay attached for the lifetime of
    the emitter; registering the same callback twice is ignored.
    """

    def __init__(self):
        self._listeners: Dict[EventType, List[Callable]] = {}

    def on(self, event_type: EventType, callback: Callable[[AnnotationEvent], None]):
        """Subscribe to an event type."""
        listeners = self._listeners.setdefault(event_type, [])
        if callback not in listeners:
            listeners.append(callback)

    def off(self, event_type: EventType, callback: Callable[[AnnotationEvent], None]):
        """Unsubscribe from an event type."""
        listeners = self._listeners.get(event_type, [])
        if callback in listeners:
            listeners.remove(callback)

    def emit(self, event: AnnotationEvent):
        """Emit an event to all subscribers, in subscription order."""
        for callback in list(self._listeners.get(event.event_type, [])):
            try:
                callback(event)
            except Exception:
                # A broken listener must not stop delivery to the others
                logger.exception(
                    "Error in listener for %s", event.event_type.value
                )

    def listener_count(self, event_type: EventType) -> int:
        return len(self._listeners.get(event_type, []))

    def clear(self):
        """Clear all event listeners."""
        self._listeners.clear()
