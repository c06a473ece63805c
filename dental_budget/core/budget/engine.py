"""
Budget computation over placed treatment markers.

The engine holds the authoritative marker collection for a whole visit
(all image slots) and derives budget lines, the grand total and the
payment session split from it.
"""

import logging
import math
from collections import OrderedDict
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Set

from ..annotation.events import AnnotationEvent, EventEmitter, EventType
from ..annotation.state import Marker
from ..errors import CatalogUnavailableError, InvalidSessionCount
from .models import BudgetLine, SessionPlan, json_number, to_decimal

logger = logging.getLogger(__name__)

# Reference amount covered by one payment session
DEFAULT_SESSION_AMOUNT = Decimal(4300)

# Session counts always offered next to the suggested one
PRESET_SESSION_COUNTS = (3, 6)

CostLookup = Callable[[str], Decimal]


class BudgetEngine:
    """
    Aggregates markers into a priced budget.

    Markers live in a single insertion-ordered mapping keyed by marker id.
    The per-image grouping is derived from it on demand, so removing a
    marker never needs to re-synchronise a second structure.
    """

    def __init__(self, cost_lookup: CostLookup, events: Optional[EventEmitter] = None):
        """
        Initialize budget engine.

        Args:
            cost_lookup: Returns the unit cost for a treatment name
                (0 for unknown names), e.g. ``TreatmentCatalog.get_treatment_cost``
            events: Emitter to publish BUDGET_CHANGED on
        """
        self._cost_lookup = cost_lookup
        self.events = events if events is not None else EventEmitter()
        self._markers: "OrderedDict[str, Marker]" = OrderedDict()
        self._session_override: Optional[int] = None

    def __len__(self):
        return len(self._markers)

    @property
    def markers(self) -> List[Marker]:
        return list(self._markers.values())

    def markers_for_image(self, image_index: int) -> List[Marker]:
        return [m for m in self._markers.values() if m.image_index == image_index]

    def markers_by_image(self) -> Dict[int, Set[str]]:
        """Marker ids grouped by image index."""
        grouping: Dict[int, Set[str]] = {}
        for marker in self._markers.values():
            grouping.setdefault(marker.image_index, set()).add(marker.marker_id)
        return grouping

    def record_marker(self, marker: Marker) -> bool:
        """
        Add a marker to the budget.

        Returns:
            False if a marker with the same id was already recorded
        """
        if marker.marker_id in self._markers:
            logger.debug("Marker %s already recorded", marker.marker_id)
            return False
        self._markers[marker.marker_id] = marker
        self._budget_changed()
        return True

    def remove_marker(self, marker_id: str) -> bool:
        """
        Remove a marker from the budget.

        Returns:
            False if the marker was not recorded (removing twice is harmless)
        """
        if self._markers.pop(marker_id, None) is None:
            return False
        self._budget_changed()
        return True

    def remove_all_for_image(self, image_index: int) -> List[Marker]:
        """Remove every marker placed on ``image_index``."""
        removed = self.markers_for_image(image_index)
        for marker in removed:
            del self._markers[marker.marker_id]
        if removed:
            self._budget_changed()
        return removed

    def clear(self):
        self._markers.clear()
        self._session_override = None
        self._budget_changed()

    def get_unit_cost(self, treatment_name: str) -> Decimal:
        """Unit cost from the catalog, 0 if the catalog cannot be read."""
        try:
            return to_decimal(self._cost_lookup(treatment_name))
        except CatalogUnavailableError as e:
            logger.warning(
                "Catalog unavailable, pricing %r as 0: %s", treatment_name, e
            )
            return Decimal(0)

    def compute_lines(self) -> List[BudgetLine]:
        """
        Group markers by treatment name and price each group.

        Lines come out in the order each treatment was first placed.
        """
        counts: "OrderedDict[str, int]" = OrderedDict()
        for marker in self._markers.values():
            counts[marker.treatment_name] = counts.get(marker.treatment_name, 0) + 1

        return [
            BudgetLine(
                treatment_name=name,
                count=count,
                unit_cost=self.get_unit_cost(name),
            )
            for name, count in counts.items()
        ]

    def grand_total(self) -> Decimal:
        return sum((line.line_total for line in self.compute_lines()), Decimal(0))

    def suggested_session_count(self) -> int:
        """Sessions needed at DEFAULT_SESSION_AMOUNT each, never less than 1."""
        total = self.grand_total()
        return max(1, math.ceil(total / DEFAULT_SESSION_AMOUNT))

    def compute_session_plan(self, session_count: int) -> SessionPlan:
        """
        Split the grand total into ``session_count`` equal payments.

        Raises:
            InvalidSessionCount: If ``session_count`` is not an integer >= 1
        """
        _validate_session_count(session_count)
        return SessionPlan(
            session_count=session_count,
            amount_per_session=self.grand_total() / session_count,
        )

    def session_options(self) -> List[SessionPlan]:
        """Plans offered to the user: the suggested count, then the presets."""
        counts = []
        for count in (self.suggested_session_count(), *PRESET_SESSION_COUNTS):
            if count not in counts:
                counts.append(count)
        return [self.compute_session_plan(count) for count in counts]

    def set_session_count(self, session_count: Optional[int]):
        """Override the suggested session count; None restores the suggestion."""
        if session_count is not None:
            _validate_session_count(session_count)
        self._session_override = session_count
        self._budget_changed()

    @property
    def session_count(self) -> int:
        if self._session_override is not None:
            return self._session_override
        return self.suggested_session_count()

    def current_session_plan(self) -> SessionPlan:
        return self.compute_session_plan(self.session_count)

    def summary(self) -> dict:
        """JSON-friendly budget: lines, grand total and the current plan."""
        lines = self.compute_lines()
        total = sum((line.line_total for line in lines), Decimal(0))
        return {
            "lines": [line.to_dict() for line in lines],
            "grand_total": json_number(total),
            "suggested_sessions": self.suggested_session_count(),
            "session_plan": self.current_session_plan().to_dict(),
        }

    def _budget_changed(self):
        lines = self.compute_lines()
        total = sum((line.line_total for line in lines), Decimal(0))
        self.events.emit(
            AnnotationEvent(
                EventType.BUDGET_CHANGED,
                {
                    "lines": lines,
                    "grand_total": total,
                    "session_plan": self.current_session_plan(),
                },
            )
        )


def _validate_session_count(session_count):
    if (
        isinstance(session_count, bool)
        or not isinstance(session_count, int)
        or session_count < 1
    ):
        raise InvalidSessionCount(
            f"Session count must be an integer >= 1, got {session_count!r}"
        )