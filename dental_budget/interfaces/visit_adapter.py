"""
Visit adapter for annotation surfaces and the budget engine.

Bridges the per-image AnnotationSurfaces of a patient visit with the
BudgetEngine that prices them, and exposes the operations a front-end
needs: uploads, treatment arming, pointer clicks and navigation.
"""

import logging
from collections import OrderedDict
from gettext import gettext as _
from typing import Callable, List, Optional, Union

import numpy as np
from easydict import EasyDict as edict

from ..core.annotation import (
    AnnotationEvent,
    AnnotationSurface,
    EventEmitter,
    EventType,
    ImageSlot,
    Marker,
)
from ..core.annotation.utils import DATA_URI_PREFIX, decode_data_uri, decode_image
from ..core.budget import BudgetEngine, TreatmentCatalog
from ..core.budget.engine import CostLookup
from ..core.errors import ImageDecodeError, ImageRejectedError
from ..utils.config import default_config

logger = logging.getLogger(__name__)

ImageData = Union[bytes, str]


class VisitAdapter:
    """
    Adapter connecting annotation surfaces to the budget of one visit.

    Provides a single entry point that:
    - Owns one AnnotationSurface per uploaded image slot
    - Forwards marker events to the BudgetEngine
    - Keeps the armed treatment shared by every surface
    - Publishes every event on one emitter the view can subscribe to
    """

    def __init__(
        self,
        catalog: Optional[TreatmentCatalog] = None,
        cfg: Optional[edict] = None,
        decoder: Callable[[bytes], np.ndarray] = decode_image,
        cost_lookup: Optional[CostLookup] = None,
    ):
        """
        Initialize adapter.

        Args:
            catalog: Treatment catalog snapshot; the stock palette if omitted
            cfg: Configuration tree, see ``dental_budget.utils.config``
            decoder: Image codec used by the surfaces
            cost_lookup: Cost lookup overriding ``catalog.get_treatment_cost``
        """
        self.cfg = cfg if cfg is not None else default_config()
        self.catalog = catalog if catalog is not None else TreatmentCatalog.default()
        self._decoder = decoder

        self.events = EventEmitter()
        self.engine = BudgetEngine(
            cost_lookup or self.catalog.get_treatment_cost, events=self.events
        )

        self._slots: "OrderedDict[int, ImageSlot]" = OrderedDict()
        self._surfaces = {}
        self._next_index = 0
        self._current: Optional[int] = None

        self.armed_color: Optional[str] = None
        self.armed_treatment: Optional[str] = None

        self._setup_event_handlers()

    def _setup_event_handlers(self):
        """Subscribe the engine to surface events, once."""
        self.events.on(EventType.MARKER_PLACED, self._on_marker_placed)
        self.events.on(EventType.MARKER_REMOVED, self._on_marker_removed)
        self.events.on(EventType.ALL_CLEARED, self._on_all_cleared)

    def _on_marker_placed(self, event: AnnotationEvent):
        marker = event.data["marker"]
        self.engine.record_marker(marker)
        self._invalidate_snapshot(marker.image_index)

    def _on_marker_removed(self, event: AnnotationEvent):
        self.engine.remove_marker(event.data["marker_id"])
        self._invalidate_snapshot(event.data["image_index"])

    def _on_all_cleared(self, event: AnnotationEvent):
        self.engine.remove_all_for_image(event.data["image_index"])
        self._invalidate_snapshot(event.data["image_index"])

    # Treatment palette

    def arm_treatment(self, color: Optional[str], treatment_name: Optional[str]):
        """Select the (color, name) pair attached to the next marker."""
        self.armed_color = color
        self.armed_treatment = treatment_name
        self.events.emit(
            AnnotationEvent(
                EventType.TREATMENT_ARMED,
                {"color": color, "name": treatment_name},
            )
        )

    def arm_from_catalog(self, treatment_name: str):
        """Arm an active catalog treatment with its own color."""
        entry = self.catalog.get_by_name(treatment_name)
        if entry is None or not entry.is_active:
            raise ValueError(f"No active treatment named {treatment_name!r}")
        self.arm_treatment(entry.color, entry.name)

    def disarm(self):
        self.arm_treatment(None, None)

    @property
    def is_armed(self) -> bool:
        return bool(self.armed_color and self.armed_treatment)

    # Image slots

    @property
    def slots(self) -> List[ImageSlot]:
        return list(self._slots.values())

    @property
    def current_index(self) -> Optional[int]:
        return self._current

    @property
    def current_slot(self) -> Optional[ImageSlot]:
        if self._current is None:
            return None
        return self._slots[self._current]

    def surface(self, index: Optional[int] = None) -> AnnotationSurface:
        """Surface of slot ``index`` (the current slot by default)."""
        if index is None:
            index = self._current
        if index is None or index not in self._surfaces:
            raise KeyError(f"No image slot {index}")
        return self._surfaces[index]

    def begin_load(self) -> ImageSlot:
        """
        Reserve an empty slot for an image still being read.

        Raises:
            ImageRejectedError: If the visit already holds ``max_images`` slots
        """
        max_images = int(self.cfg.uploads.max_images)
        if len(self._slots) >= max_images:
            raise ImageRejectedError(
                _("You can upload at most {count} images").format(count=max_images)
            )

        index = self._next_index
        self._next_index += 1

        slot = ImageSlot(index=index)
        self._slots[index] = slot
        self._surfaces[index] = AnnotationSurface(
            index,
            surface_size=(int(self.cfg.surface.width), int(self.cfg.surface.height)),
            marker_radius=int(self.cfg.marker.radius),
            stroke_width=int(self.cfg.marker.stroke_width),
            stroke_color=self.cfg.marker.stroke_color,
            decoder=self._decoder,
            events=self.events,
        )
        if self._current is None:
            self._current = index

        self.events.emit(AnnotationEvent(EventType.SLOT_ADDED, {"image_index": index}))
        return slot

    def complete_load(self, index: int, data: ImageData) -> Optional[ImageSlot]:
        """
        Attach image data to a reserved slot.

        Completions for slots removed in the meantime are discarded.

        Returns:
            The loaded slot, or None if the slot no longer exists

        Raises:
            ImageRejectedError: If the data is too large
            ImageDecodeError: If the data is not a supported image
        """
        if index not in self._slots:
            logger.info("Discarding image load for removed slot %d", index)
            return None

        payload = self._prepare_upload(data)
        surface = self._surfaces[index]
        surface.load_image(payload)

        slot = self._slots[index]
        slot.source_image = payload
        slot.render_scale = surface.render_scale
        slot.canvas_snapshot = None
        return slot

    def add_image(self, data: ImageData) -> ImageSlot:
        """
        Upload an image into a new slot.

        A slot whose image fails to load is dropped again.
        """
        self._prepare_upload(data)
        slot = self.begin_load()
        try:
            self.complete_load(slot.index, data)
        except Exception:
            self.remove_image(slot.index)
            raise
        self._notify(_("Image loaded"))
        return slot

    def remove_image(self, index: int) -> List[Marker]:
        """
        Remove an image slot and every marker placed on it.

        Returns:
            The markers removed with the slot
        """
        if index not in self._slots:
            raise KeyError(f"No image slot {index}")

        order = list(self._slots)
        position = order.index(index)

        del self._slots[index]
        del self._surfaces[index]
        removed = self.engine.remove_all_for_image(index)

        if self._current == index:
            remaining = list(self._slots)
            if remaining:
                self._current = remaining[min(position, len(remaining) - 1)]
            else:
                self._current = None

        logger.debug("Removed image %d with %d markers", index, len(removed))
        self.events.emit(
            AnnotationEvent(
                EventType.SLOT_REMOVED, {"image_index": index, "markers": removed}
            )
        )
        self._notify(_("Image removed"))
        return removed

    def select_image(self, index: int):
        if index not in self._slots:
            raise KeyError(f"No image slot {index}")
        self._current = index

    def next_image(self) -> bool:
        return self._step(1)

    def prev_image(self) -> bool:
        return self._step(-1)

    def _step(self, offset: int) -> bool:
        if self._current is None:
            return False
        order = list(self._slots)
        position = order.index(self._current) + offset
        if not 0 <= position < len(order):
            return False
        self._current = order[position]
        return True

    # Pointer and marker actions on the current image

    def click(self, x: float, y: float) -> Optional[Marker]:
        """Pointer-down on the current image, with the armed treatment."""
        if self._current is None:
            self._notify(_("Upload an image to start the diagnosis"), level="error")
            return None
        return self.surface().place_marker(
            x, y, self.armed_color, self.armed_treatment
        )

    def delete_selected(self) -> Optional[Marker]:
        return self.surface().delete_selected()

    def clear_current(self) -> List[Marker]:
        return self.surface().clear_all()

    # Rendering

    def render(self, index: Optional[int] = None) -> np.ndarray:
        return self.surface(index).render()

    def snapshot(self, index: Optional[int] = None) -> bytes:
        """PNG of a slot with its markers; cached on the slot until it changes."""
        surface = self.surface(index)
        slot = self._slots[surface.image_index]
        if slot.canvas_snapshot is None:
            slot.canvas_snapshot = surface.snapshot()
        return slot.canvas_snapshot

    def snapshots(self) -> List[bytes]:
        """Snapshots of every loaded slot, in upload order."""
        return [self.snapshot(slot.index) for slot in self.slots if slot.is_loaded]

    # Budget

    def set_session_count(self, session_count: Optional[int]):
        self.engine.set_session_count(session_count)

    def summary(self) -> dict:
        """JSON-friendly budget with a per-image marker count."""
        data = self.engine.summary()
        data["images"] = [
            {**slot.to_dict(), "markers": len(self.engine.markers_for_image(slot.index))}
            for slot in self.slots
        ]
        return data

    def _prepare_upload(self, data: ImageData) -> bytes:
        if isinstance(data, str):
            if not data.startswith(DATA_URI_PREFIX):
                raise ImageDecodeError(_("Not a valid image"))
            data = decode_data_uri(data)

        max_bytes = float(self.cfg.uploads.max_size_mb) * 1024 * 1024
        if len(data) > max_bytes:
            raise ImageRejectedError(
                _("Image is too large. Maximum {size}MB").format(
                    size=self.cfg.uploads.max_size_mb
                )
            )
        return data

    def _invalidate_snapshot(self, index: int):
        slot = self._slots.get(index)
        if slot is not None:
            slot.canvas_snapshot = None

    def _notify(self, message: str, level: str = "info"):
        self.events.emit(
            AnnotationEvent(EventType.NOTICE, {"message": message, "level": level})
        )
