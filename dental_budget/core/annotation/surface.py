"""
Annotation surface management.

Core logic for placing treatment markers over a patient image.
UI-agnostic - pointer coordinates come in already mapped to the
surface's internal resolution, and every change is published as an event.
"""

import logging
from gettext import gettext as _
from typing import Callable, List, Optional, Tuple

import numpy as np

from ..errors import ImageDecodeError, SurfaceNotReadyError
from .events import AnnotationEvent, EventEmitter, EventType
from .state import Marker, SurfaceState
from .utils import (
    compute_render_scale,
    decode_image,
    draw_markers_on_image,
    encode_png,
    find_topmost_marker,
    resize_to_surface,
    scaled_size,
    validate_image,
)

logger = logging.getLogger(__name__)

DEFAULT_SURFACE_SIZE = (400, 300)
DEFAULT_MARKER_RADIUS = 8
DEFAULT_STROKE_WIDTH = 2


class AnnotationSurface:
    """
    A drawing surface holding one patient image and its markers.

    This class handles:
    - Image decoding and fit-to-viewport scaling
    - Marker placement, hit-testing and selection
    - Deletion of the selected marker and bulk clearing
    - Event emission for the budget engine and the view layer

    Markers are kept in z-order: the last placed marker is drawn on top
    and wins hit-tests.
    """

    def __init__(
        self,
        image_index: int,
        surface_size: Tuple[int, int] = DEFAULT_SURFACE_SIZE,
        marker_radius: int = DEFAULT_MARKER_RADIUS,
        stroke_width: int = DEFAULT_STROKE_WIDTH,
        stroke_color: str = "#ffffff",
        decoder: Callable[[bytes], np.ndarray] = decode_image,
        events: Optional[EventEmitter] = None,
    ):
        """
        Initialize an empty surface.

        Args:
            image_index: Index of the image slot this surface draws
            surface_size: (width, height) of the viewport the image is fit into
            marker_radius: Radius of a marker disc
            stroke_width: Width of the marker outline
            stroke_color: Color of the marker outline
            decoder: Image codec turning bytes into an RGB array
            events: Emitter to publish on; a private one is created if omitted
        """
        self.image_index = image_index
        self.surface_size = surface_size
        self.marker_radius = marker_radius
        self.stroke_width = stroke_width
        self.stroke_color = stroke_color
        self._decoder = decoder

        self.state = SurfaceState.EMPTY
        self.events = events if events is not None else EventEmitter()

        self._image: Optional[np.ndarray] = None
        self.render_scale: Optional[float] = None
        self._markers: List[Marker] = []
        self._selected: Optional[Marker] = None

    @property
    def markers(self) -> Tuple[Marker, ...]:
        return tuple(self._markers)

    @property
    def selected(self) -> Optional[Marker]:
        return self._selected

    @property
    def size(self) -> Optional[Tuple[int, int]]:
        """(width, height) of the drawing surface once an image is loaded."""
        if self._image is None:
            return None
        h, w = self._image.shape[:2]
        return scaled_size(w, h, self.render_scale)

    def load_image(self, data: bytes):
        """
        Decode an image and fit it into the viewport.

        Loading over a ready surface replaces its image and drops its markers,
        since their coordinates belong to the previous render scale.

        Args:
            data: Encoded image bytes

        Raises:
            ImageDecodeError: If the bytes cannot be decoded, whatever the
                decoder raised. The surface keeps its previous image, or goes
                back to empty on a first load.
        """
        previous_state = self.state
        self.state = SurfaceState.LOADING

        try:
            image = self._decoder(data)
            validate_image(image)
        except Exception as e:
            self.state = previous_state
            logger.warning(
                "Image %d could not be decoded: %s", self.image_index, e
            )
            self.events.emit(
                AnnotationEvent(
                    EventType.IMAGE_LOAD_FAILED,
                    {"image_index": self.image_index, "error": str(e)},
                )
            )
            self._notify(_("The image could not be loaded"), level="error")
            if isinstance(e, ImageDecodeError):
                raise
            raise ImageDecodeError(str(e)) from e

        if self._markers:
            self._remove_all()

        h, w = image.shape[:2]
        self._image = image
        self.render_scale = compute_render_scale(w, h, *self.surface_size)
        self.state = SurfaceState.READY

        logger.debug(
            "Image %d loaded: %dx%d, scale %.4f",
            self.image_index,
            w,
            h,
            self.render_scale,
        )
        self.events.emit(
            AnnotationEvent(
                EventType.IMAGE_LOADED,
                {
                    "image_index": self.image_index,
                    "image_shape": image.shape,
                    "render_scale": self.render_scale,
                    "surface_size": self.size,
                },
            )
        )

    def hit_test(self, x: float, y: float) -> Optional[Marker]:
        """Return the topmost marker under (x, y), if any."""
        self._require_ready()
        return find_topmost_marker(
            self._markers, x, y, self.marker_radius, self.stroke_width
        )

    def place_marker(
        self,
        x: float,
        y: float,
        color: Optional[str],
        treatment_name: Optional[str],
    ) -> Optional[Marker]:
        """
        Handle a pointer-down at surface coordinates (x, y).

        Clicking an existing marker selects it instead of creating a new one.
        Clicking empty space clears the selection and, if a treatment is
        armed, places a marker there.

        Args:
            x: Surface-local X coordinate
            y: Surface-local Y coordinate
            color: Color token of the armed treatment
            treatment_name: Name of the armed treatment

        Returns:
            The new marker, or None if nothing was placed
        """
        self._require_ready()

        target = self.hit_test(x, y)
        if target is not None:
            self.select_marker(target)
            return None

        self.clear_selection()

        if not color or not treatment_name:
            logger.debug(
                "Pointer at (%.1f, %.1f) ignored, no treatment armed", x, y
            )
            self._notify(_("Select a treatment first"), level="error")
            return None

        width, height = self.size
        if not (0 <= x <= width and 0 <= y <= height):
            logger.debug("Pointer at (%.1f, %.1f) is outside the surface", x, y)
            return None

        marker = Marker(
            x=x,
            y=y,
            color=color,
            treatment_name=treatment_name,
            image_index=self.image_index,
        )
        self._markers.append(marker)

        self.events.emit(
            AnnotationEvent(
                EventType.MARKER_PLACED,
                {"marker": marker, "num_markers": len(self._markers)},
            )
        )
        self._notify(_("{name} added").format(name=treatment_name), level="success")
        return marker

    def select_marker(self, marker: Marker):
        """Make ``marker`` the single selected marker."""
        self._require_ready()
        if all(m.marker_id != marker.marker_id for m in self._markers):
            raise ValueError(
                f"Marker {marker.marker_id} is not on image {self.image_index}"
            )
        if self._selected is not None and self._selected.marker_id == marker.marker_id:
            return
        self._set_selection(marker)

    def clear_selection(self):
        """Deselect the selected marker, if any."""
        if self._selected is not None:
            self._set_selection(None)

    def delete_selected(self) -> Optional[Marker]:
        """
        Remove the selected marker.

        Returns:
            The removed marker, or None if nothing was selected
        """
        self._require_ready()
        marker = self._selected
        if marker is None:
            return None

        self._markers = [m for m in self._markers if m.marker_id != marker.marker_id]
        self._set_selection(None)

        self.events.emit(
            AnnotationEvent(
                EventType.MARKER_REMOVED,
                {
                    "marker_id": marker.marker_id,
                    "marker": marker,
                    "image_index": self.image_index,
                },
            )
        )
        self._notify(_("Marker removed"))
        return marker

    def clear_all(self) -> List[Marker]:
        """
        Remove every marker on this surface.

        Returns:
            The removed markers, in placement order
        """
        self._require_ready()
        removed = self._remove_all()
        self._notify(_("All treatments removed"))
        return removed

    def render(self) -> np.ndarray:
        """Image at surface resolution with all markers drawn."""
        self._require_ready()
        background = resize_to_surface(self._image, self.render_scale)
        return draw_markers_on_image(
            background,
            self._markers,
            radius=self.marker_radius,
            stroke_width=self.stroke_width,
            stroke_color=self.stroke_color,
            selected_id=self._selected.marker_id if self._selected else None,
        )

    def snapshot(self) -> bytes:
        """PNG rendering of the surface, for reports."""
        return encode_png(self.render())

    def _remove_all(self) -> List[Marker]:
        removed = list(self._markers)
        self._markers.clear()
        self.clear_selection()
        self.events.emit(
            AnnotationEvent(
                EventType.ALL_CLEARED,
                {"image_index": self.image_index, "markers": removed},
            )
        )
        return removed

    def _set_selection(self, marker: Optional[Marker]):
        previous = self._selected
        self._selected = marker
        self.events.emit(
            AnnotationEvent(
                EventType.SELECTION_CHANGED,
                {
                    "image_index": self.image_index,
                    "marker": marker,
                    "previous": previous,
                },
            )
        )

    def _notify(self, message: str, level: str = "info"):
        self.events.emit(
            AnnotationEvent(
                EventType.NOTICE,
                {"message": message, "level": level, "image_index": self.image_index},
            )
        )

    def _require_ready(self):
        if self.state is not SurfaceState.READY:
            raise SurfaceNotReadyError(
                f"Image {self.image_index} is {self.state.value}, not ready"
            )
