"""
State for annotation surfaces.

Contains the data classes describing placed markers and image slots.
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


class SurfaceState(Enum):
    """Lifecycle of an annotation surface."""

    EMPTY = "empty"
    LOADING = "loading"
    READY = "ready"


def new_marker_id() -> str:
    return f"marker-{uuid.uuid4().hex}"


@dataclass(frozen=True)
class Marker:
    """A treatment mark placed on a patient image.

    ``x`` and ``y`` are surface-local coordinates, i.e. already scaled by
    the render scale of the image the marker belongs to.
    """

    x: float
    y: float
    color: str
    treatment_name: str
    image_index: int
    marker_id: str = field(default_factory=new_marker_id)

    @property
    def position(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def to_dict(self):
        """Convert to dictionary for serialization."""
        return {
            "id": self.marker_id,
            "x": self.x,
            "y": self.y,
            "color": self.color,
            "name": self.treatment_name,
            "image_index": self.image_index,
        }

    @classmethod
    def from_dict(cls, data: dict, image_index: Optional[int] = None):
        """Create from dictionary.

        Accepts both our own keys and the ``{id, x, y, color, name}`` shape
        used by the web client.
        """
        if image_index is None:
            image_index = int(data.get("image_index", 0))
        treatment_name = data.get("name", data.get("treatment_name"))
        if not isinstance(treatment_name, str):
            raise ValueError(f"Marker without a treatment name: {data!r}")
        kwargs = {}
        if data.get("id"):
            kwargs["marker_id"] = str(data["id"])
        return cls(
            x=float(data["x"]),
            y=float(data["y"]),
            color=data["color"],
            treatment_name=treatment_name,
            image_index=image_index,
            **kwargs,
        )


@dataclass
class ImageSlot:
    """
    An uploaded patient image and its rendering parameters.

    ``index`` is assigned once when the slot is created and never reused,
    so markers can keep referring to it after other slots are removed.
    """

    index: int
    source_image: Optional[bytes] = None
    render_scale: Optional[float] = None
    canvas_snapshot: Optional[bytes] = None

    @property
    def is_loaded(self) -> bool:
        return self.source_image is not None and self.render_scale is not None

    def to_dict(self):
        """Convert to dictionary (without raw bytes)."""
        return {
            "index": self.index,
            "render_scale": self.render_scale,
            "loaded": self.is_loaded,
            "has_snapshot": self.canvas_snapshot is not None,
        }
