"""
Test fixtures and utilities for dental_budget tests.

Provides reusable fixtures for images, catalogs, surfaces and engines.
"""

import pytest
import numpy as np
import cv2
from unittest.mock import Mock

from dental_budget.core.annotation import AnnotationSurface, EventType
from dental_budget.core.budget import (
    BudgetEngine,
    TreatmentCatalog,
    TreatmentCatalogEntry,
)


def encode_test_image(height: int, width: int, value: int = 0) -> bytes:
    """PNG bytes of a flat RGB image."""
    image = np.full((height, width, 3), value, dtype=np.uint8)
    ok, buffer = cv2.imencode(".png", image)
    assert ok
    return buffer.tobytes()


@pytest.fixture
def image_bytes():
    """800x600 black PNG; fits a 400x300 surface at scale 0.5."""
    return encode_test_image(600, 800)


@pytest.fixture
def small_image_bytes():
    """200x100 gray PNG; fits a 400x300 surface at scale 2."""
    return encode_test_image(100, 200, value=128)


@pytest.fixture
def catalog():
    """Catalog with the two treatments used in the pricing scenarios."""
    return TreatmentCatalog(
        [
            TreatmentCatalogEntry("Extraction", "#2563EB", 1000),
            TreatmentCatalogEntry("Crown", "#EAB308", 1800),
            TreatmentCatalogEntry("Bridge", "#16A34A", 4300),
            TreatmentCatalogEntry("Veneer", "#EA580C", 2500, is_active=False),
        ]
    )


@pytest.fixture
def engine(catalog):
    return BudgetEngine(catalog.get_treatment_cost)


@pytest.fixture
def surface(image_bytes):
    """Ready surface for image slot 0."""
    surface = AnnotationSurface(0)
    surface.load_image(image_bytes)
    return surface


@pytest.fixture
def listener():
    """Mock listener, to be subscribed with ``emitter.on(type, listener)``."""
    return Mock()


def events_of(listener, event_type: EventType):
    """Events of one type received by a mock listener."""
    return [
        call.args[0]
        for call in listener.call_args_list
        if call.args[0].event_type is event_type
    ]
