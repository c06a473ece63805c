"""
Treatment catalog.

Read-only snapshot of a company's treatments, as stored in the document
store. The core only ever reads unit costs from it, by treatment name.
"""

import json
import logging
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from ..errors import CatalogUnavailableError
from .models import Number, json_number, to_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TreatmentCatalogEntry:
    """A treatment offered by the clinic."""

    name: str
    color: str
    unit_cost: Decimal
    treatment_id: Optional[str] = None
    bg_class: str = ""
    is_active: bool = True
    description: str = ""

    def __post_init__(self):
        cost = to_decimal(self.unit_cost)
        if not cost.is_finite():
            raise ValueError(f"Invalid cost for treatment {self.name!r}: {cost}")
        if cost < 0:
            raise ValueError(f"Negative cost for treatment {self.name!r}: {cost}")
        object.__setattr__(self, "unit_cost", cost)

    @classmethod
    def from_record(cls, record: dict):
        """Create from a store document (``bgClass``, ``cost``, ``isActive``)."""
        return cls(
            name=record["name"],
            color=record["color"],
            unit_cost=record.get("cost", record.get("unit_cost", 0)),
            treatment_id=record.get("id"),
            bg_class=record.get("bgClass", record.get("bg_class", "")),
            is_active=bool(record.get("isActive", record.get("is_active", True))),
            description=record.get("description") or "",
        )

    def to_record(self) -> dict:
        return {
            "id": self.treatment_id,
            "name": self.name,
            "color": self.color,
            "bgClass": self.bg_class,
            "cost": json_number(self.unit_cost),
            "isActive": self.is_active,
            "description": self.description,
        }


# Stock palette a new clinic starts with
DEFAULT_TREATMENTS = [
    TreatmentCatalogEntry("Pulpotomías", "#DC2626", 1200, bg_class="bg-treatment-red"),
    TreatmentCatalogEntry(
        "Coronas metálicas", "#EAB308", 1800, bg_class="bg-treatment-yellow"
    ),
    TreatmentCatalogEntry("Extracciones", "#2563EB", 1000, bg_class="bg-treatment-blue"),
    TreatmentCatalogEntry(
        "Resinas en diente temporal", "#16A34A", 1000, bg_class="bg-treatment-green"
    ),
    TreatmentCatalogEntry(
        "Resina en diente permanente", "#EA580C", 1200, bg_class="bg-treatment-orange"
    ),
]


class TreatmentCatalog:
    """
    Lookup over a snapshot of treatment entries.

    Names are unique within a catalog and matched exactly (case-sensitive).
    Inactive entries stay visible to listings but are priced as 0, the same
    as names that were deleted after markers referencing them were placed.
    """

    def __init__(self, entries: Iterable[TreatmentCatalogEntry] = ()):
        self._entries: Dict[str, TreatmentCatalogEntry] = {}
        for entry in entries:
            if entry.name in self._entries:
                raise ValueError(f"Duplicate treatment name: {entry.name!r}")
            self._entries[entry.name] = entry

    @classmethod
    def from_records(cls, records: Iterable[dict]) -> "TreatmentCatalog":
        return cls(TreatmentCatalogEntry.from_record(r) for r in records)

    @classmethod
    def default(cls) -> "TreatmentCatalog":
        return cls(DEFAULT_TREATMENTS)

    def __len__(self):
        return len(self._entries)

    def __contains__(self, name):
        return name in self._entries

    def get_by_name(self, name: str) -> Optional[TreatmentCatalogEntry]:
        return self._entries.get(name)

    def get_treatment_cost(self, name: str) -> Decimal:
        """Unit cost of an active treatment, 0 when unknown or inactive."""
        entry = self._entries.get(name)
        if entry is None or not entry.is_active:
            logger.debug("No active treatment named %r, pricing as 0", name)
            return Decimal(0)
        return entry.unit_cost

    def entries(self) -> List[TreatmentCatalogEntry]:
        return sorted(self._entries.values(), key=lambda e: e.name)

    def active_entries(self) -> List[TreatmentCatalogEntry]:
        """Active treatments sorted by name, as offered in the palette."""
        return [e for e in self.entries() if e.is_active]

    def filter_entries(
        self,
        search: str = "",
        is_active: Optional[bool] = None,
        min_cost: Optional[Number] = None,
        max_cost: Optional[Number] = None,
    ) -> List[TreatmentCatalogEntry]:
        """
        Filter entries the way the management screen does.

        Args:
            search: Case-insensitive substring of name or description
            is_active: Keep only entries with this status, if given
            min_cost: Inclusive lower bound on unit cost
            max_cost: Inclusive upper bound on unit cost
        """
        needle = search.strip().lower()
        low = to_decimal(min_cost) if min_cost is not None else None
        high = to_decimal(max_cost) if max_cost is not None else None

        result = []
        for entry in self.entries():
            if needle and needle not in entry.name.lower() and needle not in entry.description.lower():
                continue
            if is_active is not None and entry.is_active != is_active:
                continue
            if low is not None and entry.unit_cost < low:
                continue
            if high is not None and entry.unit_cost > high:
                continue
            result.append(entry)
        return result

    def to_records(self) -> List[dict]:
        return [e.to_record() for e in self.entries()]


def load_catalog(path: Path) -> TreatmentCatalog:
    """
    Load a catalog exported from the document store.

    The file holds a JSON list of treatment documents.

    Raises:
        CatalogUnavailableError: If the file is missing or malformed
    """
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as f:
            records = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise CatalogUnavailableError(f"Cannot read catalog {path}: {e}") from e

    if not isinstance(records, list):
        raise CatalogUnavailableError(f"Catalog {path} must contain a list")

    try:
        catalog = TreatmentCatalog.from_records(records)
    except (KeyError, TypeError, ValueError, ArithmeticError) as e:
        raise CatalogUnavailableError(f"Invalid catalog {path}: {e}") from e

    logger.info("Loaded %d treatments from %s", len(catalog), path)
    return catalog
