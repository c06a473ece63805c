"""
Tests for the treatment catalog snapshot.
"""

import json
from decimal import Decimal

import pytest

from dental_budget.core.budget import (
    DEFAULT_TREATMENTS,
    TreatmentCatalog,
    TreatmentCatalogEntry,
    load_catalog,
)
from dental_budget.core.errors import CatalogUnavailableError

STORE_RECORDS = [
    {
        "id": "t1",
        "companyId": "c1",
        "name": "Pulpotomías",
        "color": "#DC2626",
        "bgClass": "bg-treatment-red",
        "cost": 1200,
        "isActive": True,
    },
    {
        "id": "t2",
        "companyId": "c1",
        "name": "Blanqueamiento",
        "color": "#FFFFFF",
        "bgClass": "bg-white",
        "cost": 950.5,
        "description": "Whitening of the front teeth",
        "isActive": False,
    },
]


class TestEntries:
    def test_cost_is_decimal(self):
        entry = TreatmentCatalogEntry("Crown", "#EAB308", 1800)
        assert entry.unit_cost == Decimal(1800)
        assert isinstance(entry.unit_cost, Decimal)

    def test_negative_cost_rejected(self):
        with pytest.raises(ValueError):
            TreatmentCatalogEntry("Crown", "#EAB308", -1)

    @pytest.mark.parametrize("cost", ["Infinity", "-Infinity", "NaN", float("inf")])
    def test_non_finite_cost_rejected(self, cost):
        with pytest.raises(ValueError):
            TreatmentCatalogEntry("Crown", "#EAB308", cost)

    def test_from_record(self):
        entry = TreatmentCatalogEntry.from_record(STORE_RECORDS[1])
        assert entry.treatment_id == "t2"
        assert entry.bg_class == "bg-white"
        assert entry.unit_cost == Decimal("950.5")
        assert not entry.is_active

    def test_to_record(self):
        record = TreatmentCatalogEntry.from_record(STORE_RECORDS[0]).to_record()
        assert record["cost"] == 1200
        assert record["bgClass"] == "bg-treatment-red"


class TestCatalog:
    def test_default_palette(self):
        catalog = TreatmentCatalog.default()
        assert len(catalog) == len(DEFAULT_TREATMENTS) == 5
        assert catalog.get_treatment_cost("Extracciones") == Decimal(1000)
        assert catalog.get_by_name("Pulpotomías").color == "#DC2626"

    def test_duplicate_names_rejected(self):
        with pytest.raises(ValueError):
            TreatmentCatalog(
                [
                    TreatmentCatalogEntry("Crown", "#EAB308", 1800),
                    TreatmentCatalogEntry("Crown", "#000000", 10),
                ]
            )

    def test_cost_lookup(self, catalog):
        assert catalog.get_treatment_cost("Crown") == Decimal(1800)
        assert catalog.get_treatment_cost("Missing") == Decimal(0)
        # Inactive entries are delisted for pricing
        assert catalog.get_treatment_cost("Veneer") == Decimal(0)
        assert "Veneer" in catalog

    def test_active_entries_sorted_by_name(self, catalog):
        assert [e.name for e in catalog.active_entries()] == [
            "Bridge",
            "Crown",
            "Extraction",
        ]

    def test_filter_entries(self, catalog):
        assert [e.name for e in catalog.filter_entries(search="cro")] == ["Crown"]
        assert [e.name for e in catalog.filter_entries(is_active=False)] == ["Veneer"]
        assert [
            e.name for e in catalog.filter_entries(min_cost=1000, max_cost=1800)
        ] == ["Crown", "Extraction"]
        assert len(catalog.filter_entries()) == 4

    def test_filter_searches_description(self):
        catalog = TreatmentCatalog.from_records(STORE_RECORDS)
        assert [e.name for e in catalog.filter_entries(search="WHITENING")] == [
            "Blanqueamiento"
        ]


class TestLoadCatalog:
    def test_load(self, tmp_path):
        path = tmp_path / "treatments.json"
        path.write_text(json.dumps(STORE_RECORDS), encoding="utf-8")

        catalog = load_catalog(path)

        assert len(catalog) == 2
        assert catalog.get_treatment_cost("Pulpotomías") == Decimal(1200)

    def test_missing_file(self, tmp_path):
        with pytest.raises(CatalogUnavailableError):
            load_catalog(tmp_path / "nope.json")

    @pytest.mark.parametrize(
        "content",
        ["{not json", json.dumps({"name": "Crown"}), json.dumps([{"name": "Crown"}])],
    )
    def test_malformed(self, tmp_path, content):
        path = tmp_path / "treatments.json"
        path.write_text(content, encoding="utf-8")
        with pytest.raises(CatalogUnavailableError):
            load_catalog(path)

    def test_infinite_cost_in_file(self, tmp_path):
        path = tmp_path / "treatments.json"
        path.write_text(
            '[{"name": "Crown", "color": "#EAB308", "cost": Infinity}]',
            encoding="utf-8",
        )
        with pytest.raises(CatalogUnavailableError):
            load_catalog(path)
