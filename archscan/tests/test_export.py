"""Tests for JSON export."""

import json

from archscan.export import architecture_to_dict, write_architecture
from archscan.model import Architecture, Component


def _architecture():
    arch = Architecture("shop", "Architecture diagram for shop")
    arch.add_component(Component(id="entity_order", name="Order", kind="entity", layer="domain"))
    arch.add_component(Component(id="service_cart", name="Cart", kind="service", layer="application"))
    arch.create_and_add_relation("service_cart", "entity_order", "depends", "Object Reference")
    arch.add_external_system("stripe", "Stripe", "payment", "REST")
    arch.set_metadata("project_path", "/srv/shop")
    return arch


class TestArchitectureToDict:
    """Tests for the export structure."""

    def test_top_level_fields(self):
        data = architecture_to_dict(_architecture())
        assert data["schema_version"] == "1.0"
        assert data["name"] == "shop"
        assert data["metadata"] == {"project_path": "/srv/shop"}
        assert data["layers"]["domain"] == ["entity", "model", "valueobject"]
        assert "generated" in data

    def test_components_and_relations_in_order(self):
        data = architecture_to_dict(_architecture())
        assert [c["id"] for c in data["components"]] == ["entity_order", "service_cart"]
        assert data["relations"] == [{
            "from": "service_cart",
            "to": "entity_order",
            "kind": "depends",
            "description": "",
            "technology": "Object Reference",
        }]

    def test_side_channels(self):
        data = architecture_to_dict(_architecture())
        assert data["external_systems"]["stripe"]["technology"] == "REST"
        assert data["data_flows"] == []
        assert data["statistics"]["total_external_systems"] == 1


class TestWriteArchitecture:
    """Tests for writing JSON files."""

    def test_creates_parent_dirs(self, tmp_path):
        output = write_architecture(_architecture(), tmp_path / "nested" / "arch.json")
        assert json.loads(output.read_text())["statistics"]["total_relations"] == 1
