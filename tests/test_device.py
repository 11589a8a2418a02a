"""Tests for infinos.components.device - BagDevice record mapping."""
import pytest

from infinos.components import BagDevice, clamp_battery


class TestFromRecord:
    def test_maps_store_columns(self):
        d = BagDevice.from_record({
            "device_code": "BAG1",
            "is_claimed": True,
            "status": False,
            "battery_charge_level": 64,
            "name": "Daypack",
        })
        assert d.code == "BAG1"
        assert d.is_claimed is True
        assert d.status is False
        assert d.battery_level == 64
        assert d.extra == {"name": "Daypack"}

    def test_missing_battery_defaults_to_full(self):
        d = BagDevice.from_record({"device_code": "BAG1", "battery_charge_level": None})
        assert d.battery_level == 100

    def test_out_of_range_battery_clamped(self):
        assert BagDevice.from_record({"device_code": "X", "battery_charge_level": 140}).battery_level == 100
        assert BagDevice.from_record({"device_code": "X", "battery_charge_level": -5}).battery_level == 0


class TestFields:
    def test_round_trip_record_keeps_extra(self):
        record = {
            "device_code": "BAG1",
            "is_claimed": False,
            "status": True,
            "battery_charge_level": 12,
            "bag_type": "tote",
        }
        assert BagDevice.from_record(record).to_record() == record

    def test_with_fields_applies_changes(self):
        d = BagDevice("BAG1", is_claimed=True, status=True, battery_level=5)
        updated = d.with_fields({"battery_charge_level": 0, "status": False})
        assert updated.battery_level == 0
        assert updated.status is False
        assert d.battery_level == 5

    def test_code_is_immutable(self):
        with pytest.raises(ValueError):
            BagDevice("BAG1").with_fields({"device_code": "OTHER"})

    def test_clamp(self):
        assert clamp_battery(101) == 100
        assert clamp_battery(-1) == 0
        assert clamp_battery(55) == 55
