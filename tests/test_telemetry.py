"""Tests for telemetry publishing and the Influx collector payload mapping."""
import json

from infinos.collector.mqtt_influx_server import telemetry_points
from infinos.mqtt_publisher import TelemetryPublisher, build_batch_payload

ITEM = {
    "device": "A",
    "source": "simulator",
    "sensor": "BATTERY",
    "value": {"battery_level": 42, "status": True},
    "state": "RUNNING",
    "simulated": True,
    "ts": 1_700_000_000.0,
}


class TestPublisher:
    def test_disabled_publisher_drops_silently(self):
        pub = TelemetryPublisher({"enabled": False})
        pub.start()
        pub.enqueue(ITEM)
        pub.stop()
        assert pub.dropped == 0

    def test_batch_payload(self):
        payload = json.loads(build_batch_payload("backend", [ITEM]))
        assert payload["batch"] is True
        assert payload["items"] == [ITEM]


class TestCollectorPoints:
    def test_single_item(self):
        points = telemetry_points(ITEM)
        assert len(points) == 1
        line = points[0].to_line_protocol()
        assert line.startswith("bag,")
        assert "device=A" in line
        assert "state=RUNNING" in line
        assert "battery_level=42" in line
        assert "status=1" in line

    def test_batch(self):
        other = dict(ITEM, device="B", state="OFF")
        assert len(telemetry_points({"batch": True, "items": [ITEM, other]})) == 2

    def test_items_without_device_skipped(self):
        assert telemetry_points({"items": [{"value": 1}, "junk"]}) == []
