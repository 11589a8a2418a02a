"""Collector: bag telemetry from MQTT into InfluxDB"""

import json

import paho.mqtt.client as mqtt
from influxdb_client import InfluxDBClient, Point, WriteOptions

from infinos.settings import load_settings

MEASUREMENT = "bag"


def _normalize_value(value):
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)
    return None


def telemetry_points(data):
    """Turn one decoded MQTT payload (single record or batch) into Influx points."""
    items = data.get("items") if isinstance(data, dict) else None
    if items is None:
        items = [data]

    points = []
    for item in items:
        if not isinstance(item, dict) or not item.get("device"):
            continue

        point = Point(MEASUREMENT)\
            .tag("device", item["device"])\
            .tag("sensor", item.get("sensor") or "unknown")\
            .tag("state", item.get("state") or "unknown")\
            .tag("simulated", str(item.get("simulated", False)).lower())

        raw_value = item.get("value")
        if isinstance(raw_value, dict):
            for k, v in raw_value.items():
                norm = _normalize_value(v)
                if norm is not None:
                    point.field(k, norm)
                else:
                    point.field(k, str(v))
        elif raw_value is not None:
            normalized = _normalize_value(raw_value)
            if normalized is not None:
                point.field("value", normalized)
            else:
                point.field("value_str", str(raw_value))
        else:
            continue

        ts = item.get("ts")
        if ts:
            point.time(int(ts * 1_000_000_000))

        points.append(point)
    return points


def main():
    all_settings = load_settings()
    mqtt_cfg = all_settings.get("mqtt", {})
    influx_cfg = all_settings.get("influx", {})

    host = mqtt_cfg.get("host", "localhost")
    port = int(mqtt_cfg.get("port", 1883))
    username = mqtt_cfg.get("username")
    password = mqtt_cfg.get("password")
    topic = mqtt_cfg.get("topic", "infinos/bags/telemetry")

    url = influx_cfg.get("url", "http://localhost:8086")
    token = influx_cfg.get("token", "")
    org = influx_cfg.get("org", "infinos")
    bucket = influx_cfg.get("bucket", "bags")

    client = InfluxDBClient(url=url, token=token, org=org)
    write_api = client.write_api(write_options=WriteOptions(batch_size=500, flush_interval=1000))

    def on_connect(client, userdata, flags, reason_code, properties):
        if reason_code.is_failure:
            print(f"[SERVER] MQTT connection failed: {reason_code}")
            return
        print("[SERVER] MQTT connected")
        client.subscribe(topic)

    def on_message(client, userdata, msg):
        try:
            data = json.loads(msg.payload.decode("utf-8"))
        except ValueError:
            print(f"[WARN] Dropping undecodable payload on {msg.topic}")
            return

        points = telemetry_points(data)
        if points:
            write_api.write(bucket=bucket, org=org, record=points)

    mqtt_client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2)
    if username:
        mqtt_client.username_pw_set(username, password)

    mqtt_client.on_connect = on_connect
    mqtt_client.on_message = on_message

    mqtt_client.connect(host, port, 60)
    print("[SERVER] Listening for bag telemetry...")
    try:
        mqtt_client.loop_forever()
    except KeyboardInterrupt:
        pass
    finally:
        mqtt_client.disconnect()
        write_api.flush()
        client.close()


if __name__ == "__main__":
    main()
