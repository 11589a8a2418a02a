"""Batched MQTT publisher for bag telemetry, running in its own process"""

import json
import multiprocessing
import queue
import time

import paho.mqtt.client as mqtt

STOP_SENTINEL = "__STOP__"


def _publisher_process(config, source_id, q):
    host = config.get("host", "localhost")
    port = int(config.get("port", 1883))
    username = config.get("username")
    password = config.get("password")
    topic = config.get("topic", "infinos/bags/telemetry")
    qos = int(config.get("qos", 1))
    batch_interval = float(config.get("batch_interval", 2.0))
    max_batch = int(config.get("max_batch", 50))

    client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2, client_id=f"infinos-{source_id}")
    if username:
        client.username_pw_set(username, password)

    try:
        client.connect(host, port, 60)
    except Exception as exc:
        print(f"[MQTT] Connection failed: {exc}")
        return

    client.loop_start()

    batch = []
    last_flush = time.monotonic()

    def flush():
        nonlocal batch, last_flush
        if not batch:
            return
        client.publish(topic, build_batch_payload(source_id, batch), qos=qos)
        batch = []
        last_flush = time.monotonic()

    try:
        while True:
            try:
                item = q.get(timeout=0.2)
            except queue.Empty:
                item = None

            if item is None:
                if time.monotonic() - last_flush >= batch_interval:
                    flush()
                continue

            if item == STOP_SENTINEL:
                flush()
                break

            batch.append(item)
            if len(batch) >= max_batch or time.monotonic() - last_flush >= batch_interval:
                flush()
    finally:
        client.loop_stop()
        client.disconnect()


def build_batch_payload(source_id, items):
    return json.dumps({
        "source": source_id,
        "batch": True,
        "items": items,
    })


class TelemetryPublisher:
    """
    Queue-backed telemetry sink shared by all simulation handles.

    enqueue() never blocks a tick: when the queue is full or publishing is
    disabled the record is dropped and counted.
    """

    def __init__(self, config, source_id="backend"):
        self.config = config or {}
        self.source_id = source_id
        self.enabled = bool(self.config.get("enabled", True))
        self.dropped = 0
        self._queue = multiprocessing.Queue(maxsize=1000) if self.enabled else None
        self._process = None

    def start(self):
        if not self.enabled:
            print("[MQTT] Telemetry publishing disabled")
            return
        self._process = multiprocessing.Process(
            target=_publisher_process,
            args=(self.config, self.source_id, self._queue),
            daemon=True
        )
        self._process.start()
        print(f"[MQTT] Publishing telemetry to {self.config.get('topic')}")

    def enqueue(self, item):
        if not self.enabled:
            return
        try:
            self._queue.put_nowait(item)
        except queue.Full:
            self.dropped += 1

    def stop(self):
        if self._process and self._process.is_alive():
            try:
                self._queue.put_nowait(STOP_SENTINEL)
            except queue.Full:
                self._process.terminate()
            self._process.join(timeout=2)
