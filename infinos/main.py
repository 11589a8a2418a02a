#!/usr/bin/env python3
"""
INFINOS Backend - bag device API and simulation engine

Startup
-------
  1. Load settings (settings.json + environment / .env overrides).
  2. Build the device store, the simulation registry and the engine.
  3. Serve the HTTP API on a background thread.
  4. After boot_delay seconds, recover simulations for every claimed device.

Shutdown
--------
SIGINT / SIGTERM set the shutdown event. The main thread then stops the HTTP
server, closes the engine to new simulations and stops every running one
(waiting for each tick loop to halt), stops the telemetry publisher and
closes the device store before returning.
"""

import signal
import threading

from werkzeug.serving import make_server

from infinos.controllers import SimulationEngine
from infinos.mqtt_publisher import TelemetryPublisher
from infinos.settings import load_settings
from infinos.simulators import SimulationRegistry
from infinos.store import create_store
from infinos.webapp import create_app


class ApiServer(threading.Thread):
    """Runs the Flask app on a werkzeug server so it can be shut down cleanly."""

    def __init__(self, app, host, port):
        super().__init__(daemon=True, name="api-server")
        self._server = make_server(host, port, app, threaded=True)

    def run(self):
        self._server.serve_forever()

    def shutdown(self):
        self._server.shutdown()


def print_banner(settings):
    server_cfg = settings.get("server", {})
    store_cfg  = settings.get("store", {})
    sim_cfg    = settings.get("simulation", {})
    print("")
    print("=" * 60)
    print("  INFINOS Backend Server Started")
    print("=" * 60)
    print(f"  Port          : {server_cfg.get('port', 8080)}")
    print(f"  Environment   : {settings.get('environment', 'development')}")
    print(f"  Supabase      : {'configured' if store_cfg.get('url') else 'missing (in-memory store)'}")
    print(f"  Tick interval : {sim_cfg.get('tick_interval_ms', 5000)}ms")
    print("=" * 60)
    print("")


def install_signal_handlers(shutdown_event):
    def _on_signal(signum, _frame):
        print(f"\n\n[SYSTEM] Signal {signum} received - shutting down gracefully...")
        shutdown_event.set()

    signal.signal(signal.SIGINT, _on_signal)
    signal.signal(signal.SIGTERM, _on_signal)


def shutdown_services(server, boot_timer, engine, publisher, store):
    """Tear down in order: HTTP server, boot timer, engine, publisher, store."""
    server.shutdown()
    boot_timer.cancel()
    boot_timer.join()
    engine.shutdown()
    publisher.stop()
    close = getattr(store, "close", None)
    if close is not None:
        close()


def main():
    settings   = load_settings()
    sim_cfg    = settings.get("simulation", {})
    server_cfg = settings.get("server", {})

    store     = create_store(settings.get("store", {}), timeout=sim_cfg.get("store_timeout", 5.0))
    registry  = SimulationRegistry()
    publisher = TelemetryPublisher(settings.get("mqtt", {}))
    engine    = SimulationEngine.from_settings(sim_cfg, store, registry, publisher=publisher)

    app    = create_app(engine, settings)
    server = ApiServer(app, server_cfg.get("host", "0.0.0.0"), int(server_cfg.get("port", 8080)))

    shutdown_event = threading.Event()
    install_signal_handlers(shutdown_event)

    publisher.start()
    server.start()
    print_banner(settings)

    print("[SYSTEM] Initializing device simulator...")
    boot_timer = threading.Timer(float(sim_cfg.get("boot_delay", 2.0)), engine.initialize_all_simulations)
    boot_timer.daemon = True
    boot_timer.start()

    # wait() with a timeout keeps the main thread responsive to signals
    while not shutdown_event.wait(0.5):
        pass

    shutdown_services(server, boot_timer, engine, publisher, store)
    print("[SYSTEM] Done.")


if __name__ == "__main__":
    main()
