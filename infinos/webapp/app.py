"""HTTP API for bag devices and their simulations."""

import secrets
from datetime import datetime, timezone

from flask import Flask, jsonify, request

from infinos.errors import (
    AlreadyRunning,
    ConflictError,
    DeviceNotFound,
    NotRunning,
    ShuttingDown,
    StoreUnavailable,
)

# error type -> HTTP status
ERROR_STATUS = {
    DeviceNotFound:   404,
    AlreadyRunning:   409,
    NotRunning:       409,
    ConflictError:    409,
    StoreUnavailable: 503,
    ShuttingDown:     503,
}


def _now():
    return datetime.now(timezone.utc).isoformat()


def _device_json(device):
    record = device.to_record()
    record.pop("device_secret", None)
    return record


def create_app(engine, settings):
    app = Flask(__name__)
    store = engine.store
    environment = settings.get("environment", "development")
    port = settings.get("server", {}).get("port", 8080)
    admin_key = settings.get("admin", {}).get("passkey", "")

    # ========== HOOKS / ERRORS ==========

    @app.before_request
    def log_request():
        print(f"[HTTP] {request.method} {request.path}")

    def _error(exc):
        status = ERROR_STATUS.get(type(exc), 500)
        return jsonify({"error": type(exc).__name__, "message": str(exc)}), status

    for error_type in ERROR_STATUS:
        app.register_error_handler(error_type, _error)

    @app.errorhandler(404)
    def not_found(_exc):
        print(f"[HTTP] 404: {request.method} {request.path}")
        return jsonify({
            "error": "Not Found",
            "message": f"Cannot {request.method} {request.path}",
        }), 404

    @app.errorhandler(500)
    def internal_error(exc):
        cause = getattr(exc, "original_exception", None) or exc
        print(f"[ERROR] {cause}")
        message = "An error occurred" if environment == "production" else str(cause)
        return jsonify({"error": "Internal server error", "message": message}), 500

    # ========== SERVICE ==========

    @app.route("/")
    def index():
        return jsonify({
            "status": "OK",
            "message": "Infinos Backend is running",
            "environment": environment,
            "timestamp": _now(),
        })

    @app.route("/health")
    def health():
        body = {
            "status": "OK",
            "message": "Server is running",
            "environment": environment,
            "port": port,
            "supabaseConnected": bool(settings.get("store", {}).get("url")),
            "timestamp": _now(),
        }
        body.update(engine.status())
        return jsonify(body)

    # ========== SIMULATIONS ==========

    @app.route("/device/simulations")
    def list_simulations():
        return jsonify(engine.status())

    @app.route("/device/simulations/initialize", methods=["POST"])
    def initialize_simulations():
        started = engine.initialize_all_simulations()
        return jsonify({"started": started, **engine.status()})

    @app.route("/device/simulations/stop-all", methods=["POST"])
    def stop_all_simulations():
        stopped = engine.stop_all_simulations()
        return jsonify({"stopped": stopped, **engine.status()})

    @app.route("/device/<code>/simulation/start", methods=["POST"])
    def start_simulation(code):
        engine.start_simulation(code)
        return jsonify({"message": f"Simulation started for {code}", "device_code": code}), 201

    @app.route("/device/<code>/simulation/stop", methods=["POST"])
    def stop_simulation(code):
        engine.stop_simulation(code)
        return jsonify({"message": f"Simulation stopped for {code}", "device_code": code})

    # ========== DEVICES ==========

    @app.route("/device/<code>")
    def get_device(code):
        device = store.get_device(code)
        body = _device_json(device)
        body["simulating"] = code in engine.registry
        return jsonify(body)

    @app.route("/device/<code>/claim", methods=["POST"])
    def claim_device(code):
        device = engine.claim_device(code)
        return jsonify({"message": "Device claimed", "device": _device_json(device)})

    @app.route("/device/<code>/unclaim", methods=["POST"])
    def unclaim_device(code):
        device = engine.unclaim_device(code)
        return jsonify({"message": "Device unclaimed", "device": _device_json(device)})

    @app.route("/device/<code>/power", methods=["POST"])
    def set_power(code):
        payload = request.get_json(silent=True) or {}
        if not isinstance(payload.get("status"), bool):
            return jsonify({"message": "Body must contain boolean 'status'"}), 400
        device = store.update_device(code, {"status": payload["status"]})
        return jsonify({"message": "Power updated", "device": _device_json(device)})

    # ========== ADMIN ==========

    @app.route("/admin/add-device", methods=["POST"])
    def admin_add_device():
        payload = request.get_json(silent=True) or {}
        if payload.get("admin_key") != admin_key:
            print("[HTTP] Invalid admin key")
            return jsonify({"message": "Invalid admin key"}), 403

        name = payload.get("name")
        device_code = payload.get("device_code")
        bag_type = payload.get("bag_type")
        if not name or not device_code or not bag_type:
            return jsonify({"message": "Missing required fields"}), 400

        try:
            store.get_device(device_code)
        except DeviceNotFound:
            pass
        else:
            return jsonify({"message": "Device code already exists"}), 400

        try:
            device = store.create_device({
                "name": name,
                "device_code": device_code,
                "device_secret": secrets.token_hex(16),
                "bag_type": bag_type,
                "status": False,
                "is_claimed": False,
                "battery_charge_level": 100,
            })
        except ConflictError:
            return jsonify({"message": "Device code already exists"}), 400

        print(f"[HTTP] Device created: {name}")
        return jsonify({
            "message": "Device created successfully",
            "device": device.to_record(),
        }), 201

    return app
