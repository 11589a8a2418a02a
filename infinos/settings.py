import json
import os

from dotenv import load_dotenv

# env var -> (section, key, cast)
ENV_OVERRIDES = {
    "SUPABASE_URL":         ("store", "url", str),
    "SUPABASE_KEY":         ("store", "key", str),
    "SUPABASE_TABLE":       ("store", "table", str),
    "STORE_BACKEND":        ("store", "backend", str),
    "PORT":                 ("server", "port", int),
    "ADMIN_PASSKEY":        ("admin", "passkey", str),
    "SIM_TICK_INTERVAL_MS": ("simulation", "tick_interval_ms", int),
    "SIM_BOOT_DELAY":       ("simulation", "boot_delay", float),
    "STORE_TIMEOUT":        ("simulation", "store_timeout", float),
    "MQTT_ENABLED":         ("mqtt", "enabled", lambda v: v.lower() in ("1", "true", "yes")),
    "MQTT_HOST":            ("mqtt", "host", str),
    "MQTT_PORT":            ("mqtt", "port", int),
    "INFLUX_URL":           ("influx", "url", str),
    "INFLUX_TOKEN":         ("influx", "token", str),
}


def load_settings(filePath='settings.json', environ=None):
    if not os.path.isabs(filePath):
        base_dir = os.path.dirname(os.path.abspath(__file__))
        filePath = os.path.join(base_dir, filePath)
    with open(filePath, 'r') as f:
        settings = json.load(f)

    if environ is None:
        load_dotenv()
        environ = os.environ
    apply_env_overrides(settings, environ)
    return settings


def apply_env_overrides(settings, environ):
    """Overlay environment variables (and .env entries) onto loaded settings."""
    env_name = environ.get("APP_ENV") or environ.get("NODE_ENV")
    if env_name:
        settings["environment"] = env_name

    for var, (section, key, cast) in ENV_OVERRIDES.items():
        raw = environ.get(var)
        if raw is None or raw == "":
            continue
        try:
            settings.setdefault(section, {})[key] = cast(raw)
        except ValueError:
            print(f"[SETTINGS] Ignoring invalid {var}={raw!r}")
    return settings
