"""Client configuration for pyyoda."""

from __future__ import annotations

import dataclasses
import json
import os
from pathlib import Path
from typing import Any

from pyyoda._constants import (
    DEFAULT_BUS_HOST,
    DEFAULT_BUS_PORT,
    DEFAULT_LED_COUNT,
    DEFAULT_PROFILE_PATH,
    EVENT_REQUEST_URI,
    HFP_DESTROY_GRACE_SECONDS,
)
from pyyoda.exceptions import YodaConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class DeviceProfile:
    """Device identity used to sign cloud event requests.

    These correspond to the fields of the device's openvoice profile
    (``/data/system/openvoice_profile.json``).
    """

    key: str = ""
    secret: str = ""
    device_type_id: str = ""
    device_id: str = ""
    api_version: str = "1"


@dataclasses.dataclass(frozen=True)
class YodaConfig:
    """Library configuration.

    Parameters
    ----------
    device_name : str
        Local Bluetooth display name advertised by ``BluetoothHfp.open()``.
    bus_host : str
        Message bus broker host.
    bus_port : int
        Message bus broker port.
    bus_client_id : str
        Client identifier used on the bus. Empty lets the broker assign one.
    bus_keepalive : int
        Bus keepalive in seconds.
    bus_reconnect_interval : float
        Upper bound in seconds between bus reconnect attempts.
    hfp_destroy_grace : float
        Seconds between ``close()`` and resource release on ``destroy()``.
    hfp_rules_path : str or None
        Optional JSON file replacing the built-in HFP state rule table.
    event_req_host : str
        Host of the skill event dispatch endpoint.
    event_req_uri : str
        Path of the skill event dispatch endpoint.
    event_req_timeout : float
        Total timeout in seconds for a single event request.
    audio_device : str or None
        Output device for WAV playback (``None`` for the system default).
    led_device_path : str
        Character device (or file) receiving raw RGB frames.
    led_count : int
        Number of LEDs on the ring.
    api_trace_enabled : bool
        Log redacted request/response bodies at DEBUG level.
    device : DeviceProfile
        Credentials used to sign event requests.
    """

    device_name: str = "yoda"
    bus_host: str = DEFAULT_BUS_HOST
    bus_port: int = DEFAULT_BUS_PORT
    bus_client_id: str = ""
    bus_keepalive: int = 60
    bus_reconnect_interval: float = 10.0
    hfp_destroy_grace: float = HFP_DESTROY_GRACE_SECONDS
    hfp_rules_path: str | None = None
    event_req_host: str = ""
    event_req_uri: str = EVENT_REQUEST_URI
    event_req_timeout: float = 10.0
    audio_device: str | None = None
    led_device_path: str = "/dev/leds"
    led_count: int = DEFAULT_LED_COUNT
    api_trace_enabled: bool = False
    device: DeviceProfile = dataclasses.field(default_factory=DeviceProfile)

    @property
    def event_req_url(self) -> str:
        if not self.event_req_host:
            raise YodaConfigError("event_req_host is not configured")
        return f"https://{self.event_req_host}{self.event_req_uri}"

    @classmethod
    def from_env(cls, **overrides: Any) -> YodaConfig:
        """Create configuration from environment variables.

        Reads optional ``YODA_*`` variables. Explicit keyword arguments
        override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        YodaConfig
            Populated configuration.
        """
        env = os.environ

        device_kwargs: dict[str, str] = {}
        _ENV_DEVICE_MAP = {
            "YODA_KEY": "key",
            "YODA_SECRET": "secret",
            "YODA_DEVICE_TYPE_ID": "device_type_id",
            "YODA_DEVICE_ID": "device_id",
            "YODA_API_VERSION": "api_version",
        }
        for env_key, field_name in _ENV_DEVICE_MAP.items():
            val = env.get(env_key)
            if val is not None:
                device_kwargs[field_name] = val

        device_overrides = overrides.pop("device", None)
        if isinstance(device_overrides, dict):
            device_kwargs.update(device_overrides)
        elif isinstance(device_overrides, DeviceProfile):
            device_kwargs = dataclasses.asdict(device_overrides)

        device = DeviceProfile(**device_kwargs) if device_kwargs else DeviceProfile()

        _ENV_CONFIG_MAP = {
            "YODA_DEVICE_NAME": "device_name",
            "YODA_BUS_HOST": "bus_host",
            "YODA_BUS_CLIENT_ID": "bus_client_id",
            "YODA_HFP_RULES_PATH": "hfp_rules_path",
            "YODA_EVENT_REQ_HOST": "event_req_host",
            "YODA_EVENT_REQ_URI": "event_req_uri",
            "YODA_AUDIO_DEVICE": "audio_device",
            "YODA_LED_DEVICE_PATH": "led_device_path",
        }
        config_kwargs: dict[str, Any] = {"device": device}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        _ENV_NUMERIC_MAP: dict[str, tuple[str, type]] = {
            "YODA_BUS_PORT": ("bus_port", int),
            "YODA_BUS_KEEPALIVE": ("bus_keepalive", int),
            "YODA_BUS_RECONNECT_INTERVAL": ("bus_reconnect_interval", float),
            "YODA_HFP_DESTROY_GRACE": ("hfp_destroy_grace", float),
            "YODA_EVENT_REQ_TIMEOUT": ("event_req_timeout", float),
            "YODA_LED_COUNT": ("led_count", int),
        }
        for env_key, (field_name, caster) in _ENV_NUMERIC_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = caster(val)
            except ValueError as exc:
                raise YodaConfigError(f"{env_key} must be numeric, got {val!r}") from exc

        if "api_trace_enabled" not in overrides:
            config_kwargs["api_trace_enabled"] = _env_bool(
                env.get("YODA_API_TRACE_ENABLED"),
                False,
            )

        config_kwargs.update(overrides)

        return cls(**config_kwargs)

    @classmethod
    def from_profile(cls, path: str | Path = DEFAULT_PROFILE_PATH, **overrides: Any) -> YodaConfig:
        """Create configuration from the device's openvoice profile JSON.

        The profile supplies ``event_req_host`` and the signing credentials
        (``key``, ``secret``, ``device_type_id``, ``device_id``,
        ``api_version``). Profile values win over ``YODA_*`` environment
        variables; explicit *overrides* win over both.
        """
        profile_path = Path(path)
        try:
            profile = json.loads(profile_path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise YodaConfigError(f"Cannot read profile {profile_path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise YodaConfigError(f"Profile {profile_path} is not valid JSON: {exc}") from exc
        if not isinstance(profile, dict):
            raise YodaConfigError(f"Profile {profile_path} must contain a JSON object")

        device_kwargs = {
            field_name: str(profile[field_name])
            for field_name in ("key", "secret", "device_type_id", "device_id", "api_version")
            if profile.get(field_name) is not None
        }
        device_overrides = overrides.pop("device", None)
        if isinstance(device_overrides, dict):
            device_kwargs.update(device_overrides)
        elif isinstance(device_overrides, DeviceProfile):
            device_kwargs = dataclasses.asdict(device_overrides)

        host = profile.get("event_req_host")
        if isinstance(host, str) and host and "event_req_host" not in overrides:
            overrides["event_req_host"] = host

        return cls.from_env(device=device_kwargs, **overrides)
