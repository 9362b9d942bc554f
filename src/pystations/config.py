"""Client configuration for pystations."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pystations._constants import DEFAULT_CENTER, DEFAULT_COLLECTION, DEFAULT_ZOOM, FOCUS_ZOOM
from pystations.exceptions import StationsConfigError
from pystations.models.station import DeletionPolicy


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_center(value: str) -> tuple[float, float]:
    lat_text, sep, lng_text = value.partition(",")
    if not sep:
        raise StationsConfigError(f"PYSTATIONS_DEFAULT_CENTER must be 'lat,lng', got {value!r}")
    try:
        return float(lat_text), float(lng_text)
    except ValueError as exc:
        raise StationsConfigError(f"PYSTATIONS_DEFAULT_CENTER must be 'lat,lng', got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class StationsConfig:
    """Client configuration.

    Parameters
    ----------
    base_url : str
        Base URL of the document store REST gateway.
    collection : str
        Logical collection holding station documents.
    api_key : str or None
        Static API key sent as ``X-Api-Key``.  Operator ID tokens take
        precedence when a session is attached.
    deletion_policy : DeletionPolicy
        ``soft`` flips ``isActive`` to false and hides the record from the
        default query; ``hard`` removes the document.  One policy per
        deployment.
    request_timeout : float
        Seconds allowed for each create/get/update/delete call.
    mqtt_enabled : bool
        Receive change notifications over MQTT.  When disabled the live
        cache only ever holds the initial snapshot.
    mqtt_host : str
        Change-feed broker host.
    mqtt_port : int
        Change-feed broker port.
    mqtt_topic_prefix : str
        Notifications for a collection arrive on ``<prefix>/<collection>``.
    mqtt_keepalive : int
        MQTT keepalive in seconds.
    mqtt_tls : bool
        Connect to the broker over TLS.
    default_center : tuple of float
        Map center (latitude, longitude) before any selection.
    default_zoom : int
        Map zoom before any selection.
    focus_zoom : int
        Map zoom used when panning to a selected station.
    page_size : int
        Table page size.
    search_limit : int
        Result cap for prefix searches.
    nearby_radius_km : float
        Default radius for nearby searches.
    """

    base_url: str = "http://localhost:8080/v1"
    collection: str = DEFAULT_COLLECTION
    api_key: str | None = None
    deletion_policy: DeletionPolicy = DeletionPolicy.SOFT
    request_timeout: float = 10.0
    mqtt_enabled: bool = True
    mqtt_host: str = "localhost"
    mqtt_port: int = 1883
    mqtt_topic_prefix: str = "changes"
    mqtt_keepalive: int = 60
    mqtt_tls: bool = False
    default_center: tuple[float, float] = DEFAULT_CENTER
    default_zoom: int = DEFAULT_ZOOM
    focus_zoom: int = FOCUS_ZOOM
    page_size: int = 10
    search_limit: int = 10
    nearby_radius_km: float = 10.0

    def __post_init__(self) -> None:
        # Accept plain strings for the policy (env vars, overrides).
        try:
            policy = DeletionPolicy(self.deletion_policy)
        except ValueError as exc:
            raise StationsConfigError(f"Unknown deletion policy: {self.deletion_policy!r}") from exc
        object.__setattr__(self, "deletion_policy", policy)

        if not self.collection.strip():
            raise StationsConfigError("collection must be non-empty")
        if self.request_timeout <= 0:
            raise StationsConfigError(f"request_timeout must be positive, got {self.request_timeout}")
        if self.page_size < 1:
            raise StationsConfigError(f"page_size must be >= 1, got {self.page_size}")
        if self.search_limit < 1:
            raise StationsConfigError(f"search_limit must be >= 1, got {self.search_limit}")

    @property
    def mqtt_topic(self) -> str:
        """Topic carrying change notifications for the configured collection."""
        return f"{self.mqtt_topic_prefix.rstrip('/')}/{self.collection}"

    @classmethod
    def from_env(cls, **overrides: Any) -> StationsConfig:
        """Create configuration from environment variables.

        Reads optional ``PYSTATIONS_*`` variables.  Explicit keyword
        arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        StationsConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "PYSTATIONS_BASE_URL": "base_url",
            "PYSTATIONS_COLLECTION": "collection",
            "PYSTATIONS_API_KEY": "api_key",
            "PYSTATIONS_DELETION_POLICY": "deletion_policy",
            "PYSTATIONS_MQTT_HOST": "mqtt_host",
            "PYSTATIONS_MQTT_TOPIC_PREFIX": "mqtt_topic_prefix",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        _ENV_NUMERIC_MAP: dict[str, tuple[str, type]] = {
            "PYSTATIONS_REQUEST_TIMEOUT": ("request_timeout", float),
            "PYSTATIONS_MQTT_PORT": ("mqtt_port", int),
            "PYSTATIONS_MQTT_KEEPALIVE": ("mqtt_keepalive", int),
            "PYSTATIONS_DEFAULT_ZOOM": ("default_zoom", int),
            "PYSTATIONS_FOCUS_ZOOM": ("focus_zoom", int),
            "PYSTATIONS_PAGE_SIZE": ("page_size", int),
            "PYSTATIONS_SEARCH_LIMIT": ("search_limit", int),
            "PYSTATIONS_NEARBY_RADIUS_KM": ("nearby_radius_km", float),
        }
        for env_key, (field_name, cast) in _ENV_NUMERIC_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = cast(val)
            except ValueError as exc:
                raise StationsConfigError(f"{env_key} is not a valid {cast.__name__}: {val!r}") from exc

        center_env = env.get("PYSTATIONS_DEFAULT_CENTER")
        if center_env is not None and "default_center" not in overrides:
            config_kwargs["default_center"] = _env_center(center_env)

        if "mqtt_enabled" not in overrides:
            config_kwargs["mqtt_enabled"] = _env_bool(env.get("PYSTATIONS_MQTT_ENABLED"), True)
        if "mqtt_tls" not in overrides:
            config_kwargs["mqtt_tls"] = _env_bool(env.get("PYSTATIONS_MQTT_TLS"), False)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
