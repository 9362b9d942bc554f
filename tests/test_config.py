from __future__ import annotations

import pytest

from pystations.config import StationsConfig
from pystations.exceptions import StationsConfigError
from pystations.models.station import DeletionPolicy


def test_defaults() -> None:
    config = StationsConfig()
    assert config.collection == "stations"
    assert config.deletion_policy is DeletionPolicy.SOFT
    assert config.default_center == (33.5731, -7.5898)
    assert config.default_zoom == 12
    assert config.focus_zoom == 15
    assert config.mqtt_topic == "changes/stations"


def test_from_env_reads_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PYSTATIONS_BASE_URL", "https://store.example/v1")
    monkeypatch.setenv("PYSTATIONS_DELETION_POLICY", "hard")
    monkeypatch.setenv("PYSTATIONS_REQUEST_TIMEOUT", "2.5")
    monkeypatch.setenv("PYSTATIONS_DEFAULT_CENTER", "34.0209,-6.8416")
    monkeypatch.setenv("PYSTATIONS_MQTT_ENABLED", "off")
    monkeypatch.setenv("PYSTATIONS_MQTT_TOPIC_PREFIX", "prod/changes/")

    config = StationsConfig.from_env()

    assert config.base_url == "https://store.example/v1"
    assert config.deletion_policy is DeletionPolicy.HARD
    assert config.request_timeout == 2.5
    assert config.default_center == (34.0209, -6.8416)
    assert config.mqtt_enabled is False
    assert config.mqtt_topic == "prod/changes/stations"


def test_overrides_win_over_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PYSTATIONS_PAGE_SIZE", "50")
    monkeypatch.setenv("PYSTATIONS_DELETION_POLICY", "hard")

    config = StationsConfig.from_env(page_size=5, deletion_policy="soft")

    assert config.page_size == 5
    assert config.deletion_policy is DeletionPolicy.SOFT


@pytest.mark.parametrize(
    ("key", "value"),
    [
        ("PYSTATIONS_MQTT_PORT", "not-a-port"),
        ("PYSTATIONS_DEFAULT_CENTER", "33.5"),
        ("PYSTATIONS_DELETION_POLICY", "archive"),
        ("PYSTATIONS_PAGE_SIZE", "0"),
    ],
)
def test_invalid_env_values_raise_config_error(monkeypatch: pytest.MonkeyPatch, key: str, value: str) -> None:
    monkeypatch.setenv(key, value)
    with pytest.raises(StationsConfigError):
        StationsConfig.from_env()


def test_non_positive_timeout_rejected() -> None:
    with pytest.raises(StationsConfigError):
        StationsConfig(request_timeout=0)
