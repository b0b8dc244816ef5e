#!/usr/bin/env python3
"""
Tests for settings loading.
"""

import json
from pathlib import Path

import pytest

from ap_control.config import ApControlSettings, load_settings


def test_defaults():
    settings = ApControlSettings()
    assert settings.connection_name == "Hotspot"
    assert settings.interface is None
    assert settings.fallback_device == "wlan0"
    assert settings.neighbor_table_path == Path("/proc/net/arp")
    assert settings.min_platform_version == (1, 0)
    assert settings.max_probe_workers == 32


@pytest.mark.parametrize(
    "kwargs",
    [
        {"probe_timeout_ms": 0},
        {"max_probe_workers": 0},
        {"max_probe_batch": 0},
        {"state_poll_interval": 0},
    ],
)
def test_invalid_values_rejected(kwargs):
    with pytest.raises(ValueError):
        ApControlSettings(**kwargs)


def test_dict_round_trip():
    settings = ApControlSettings(interface="wlp2s0", probe_timeout_ms=500)
    data = settings.to_dict()
    assert data["neighbor_table_path"] == "/proc/net/arp"
    assert data["min_platform_version"] == [1, 0]
    json.dumps(data)
    assert ApControlSettings.from_dict(data) == settings


def test_unknown_keys_ignored():
    settings = ApControlSettings.from_dict({"connection_name": "Lab", "colour": "blue"})
    assert settings.connection_name == "Lab"


def test_load_from_file(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({
        "connection_name": "Field",
        "neighbor_table_path": str(tmp_path / "arp"),
        "min_platform_version": [1, 20],
    }))
    settings = load_settings(path)
    assert settings.connection_name == "Field"
    assert settings.neighbor_table_path == tmp_path / "arp"
    assert settings.min_platform_version == (1, 20)


def test_missing_file_gives_defaults(tmp_path):
    assert load_settings(tmp_path / "absent.json") == ApControlSettings()


@pytest.mark.parametrize(
    "content",
    ["{not json", "[1, 2]", '{"probe_timeout_ms": -5}', '{"min_platform_version": "x.y"}'],
)
def test_broken_file_gives_defaults(tmp_path, content):
    path = tmp_path / "settings.json"
    path.write_text(content)
    assert load_settings(path) == ApControlSettings()
