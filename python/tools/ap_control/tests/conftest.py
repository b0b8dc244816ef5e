#!/usr/bin/env python3
"""
Shared fixtures for the access point controller tests.
"""

from pathlib import Path
from typing import List

import pytest

from ap_control.ap_controller import ApControl
from ap_control.config import ApControlSettings
from ap_control.fake_platform import FakePlatform
from ap_control.models import ApConfiguration, ApState, NetworkInterface

WIFI_MAC = "02:11:22:33:44:55"

REACHABLE_IPS = {"192.168.43.5"}

ARP_TABLE = """\
IP address       HW type     Flags       HW address            Mask     Device
192.168.43.5     0x1         0x2         aa:bb:cc:dd:ee:ff     *        wlan0
192.168.43.6     0x1         0x2         11:22:33:44:55:66     *        wlan0
192.168.43.7     0x1         0x0         00:00:00:00:00:00     *        wlan0
10.0.0.2         0x1         0x2         de:ad:be:ef:00:01     *        eth0
"""


@pytest.fixture
def interfaces() -> List[NetworkInterface]:
    """Loopback, a wired interface and the wireless radio."""
    return [
        NetworkInterface("lo", "00:00:00:00:00:00", ["127.0.0.1", "::1"]),
        NetworkInterface("eth0", "de:ad:be:ef:00:02", ["10.0.0.1"]),
        NetworkInterface("wlan0", WIFI_MAC.upper(), ["192.168.43.1", "fe80::1%wlan0"]),
    ]


@pytest.fixture
def ap_config() -> ApConfiguration:
    return ApConfiguration(ssid="TestAP", pre_shared_key="secretpass")


@pytest.fixture
def platform(interfaces, ap_config) -> FakePlatform:
    """A supported platform with the AP running."""
    return FakePlatform(
        wifi_mac=WIFI_MAC,
        interfaces=interfaces,
        state=ApState.ENABLED,
        configuration=ap_config,
    )


@pytest.fixture
def arp_file(tmp_path: Path) -> Path:
    """Neighbor table with three wlan0 entries and one eth0 entry."""
    path = tmp_path / "arp"
    path.write_text(ARP_TABLE)
    return path


@pytest.fixture
def settings(arp_file: Path) -> ApControlSettings:
    return ApControlSettings(
        neighbor_table_path=arp_file,
        state_poll_interval=0.01,
        probe_timeout_ms=50,
    )


def fake_check(ip_address: str, timeout_ms: int) -> bool:
    """Reachability check answering only for REACHABLE_IPS."""
    return ip_address in REACHABLE_IPS


@pytest.fixture
def make_control(settings):
    """Factory building a controller around any platform with the test settings."""

    def factory(platform: FakePlatform) -> ApControl:
        return ApControl(platform, settings, reachability_check=fake_check)

    return factory


@pytest.fixture
def control(platform, make_control) -> ApControl:
    return make_control(platform)
