#!/usr/bin/env python3
"""
Access Point Control

Controls the device's Wi-Fi access point (soft-AP) and discovers the clients
attached to it. The soft-AP primitives are bound from a platform adapter at
runtime, so unsupported platforms are detected instead of assumed away.

Features:
- Capability detection for the soft-AP primitives
- Wireless interface lookup by hardware address
- AP state, configuration and on/off control with state normalization
- Local AP address lookup and client discovery from the neighbor table
- Concurrent reachability probing of clients
"""

import sys

from loguru import logger

from .models import (
    ApConfiguration,
    ApResult,
    ApState,
    Client,
    CommandResult,
    NetworkInterface,
    Outcome,
    normalize_state,
)
from .exceptions import ApControlError, PlatformCommandError, UnsupportedOperationError
from .capabilities import ApPlatform, CapabilitySet, bind_capabilities
from .interfaces import mac_to_bytes, mac_to_int, match_wifi_interface, resolve_wifi_device
from .neighbor_table import iter_neighbor_table, parse_neighbor_table, read_neighbor_table
from .reachability import ProbeHandle, ReachabilityProber, icmp_echo
from .config import ApControlSettings, load_settings
from .ap_controller import ApControl
from .platform_nmcli import NmcliPlatform
from .fake_platform import FakePlatform

# Module metadata
__version__ = "1.0.0"
__license__ = "GPL-3.0-or-later"


def _check_platform_support() -> bool:
    """
    Check if the current platform supports access point control.

    Returns:
        True if running on Linux, False otherwise
    """
    return sys.platform.startswith("linux")


def get_tool_info() -> dict:
    """
    Get metadata about the access point control module.

    Returns:
        Dictionary containing module information including name, version,
        description, platform support and available functions
    """
    return {
        "name": "ap_control",
        "version": __version__,
        "description": "Wi-Fi access point control and client discovery",
        "license": __license__,
        "supported": _check_platform_support(),
        "platform": ["linux"],
        "functions": [
            "is_supported",
            "is_enabled",
            "get_state",
            "get_configuration",
            "set_enabled",
            "enable",
            "disable",
            "wait_for_state",
            "monitor_state",
            "get_local_address",
            "get_clients",
            "probe_async",
            "probe_all",
        ],
        "requirements": [
            "NetworkManager",
            "nmcli",
            "ping",
        ],
    }


__all__ = [
    'ApControl',
    'ApControlError',
    'ApControlSettings',
    'ApConfiguration',
    'ApPlatform',
    'ApResult',
    'ApState',
    'CapabilitySet',
    'Client',
    'CommandResult',
    'FakePlatform',
    'NetworkInterface',
    'NmcliPlatform',
    'Outcome',
    'PlatformCommandError',
    'ProbeHandle',
    'ReachabilityProber',
    'UnsupportedOperationError',
    'bind_capabilities',
    'get_tool_info',
    'icmp_echo',
    'iter_neighbor_table',
    'load_settings',
    'logger',
    'mac_to_bytes',
    'mac_to_int',
    'match_wifi_interface',
    'normalize_state',
    'parse_neighbor_table',
    'read_neighbor_table',
    'resolve_wifi_device',
]
