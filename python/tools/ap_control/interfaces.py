#!/usr/bin/env python3
"""
Network interface helpers: MAC parsing, interface enumeration and the
lookup of the interface that belongs to the wireless radio.
"""

import re
import socket
from typing import Iterable, List, Optional, Tuple

import psutil
from loguru import logger

from .models import NetworkInterface

FALLBACK_WIFI_DEVICE = "wlan0"

# Oldest platform version whose interface data can be matched by MAC
MIN_RESOLVE_VERSION: Tuple[int, ...] = (1, 0)

_MAC_SEPARATORS = re.compile(r"[:\s-]+")


def mac_to_bytes(mac: str) -> bytes:
    """
    Convert a MAC address string to its six raw bytes.

    Octets may be separated by colons, hyphens or whitespace and use either
    case, so "aa:bb:cc:dd:ee:ff" and "AA-BB-CC-DD-EE-FF" give the same bytes.

    Raises:
        ValueError: If the text is not six hexadecimal octets
    """
    octets = _MAC_SEPARATORS.split(mac.strip())
    if len(octets) != 6:
        raise ValueError(f"Expected 6 octets in MAC address: {mac!r}")
    try:
        values = [int(octet, 16) for octet in octets]
    except ValueError:
        raise ValueError(f"Invalid hex octet in MAC address: {mac!r}") from None
    if any(not 0 <= value <= 0xFF for value in values):
        raise ValueError(f"Octet out of range in MAC address: {mac!r}")
    return bytes(values)


def mac_to_int(mac: str) -> int:
    """Big-endian integer value of a MAC address string."""
    return int.from_bytes(mac_to_bytes(mac), "big")


def match_wifi_interface(
    wifi_mac: str,
    interfaces: Iterable[NetworkInterface],
    fallback: str = FALLBACK_WIFI_DEVICE,
) -> str:
    """
    Find the interface whose hardware address is the wireless MAC.

    Args:
        wifi_mac: Hardware address of the wireless radio
        interfaces: Interfaces in enumeration order
        fallback: Name returned when nothing matches

    Returns:
        Name of the first matching interface, or `fallback`
    """
    wanted = mac_to_int(wifi_mac)
    for iface in interfaces:
        if not iface.hardware_address:
            continue
        try:
            current = mac_to_int(iface.hardware_address)
        except ValueError:
            logger.debug(
                f"Skipping {iface.name}: unparsable hardware address {iface.hardware_address!r}"
            )
            continue
        if current == wanted:
            return iface.name

    logger.warning(f"None found - falling back to the default wifi device name: {fallback}")
    return fallback


def resolve_wifi_device(
    platform,
    fallback: str = FALLBACK_WIFI_DEVICE,
    min_version: Tuple[int, ...] = MIN_RESOLVE_VERSION,
) -> str:
    """
    Work out the name of the wireless interface on a platform.

    Platforms older than `min_version` are not scanned at all. Any error
    while reading the MAC or listing interfaces yields the fallback name.

    Args:
        platform: ApPlatform adapter
        fallback: Name used when resolution is skipped or fails
        min_version: Oldest platform version that is scanned

    Returns:
        Interface name of the wireless radio
    """
    try:
        version = tuple(platform.platform_version())
    except Exception as e:
        logger.error(f"Could not read platform version: {e}")
        return fallback

    if version < tuple(min_version):
        logger.warning(
            f"Older platform {version} - falling back to the default wifi device name: {fallback}"
        )
        return fallback

    try:
        wifi_mac = platform.get_wifi_mac_address()
        interfaces = platform.list_interfaces()
        return match_wifi_interface(wifi_mac, interfaces, fallback)
    except Exception as e:
        logger.error(f"Wifi device resolution failed: {e}")
        return fallback


def list_network_interfaces() -> List[NetworkInterface]:
    """
    Enumerate local interfaces with psutil.

    Returns:
        One NetworkInterface per interface, with its link-layer address
        (if any) and its IPv4/IPv6 addresses
    """
    interfaces = []
    for name, addrs in psutil.net_if_addrs().items():
        hardware_address: Optional[str] = None
        addresses = []
        for addr in addrs:
            if addr.family == psutil.AF_LINK:
                hardware_address = addr.address or None
            elif addr.family in (socket.AF_INET, socket.AF_INET6):
                addresses.append(addr.address)
        interfaces.append(
            NetworkInterface(
                name=name,
                hardware_address=hardware_address,
                addresses=addresses,
            )
        )
    return interfaces
