#!/usr/bin/env python3
"""
Reader for the kernel IPv4 neighbor (ARP) table.

The table lists every host the kernel has recently resolved, one per line:

    IP address       HW type     Flags       HW address            Mask     Device
    192.168.43.5     0x1         0x2         aa:bb:cc:dd:ee:ff     *        wlan0

Entries linger until the kernel evicts them, which can take minutes, so a
client listed here may already have left the network.
"""

import re
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Union

from loguru import logger

from .models import ApResult, Client

NEIGHBOR_TABLE_PATH = Path("/proc/net/arp")

IP_FIELD = 0
HW_ADDRESS_FIELD = 3
DEVICE_FIELD = 5
MIN_FIELDS = 6

# Shape check only: the all-zero address of incomplete entries still passes
MAC_PATTERN = re.compile(r"[0-9A-Fa-f]{2}(?::[0-9A-Fa-f]{2}){5}")


def parse_neighbor_line(line: str, device: str) -> Optional[Client]:
    """
    Parse one neighbor table line.

    Args:
        line: Raw line from the table
        device: Interface name entries must belong to

    Returns:
        The client on that line, or None if the line is short, belongs to
        another device or has no MAC-shaped hardware address
    """
    parts = line.split()
    if len(parts) < MIN_FIELDS:
        return None

    if parts[DEVICE_FIELD] != device:
        return None

    hw_address = parts[HW_ADDRESS_FIELD]
    if not MAC_PATTERN.fullmatch(hw_address):
        return None

    return Client(ip_address=parts[IP_FIELD], hardware_address=hw_address)


def iter_neighbor_table(lines: Iterable[str], device: str) -> Iterator[Client]:
    """Yield the clients on `device` from neighbor table lines, in table order."""
    for line in lines:
        client = parse_neighbor_line(line, device)
        if client is not None:
            yield client


def parse_neighbor_table(lines: Iterable[str], device: str) -> List[Client]:
    """Parse every line of a neighbor table, keeping entries for `device`."""
    return list(iter_neighbor_table(lines, device))


def read_neighbor_table(
    device: str,
    path: Union[str, Path] = NEIGHBOR_TABLE_PATH,
) -> ApResult[List[Client]]:
    """
    Read the neighbor table and return the clients attached to `device`.

    The table is read fresh on every call. If opening or reading fails, the
    clients collected up to that point are returned as a partial failure.

    Args:
        device: Interface name entries must belong to
        path: Location of the table

    Returns:
        ApResult carrying the list of clients
    """
    clients: List[Client] = []
    try:
        with open(path, "r") as f:
            for client in iter_neighbor_table(f, device):
                clients.append(client)
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Error reading neighbor table {path}: {e}")
        return ApResult.partial(clients, e)

    logger.debug(f"Found {len(clients)} neighbor entries on {device}")
    return ApResult.success(clients)
