#!/usr/bin/env python3
"""
Tests for the neighbor table reader.
"""

from unittest.mock import mock_open, patch

from ap_control.models import Client, Outcome
from ap_control.neighbor_table import (
    iter_neighbor_table,
    parse_neighbor_line,
    parse_neighbor_table,
    read_neighbor_table,
)

HEADER = "IP address       HW type     Flags       HW address            Mask     Device"


def test_matching_line_yields_client():
    line = "192.168.43.5 0x1 0x2 aa:bb:cc:dd:ee:ff 0x0 wlan0"
    assert parse_neighbor_line(line, "wlan0") == Client(
        ip_address="192.168.43.5", hardware_address="aa:bb:cc:dd:ee:ff"
    )


def test_other_device_is_excluded():
    line = "192.168.43.5 0x1 0x2 aa:bb:cc:dd:ee:ff 0x0 eth0"
    assert parse_neighbor_line(line, "wlan0") is None


def test_device_must_match_exactly():
    line = "192.168.43.5 0x1 0x2 aa:bb:cc:dd:ee:ff 0x0 wlan0.1"
    assert parse_neighbor_line(line, "wlan0") is None


def test_short_line_is_excluded():
    assert parse_neighbor_line("192.168.43.5 0x1 0x2 aa:bb:cc:dd:ee:ff wlan0", "wlan0") is None
    assert parse_neighbor_line("", "wlan0") is None


def test_all_zero_mac_is_included():
    """The shape check does not filter incomplete entries."""
    line = "192.168.43.7 0x1 0x0 00:00:00:00:00:00 * wlan0"
    assert parse_neighbor_line(line, "wlan0") == Client("192.168.43.7", "00:00:00:00:00:00")


def test_malformed_mac_is_excluded():
    for mac in ["aa:bb:cc:dd:ee", "aa-bb-cc-dd-ee-ff", "gg:bb:cc:dd:ee:ff", "aa:bb:cc:dd:ee:ff:00"]:
        line = f"192.168.43.5 0x1 0x2 {mac} * wlan0"
        assert parse_neighbor_line(line, "wlan0") is None, mac


def test_header_is_excluded():
    assert parse_neighbor_line(HEADER, "wlan0") is None
    assert parse_neighbor_line(HEADER, "HW") is None


def test_tabs_and_repeated_spaces_are_separators():
    line = "192.168.43.5\t0x1   0x2\t\taa:bb:cc:dd:ee:ff  *\twlan0\n"
    assert parse_neighbor_line(line, "wlan0") == Client("192.168.43.5", "aa:bb:cc:dd:ee:ff")


def test_parse_table_keeps_order(arp_file):
    clients = parse_neighbor_table(arp_file.read_text().splitlines(), "wlan0")
    assert [c.ip_address for c in clients] == ["192.168.43.5", "192.168.43.6", "192.168.43.7"]


def test_iter_table_yields_lazily():
    lines = iter([
        HEADER,
        "192.168.43.5 0x1 0x2 aa:bb:cc:dd:ee:ff * wlan0",
        "192.168.43.6 0x1 0x2 11:22:33:44:55:66 * wlan0",
    ])
    clients = iter_neighbor_table(lines, "wlan0")
    assert next(clients) == Client("192.168.43.5", "aa:bb:cc:dd:ee:ff")
    assert next(lines).startswith("192.168.43.6")
    assert list(clients) == []


def test_read_table_from_file(arp_file):
    result = read_neighbor_table("eth0", arp_file)
    assert result.outcome is Outcome.SUCCESS
    assert result.value == [Client("10.0.0.2", "de:ad:be:ef:00:01")]


def test_read_table_with_no_matches_returns_empty_list(arp_file):
    result = read_neighbor_table("wlan1", arp_file)
    assert result.ok
    assert result.value == []


def test_each_read_returns_fresh_list(arp_file):
    first = read_neighbor_table("wlan0", arp_file).value
    second = read_neighbor_table("wlan0", arp_file).value
    assert first == second
    assert first is not second


def test_missing_table_is_partial_failure_with_no_data(tmp_path):
    result = read_neighbor_table("wlan0", tmp_path / "missing")
    assert result.outcome is Outcome.PARTIAL_FAILURE
    assert result.value == []
    assert isinstance(result.error, OSError)


def test_read_error_keeps_accumulated_clients():
    lines = [
        HEADER + "\n",
        "192.168.43.5 0x1 0x2 aa:bb:cc:dd:ee:ff * wlan0\n",
    ]

    def failing_lines():
        yield from lines
        raise OSError("I/O error")

    handle = mock_open()
    handle.return_value.__iter__.side_effect = lambda: failing_lines()
    with patch("builtins.open", handle):
        result = read_neighbor_table("wlan0", "/proc/net/arp")

    assert result.outcome is Outcome.PARTIAL_FAILURE
    assert result.value == [Client("192.168.43.5", "aa:bb:cc:dd:ee:ff")]
    assert result.value_or(None) == result.value
