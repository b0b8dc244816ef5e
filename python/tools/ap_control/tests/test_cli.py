#!/usr/bin/env python3
"""
Tests for the command-line interface, run against the in-memory platform.
"""

import asyncio
import json
from unittest.mock import patch

import pytest

from ap_control.cli import ApControlCLI, EnhancedArgumentParser
from ap_control.fake_platform import FakePlatform
from ap_control.models import ApState


@pytest.fixture
def config_file(tmp_path, arp_file):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({
        "neighbor_table_path": str(arp_file),
        "state_poll_interval": 0.01,
    }))
    return path


def run_cli(platform, config_file, *args):
    cli = ApControlCLI(platform=platform)
    return cli, asyncio.run(cli.run(["-q", "--config", str(config_file), *args]))


def test_status_json(platform, config_file, capsys):
    _, code = run_cli(platform, config_file, "status", "--json")
    assert code == 0
    status = json.loads(capsys.readouterr().out)
    assert status["enabled"] is True
    assert status["state"] == "ENABLED"
    assert status["ip_address"] == "192.168.43.1"
    assert [c["ip_address"] for c in status["clients"]] == [
        "192.168.43.5", "192.168.43.6", "192.168.43.7",
    ]


def test_status_table(platform, config_file, capsys):
    _, code = run_cli(platform, config_file, "--no-color", "status")
    assert code == 0
    out = capsys.readouterr().out
    assert "Access Point Status" in out
    assert "TestAP" in out


def test_enable_with_new_configuration(config_file):
    platform = FakePlatform(state=ApState.DISABLED, transition_polls=2)
    _, code = run_cli(
        platform, config_file, "enable", "--ssid", "CliAP", "--password", "password1",
        "--timeout", "5",
    )
    assert code == 0
    assert platform.state == ApState.ENABLED
    assert platform.configuration.ssid == "CliAP"
    assert platform.station_enabled is False


def test_enable_keep_station(config_file):
    platform = FakePlatform(state=ApState.DISABLED)
    _, code = run_cli(platform, config_file, "enable", "--keep-station")
    assert code == 0
    assert platform.station_enabled is True
    assert "set_wifi_enabled" not in platform.calls


def test_enable_rejected_by_platform(config_file):
    platform = FakePlatform(state=ApState.DISABLED, honor_writes=False)
    _, code = run_cli(platform, config_file, "enable", "--ssid", "CliAP")
    assert code == 1


def test_disable_restores_station(platform, config_file):
    platform.station_enabled = False
    _, code = run_cli(platform, config_file, "disable")
    assert code == 0
    assert platform.state == ApState.DISABLED
    assert platform.station_enabled is True


def test_clients_json(platform, config_file, capsys):
    _, code = run_cli(platform, config_file, "clients", "--json")
    assert code == 0
    clients = json.loads(capsys.readouterr().out)
    assert clients[0] == {"ip_address": "192.168.43.5", "hardware_address": "aa:bb:cc:dd:ee:ff"}


def test_reachable_clients_json(platform, config_file, capsys):
    def fake_ping(address, timeout):
        return 0.002 if address == "192.168.43.6" else None

    with patch("ap_control.reachability.ping3.ping", side_effect=fake_ping):
        _, code = run_cli(platform, config_file, "clients", "--reachable", "--json")
    assert code == 0
    clients = json.loads(capsys.readouterr().out)
    assert [c["ip_address"] for c in clients] == ["192.168.43.6"]


def test_clients_when_disabled(config_file, capsys):
    _, code = run_cli(FakePlatform(state=ApState.DISABLED), config_file, "clients", "--json")
    assert code == 0
    assert json.loads(capsys.readouterr().out) is None


def test_address_json(platform, config_file, capsys):
    _, code = run_cli(platform, config_file, "address", "--json")
    assert code == 0
    assert json.loads(capsys.readouterr().out) == {"ip_address": "192.168.43.1"}


def test_no_command_prints_help(platform, config_file, capsys):
    _, code = run_cli(platform, config_file)
    assert code == 1
    assert "usage: ap-control" in capsys.readouterr().out


def test_fake_flag_builds_in_memory_platform(tmp_path, capsys):
    cli = ApControlCLI()
    code = asyncio.run(cli.run(["-q", "--config", str(tmp_path / "none.json"),
                                "--fake", "status", "--json"]))
    assert code == 0
    assert isinstance(cli.control.platform, FakePlatform)
    assert json.loads(capsys.readouterr().out)["configuration"]["ssid"] == "FakeAP"


class TestArgumentValidation:
    """Tests for argument validation."""

    def test_quiet_and_verbose_conflict(self):
        with pytest.raises(SystemExit):
            EnhancedArgumentParser().parse_args(["-q", "-v", "status"])

    def test_password_requires_ssid(self):
        with pytest.raises(SystemExit):
            EnhancedArgumentParser().parse_args(["enable", "--password", "secretpass"])

    def test_clients_options(self):
        args = EnhancedArgumentParser().parse_args(["clients", "--reachable", "--timeout-ms", "500"])
        assert args.reachable
        assert args.timeout_ms == 500
