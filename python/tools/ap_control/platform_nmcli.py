#!/usr/bin/env python3
"""
NetworkManager platform adapter.

Drives the soft-AP through nmcli. The AP is a NetworkManager connection
profile (``Hotspot`` by default) created by ``nmcli device wifi hotspot``.
"""

import re
import shutil
from typing import List, Optional, Tuple

from loguru import logger

from .capabilities import ApPlatform
from .command_utils import run_command
from .config import ApControlSettings
from .exceptions import PlatformCommandError
from .interfaces import list_network_interfaces
from .models import ApConfiguration, ApState, CommandResult, NetworkInterface

# nmcli exit status for "connection, device, or access point does not exist"
NMCLI_NOT_FOUND = 10

_CONNECTION_STATES = {
    "activating": ApState.ENABLING,
    "activated": ApState.ENABLED,
    "deactivating": ApState.DISABLING,
    "deactivated": ApState.DISABLED,
}

_VERSION_PATTERN = re.compile(r"(\d+(?:\.\d+)*)")


def _unescape_terse(value: str) -> str:
    """Undo nmcli's terse-mode escaping of ':' and '\\'."""
    return value.replace("\\:", ":").replace("\\\\", "\\")


def _parse_terse_fields(output: str) -> dict:
    """
    Parse `nmcli -t` FIELD:value lines into a dictionary.

    Values keep their surrounding whitespace; an SSID or key may start or
    end with spaces.
    """
    values = {}
    for line in output.splitlines():
        if ":" not in line:
            continue
        key, value = line.split(":", 1)
        values[key.strip()] = _unescape_terse(value)
    return values


class NmcliPlatform(ApPlatform):
    """
    Soft-AP control on Linux through NetworkManager.

    Args:
        settings: Controller settings; connection_name, interface and
            command_timeout are used here
    """

    def __init__(self, settings: Optional[ApControlSettings] = None):
        self.settings = settings or ApControlSettings()
        self.connection_name = self.settings.connection_name

    def _nmcli(self, *args: str, log_failures: bool = True) -> CommandResult:
        return run_command(
            ["nmcli", *args],
            timeout=self.settings.command_timeout,
            log_failures=log_failures,
        )

    def is_hardware_supported(self) -> bool:
        """
        Check if NetworkManager is available on the system.

        Returns:
            True if NetworkManager is installed and available
        """
        return shutil.which("nmcli") is not None

    def platform_version(self) -> Tuple[int, ...]:
        """NetworkManager version from `nmcli --version`."""
        result = self._nmcli("--version")
        if not result.success:
            raise PlatformCommandError("Could not query nmcli version", result)
        match = _VERSION_PATTERN.search(result.stdout)
        if match is None:
            raise PlatformCommandError("Unrecognized nmcli version output", result)
        return tuple(int(part) for part in match.group(1).split("."))

    def get_ap_state(self) -> int:
        """
        Raw state code of the AP connection profile.

        A profile that does not exist or is not active counts as disabled.
        """
        result = self._nmcli(
            "-t", "-f", "GENERAL.STATE", "connection", "show", self.connection_name,
            log_failures=False,
        )
        if result.return_code == NMCLI_NOT_FOUND:
            return int(ApState.DISABLED)
        if not result.success:
            raise PlatformCommandError("Could not query hotspot state", result)

        state = _parse_terse_fields(result.stdout).get("GENERAL.STATE", "").strip()
        return int(_CONNECTION_STATES.get(state.lower(), ApState.DISABLED))

    def is_ap_enabled(self) -> bool:
        return self.get_ap_state() == ApState.ENABLED

    def get_ap_configuration(self) -> Optional[ApConfiguration]:
        """SSID and pre-shared key stored in the AP connection profile."""
        result = self._nmcli(
            "-s", "-t",
            "-f", "802-11-wireless.ssid,802-11-wireless-security.psk",
            "connection", "show", self.connection_name,
            log_failures=False,
        )
        if result.return_code == NMCLI_NOT_FOUND:
            return None
        if not result.success:
            raise PlatformCommandError("Could not read hotspot configuration", result)

        values = _parse_terse_fields(result.stdout)
        ssid = values.get("802-11-wireless.ssid")
        if not ssid:
            return None
        psk = values.get("802-11-wireless-security.psk") or None
        return ApConfiguration(ssid=ssid, pre_shared_key=psk)

    def set_ap_enabled(self, config: Optional[ApConfiguration], enabled: bool) -> bool:
        """
        Start or stop the AP.

        Starting with a configuration (re)creates the profile with that SSID
        and key; starting without one brings the existing profile up.
        """
        if not enabled:
            result = self._nmcli("connection", "down", self.connection_name)
            if result.success:
                logger.info("Hotspot has been stopped")
            return result.success

        if config is None:
            result = self._nmcli("connection", "up", self.connection_name)
        else:
            cmd = ["device", "wifi", "hotspot"]
            if self.settings.interface:
                cmd.extend(["ifname", self.settings.interface])
            cmd.extend(["con-name", self.connection_name, "ssid", config.ssid])
            if config.pre_shared_key:
                cmd.extend(["password", config.pre_shared_key])
            result = self._nmcli(*cmd)

        if result.success:
            logger.info(f"Hotspot '{self.connection_name}' is now running")
        return result.success

    def _find_wifi_device(self) -> str:
        if self.settings.interface:
            return self.settings.interface

        result = self._nmcli("-t", "-f", "DEVICE,TYPE", "device")
        if not result.success:
            raise PlatformCommandError("Could not list devices", result)
        for line in result.stdout.splitlines():
            parts = line.split(":")
            if len(parts) >= 2 and parts[1] == "wifi":
                return parts[0]
        raise PlatformCommandError("No wifi device found", result)

    def get_wifi_mac_address(self) -> str:
        device = self._find_wifi_device()
        result = self._nmcli("-g", "GENERAL.HWADDR", "device", "show", device)
        if not result.success or not result.stdout.strip():
            raise PlatformCommandError(f"Could not read hardware address of {device}", result)
        return _unescape_terse(result.stdout.strip())

    def set_wifi_enabled(self, enabled: bool) -> bool:
        """Connect or disconnect the station side of the wifi device."""
        device = self._find_wifi_device()
        action = "connect" if enabled else "disconnect"
        return self._nmcli("device", action, device).success

    def list_interfaces(self) -> List[NetworkInterface]:
        return list_network_interfaces()
