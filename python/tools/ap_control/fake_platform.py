#!/usr/bin/env python3
"""
Deterministic in-memory platform adapter.

Used by the test suite and by ``--fake`` runs of the CLI. It honours writes,
can simulate slow state transitions, legacy state numbering, missing
primitives and failing calls.
"""

import threading
from typing import Iterable, List, Optional, Tuple

from .capabilities import AP_PRIMITIVES, ApPlatform
from .exceptions import ApControlError
from .models import LEGACY_STATE_OFFSET, ApConfiguration, ApState, NetworkInterface

_TRANSITIONAL = {
    ApState.ENABLED: ApState.ENABLING,
    ApState.DISABLED: ApState.DISABLING,
}


class FakePlatform(ApPlatform):
    """
    In-memory soft-AP.

    Args:
        wifi_mac: Hardware address reported for the wireless radio
        interfaces: Interfaces returned by list_interfaces
        version: Platform version
        state: Initial AP state
        configuration: Initial AP configuration
        honor_writes: Whether set_ap_enabled changes anything
        legacy_state_codes: Report states with the old 0-4 numbering
        transition_polls: State reads needed before an enable/disable settles
        unsupported: Names of primitives this platform lacks
        hardware_supported: Result of the hardware check
    """

    def __init__(
        self,
        wifi_mac: Optional[str] = "02:00:00:00:00:01",
        interfaces: Optional[Iterable[NetworkInterface]] = None,
        version: Tuple[int, ...] = (99,),
        state: ApState = ApState.DISABLED,
        configuration: Optional[ApConfiguration] = None,
        honor_writes: bool = True,
        legacy_state_codes: bool = False,
        transition_polls: int = 0,
        unsupported: Iterable[str] = (),
        hardware_supported: bool = True,
    ):
        self.wifi_mac = wifi_mac
        self.interfaces = list(interfaces) if interfaces is not None else [
            NetworkInterface("lo", "00:00:00:00:00:00", ["127.0.0.1", "::1"]),
            NetworkInterface("wlan0", wifi_mac, ["192.168.43.1"]),
        ]
        self.version = tuple(version)
        self.state = state
        self.configuration = configuration
        self.honor_writes = honor_writes
        self.legacy_state_codes = legacy_state_codes
        self.transition_polls = transition_polls
        self.hardware_supported = hardware_supported
        self.station_enabled = True

        # Raised by every soft-AP primitive when set
        self.error: Optional[Exception] = None
        # Raised by list_interfaces when set
        self.interface_error: Optional[Exception] = None

        self.calls: List[str] = []
        self._pending: Optional[ApState] = None
        self._countdown = 0
        self._lock = threading.Lock()

        for name in unsupported:
            if name not in AP_PRIMITIVES:
                raise ValueError(f"Unknown soft-AP primitive: {name}")
            setattr(self, name, None)

    def _enter(self, name: str) -> None:
        self.calls.append(name)
        if self.error is not None:
            raise self.error

    def is_hardware_supported(self) -> bool:
        return self.hardware_supported

    def platform_version(self) -> Tuple[int, ...]:
        self.calls.append("platform_version")
        return self.version

    def get_wifi_mac_address(self) -> str:
        self.calls.append("get_wifi_mac_address")
        if self.wifi_mac is None:
            raise ApControlError("No wifi hardware address available")
        return self.wifi_mac

    def list_interfaces(self) -> List[NetworkInterface]:
        self.calls.append("list_interfaces")
        if self.interface_error is not None:
            raise self.interface_error
        return list(self.interfaces)

    def get_ap_state(self) -> int:
        with self._lock:
            self._enter("get_ap_state")
            if self._pending is not None:
                self._countdown -= 1
                if self._countdown <= 0:
                    self.state, self._pending = self._pending, None
            raw = int(self.state)
        if self.legacy_state_codes and raw >= LEGACY_STATE_OFFSET:
            return raw - LEGACY_STATE_OFFSET
        return raw

    def is_ap_enabled(self) -> bool:
        with self._lock:
            self._enter("is_ap_enabled")
            return self.state == ApState.ENABLED

    def get_ap_configuration(self) -> Optional[ApConfiguration]:
        with self._lock:
            self._enter("get_ap_configuration")
            return self.configuration

    def set_ap_enabled(self, config: Optional[ApConfiguration], enabled: bool) -> bool:
        with self._lock:
            self._enter("set_ap_enabled")
            if not self.honor_writes:
                return False
            if enabled and config is not None:
                self.configuration = config
            target = ApState.ENABLED if enabled else ApState.DISABLED
            if self.transition_polls > 0:
                self.state = _TRANSITIONAL[target]
                self._pending = target
                self._countdown = self.transition_polls
            else:
                self.state, self._pending = target, None
            return True

    def set_wifi_enabled(self, enabled: bool) -> bool:
        self.calls.append("set_wifi_enabled")
        self.station_enabled = enabled
        return True
