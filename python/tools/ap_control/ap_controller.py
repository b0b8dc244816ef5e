#!/usr/bin/env python3
"""
Access point controller.
Contains the ApControl class, the single entry point for querying and
switching the soft-AP and for discovering the clients attached to it.
"""

import asyncio
import ipaddress
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Union

from loguru import logger

from .capabilities import ApPlatform, bind_capabilities
from .config import ApControlSettings
from .exceptions import UnsupportedOperationError
from .interfaces import resolve_wifi_device
from .models import ApConfiguration, ApResult, ApState, Client
from .neighbor_table import read_neighbor_table
from .reachability import (
    ClientListener,
    ProbeHandle,
    ReachabilityCheck,
    ReachabilityProber,
    icmp_echo,
)

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]
StateCallback = Callable[[Optional[ApState], ApState], None]


class ApControl:
    """
    Controls a soft-AP through a platform adapter.

    The adapter's primitives are bound and the wireless interface name is
    resolved once, at construction; both stay fixed for the lifetime of the
    object. Every facade method returns a plain default (False, None or
    ApState.UNKNOWN) instead of raising; the ``read_*`` and ``write_*``
    methods return an ApResult that tells unsupported, failed and successful
    calls apart.

    Enabling the AP usually requires the station radio to be off. Callers
    switch it with ``platform.set_wifi_enabled`` themselves, before
    ``enable()`` and after ``disable()``.
    """

    def __init__(
        self,
        platform: ApPlatform,
        settings: Optional[ApControlSettings] = None,
        reachability_check: Optional[ReachabilityCheck] = None,
    ):
        """
        Initialize the controller.

        Args:
            platform: Adapter providing the soft-AP primitives
            settings: Controller settings. If None, uses the defaults
            reachability_check: Probe used for clients. If None, uses ICMP echo
        """
        self.platform = platform
        self.settings = settings or ApControlSettings()
        self.capabilities = bind_capabilities(platform)
        self.wifi_device = resolve_wifi_device(
            platform,
            fallback=self.settings.fallback_device,
            min_version=self.settings.min_platform_version,
        )
        self.prober = ReachabilityProber(
            check=reachability_check or icmp_echo,
            max_workers=self.settings.max_probe_workers,
            max_batch=self.settings.max_probe_batch,
        )
        logger.debug(f"Access point controller bound to wifi device {self.wifi_device}")

    def is_supported(self) -> bool:
        """Whether every soft-AP primitive is available on this platform."""
        return self.capabilities.supported

    def _invoke(self, name: str, *args: Any) -> ApResult:
        try:
            return ApResult.success(self.capabilities.call(name, *args))
        except UnsupportedOperationError as e:
            logger.debug(str(e))
            return ApResult.not_supported(str(e))
        except Exception as e:
            logger.error(f"Platform call {name} failed: {e}")
            return ApResult.failure(e)

    def read_enabled(self) -> ApResult[bool]:
        result = self._invoke("is_ap_enabled")
        if result.ok:
            result.value = bool(result.value)
        return result

    def read_state(self) -> ApResult[ApState]:
        """Current AP state, normalized across legacy and modern numbering."""
        result = self._invoke("get_ap_state")
        if not result.ok:
            return result
        try:
            return ApResult.success(ApState.from_raw(int(result.value)))
        except (TypeError, ValueError) as e:
            logger.error(f"Unusable AP state code {result.value!r}: {e}")
            return ApResult.failure(e)

    def read_configuration(self) -> ApResult[Optional[ApConfiguration]]:
        return self._invoke("get_ap_configuration")

    def write_enabled(
        self, config: Optional[ApConfiguration], enabled: bool
    ) -> ApResult[bool]:
        """
        Start the AP with `config`, or stop it.

        If an AP is already running, starting it again switches it to the
        new configuration.
        """
        result = self._invoke("set_ap_enabled", config, enabled)
        if result.ok:
            result.value = bool(result.value)
        return result

    def is_enabled(self) -> bool:
        """Whether the AP is enabled. False if that cannot be determined."""
        return self.read_enabled().value_or(False)

    def get_state(self) -> ApState:
        """Current AP state, or ApState.UNKNOWN if it cannot be read."""
        return self.read_state().value_or(ApState.UNKNOWN)

    def get_configuration(self) -> Optional[ApConfiguration]:
        return self.read_configuration().value_or(None)

    def set_enabled(self, config: Optional[ApConfiguration], enabled: bool) -> bool:
        """
        Start or stop the AP.

        Returns:
            The platform's success flag, False on any failure
        """
        return self.write_enabled(config, enabled).value_or(False)

    def enable(self) -> bool:
        """Start the AP with its current configuration."""
        return self.set_enabled(self.get_configuration(), True)

    def disable(self) -> bool:
        """Stop any running AP."""
        return self.set_enabled(None, False)

    def wait_for_state(
        self,
        target: ApState,
        timeout: float = 30.0,
        poll_interval: Optional[float] = None,
    ) -> bool:
        """
        Poll the AP state until it reaches `target`.

        State changes happen asynchronously on the platform after enable()
        and disable() return, so callers wait here for the outcome.

        Args:
            target: State to wait for
            timeout: Seconds to wait in total
            poll_interval: Seconds between polls. If None, uses the settings

        Returns:
            True if the target was reached; False on timeout, or when the AP
            reports FAILED and FAILED is not the target
        """
        interval = poll_interval
        if interval is None:
            interval = self.settings.state_poll_interval
        deadline = time.monotonic() + timeout

        while True:
            state = self.get_state()
            if state == target:
                return True
            if state == ApState.FAILED:
                logger.warning(f"Access point failed while waiting for {target.name}")
                return False

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                logger.warning(
                    f"Timed out waiting for {target.name}, last state {state.name}"
                )
                return False
            time.sleep(min(interval, remaining))

    async def monitor_state(
        self,
        interval: Optional[float] = None,
        callback: Optional[StateCallback] = None,
    ) -> None:
        """
        Monitor the AP state and report every change.

        Args:
            interval: Time in seconds between checks. If None, uses the settings
            callback: Called with (previous, current) on each change; previous
                is None for the first observation
        """
        if interval is None:
            interval = self.settings.state_poll_interval
        previous: Optional[ApState] = None
        try:
            while True:
                current = self.get_state()
                if current != previous:
                    if previous is not None and not previous.can_transition_to(current):
                        logger.debug(
                            f"State jumped from {previous.name} to {current.name}"
                        )
                    logger.info(f"Access point state: {current.name}")
                    if callback:
                        callback(previous, current)
                    previous = current

                await asyncio.sleep(interval)
        except asyncio.CancelledError:
            logger.info("State monitoring stopped")
            raise

    def read_local_address(self) -> ApResult[Optional[IPAddress]]:
        """
        Address this device has on its own AP network.

        Returns the first non-loopback address of an interface whose display
        name contains the wifi device name. Resolved again on every call.
        """
        if not self.is_enabled():
            return ApResult.ap_disabled()

        try:
            interfaces = self.platform.list_interfaces()
        except Exception as e:
            logger.error(f"Interface enumeration failed: {e}")
            return ApResult.failure(e)

        for iface in interfaces:
            for raw in iface.addresses:
                try:
                    # Drop the IPv6 zone suffix ("fe80::1%wlan0")
                    address = ipaddress.ip_address(raw.split("%", 1)[0])
                except ValueError:
                    logger.debug(f"Ignoring unparsable address {raw!r} on {iface.name}")
                    continue

                if address.is_loopback:
                    continue

                if self.wifi_device in iface.display_name:
                    return ApResult.success(address)

        return ApResult.success(None)

    def get_local_address(self) -> Optional[IPAddress]:
        """Local AP network address, or None if disabled or not found."""
        return self.read_local_address().value_or(None)

    def read_clients(self) -> ApResult[List[Client]]:
        """
        Clients listed in the neighbor table for the wifi device.

        A read error yields a partial failure carrying the clients read so
        far. Entries can outlive a client's connection by several minutes.
        """
        if not self.is_enabled():
            return ApResult.ap_disabled()
        return read_neighbor_table(self.wifi_device, self.settings.neighbor_table_path)

    def get_clients(self) -> Optional[List[Client]]:
        """
        Clients connected to the AP.

        Returns:
            None if the AP is not enabled, otherwise a new list (possibly
            empty, possibly partial after a read error)
        """
        return self.read_clients().value_or(None)

    def _probe_timeout(self, timeout_ms: Optional[int]) -> int:
        return self.settings.probe_timeout_ms if timeout_ms is None else timeout_ms

    def probe_async(
        self,
        listener: ClientListener,
        timeout_ms: Optional[int] = None,
    ) -> Optional[ProbeHandle]:
        """
        Report reachable clients through `listener` as probes answer.

        The client list is read once. `listener` runs on worker threads.

        Returns:
            ProbeHandle for the running probes, or None if the AP is disabled
        """
        clients = self.get_clients()
        if clients is None:
            return None
        return self.prober.probe_async(
            clients, listener, self._probe_timeout(timeout_ms)
        )

    def probe_all(
        self,
        timeout_ms: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> Optional[List[Client]]:
        """
        Reachable clients, after waiting for every probe.

        Probes run `max_probe_workers` at a time, so with N clients this blocks
        for roughly ceil(N / max_probe_workers) probe timeouts. Avoid calling
        it from a thread that must stay responsive.

        Returns:
            Reachable clients in neighbor table order, or None if the AP is
            disabled or probing was cancelled
        """
        clients = self.get_clients()
        if clients is None:
            return None
        return self.prober.probe_all(
            clients, self._probe_timeout(timeout_ms), cancel_event
        )

    def get_status(self) -> Dict[str, Any]:
        """
        Snapshot of the AP for display.

        Returns:
            Dictionary with support flag, state, configuration, wifi device,
            local address and clients
        """
        enabled = self.is_enabled()
        configuration = self.get_configuration()
        address = self.get_local_address() if enabled else None
        clients = self.get_clients() if enabled else None

        return {
            "supported": self.is_supported(),
            "enabled": enabled,
            "state": self.get_state().name,
            "wifi_device": self.wifi_device,
            "configuration": configuration.to_dict() if configuration else None,
            "ip_address": str(address) if address else None,
            "clients": [client.to_dict() for client in clients] if clients is not None else None,
        }
