#!/usr/bin/env python3
"""
Capability binding for soft-AP platforms.

Soft-AP control is not part of a stable interface on every platform, so the
controller does not assume the primitives exist. An adapter exposes whichever
of the four primitives it can provide and the binder records what it found:

- ``get_ap_configuration()`` -> ApConfiguration or None
- ``get_ap_state()`` -> raw integer state code
- ``is_ap_enabled()`` -> bool
- ``set_ap_enabled(config, enabled)`` -> bool

A primitive is missing when the adapter does not define it or sets it to None.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

from loguru import logger

from .exceptions import UnsupportedOperationError
from .models import NetworkInterface

AP_PRIMITIVES = (
    "get_ap_configuration",
    "get_ap_state",
    "is_ap_enabled",
    "set_ap_enabled",
)


class ApPlatform(ABC):
    """
    Base class for platform adapters.

    Besides the optional soft-AP primitives listed in the module docstring,
    every adapter reports the wireless MAC address, enumerates interfaces and
    states its version.
    """

    @abstractmethod
    def get_wifi_mac_address(self) -> str:
        """Hardware address of the wireless radio, as text."""

    @abstractmethod
    def list_interfaces(self) -> List[NetworkInterface]:
        """All local network interfaces in enumeration order."""

    @abstractmethod
    def platform_version(self) -> Tuple[int, ...]:
        """Version of the underlying networking stack."""

    def set_wifi_enabled(self, enabled: bool) -> bool:
        """
        Turn the station (client) radio on or off.

        Callers switch the station radio off before enabling the AP and back
        on after disabling it.
        """
        raise UnsupportedOperationError("set_wifi_enabled")

    def is_hardware_supported(self) -> bool:
        return True


@dataclass(frozen=True)
class CapabilitySet:
    """The soft-AP primitives found on a platform adapter."""

    get_ap_configuration: Optional[Callable[[], Any]] = None
    get_ap_state: Optional[Callable[[], int]] = None
    is_ap_enabled: Optional[Callable[[], bool]] = None
    set_ap_enabled: Optional[Callable[[Any, bool], bool]] = None
    hardware_supported: bool = True

    @property
    def software_supported(self) -> bool:
        return all(getattr(self, name) is not None for name in AP_PRIMITIVES)

    @property
    def supported(self) -> bool:
        """True if every primitive is bound and the hardware check passed."""
        return self.software_supported and self.hardware_supported

    @property
    def missing(self) -> List[str]:
        return [name for name in AP_PRIMITIVES if getattr(self, name) is None]

    def call(self, name: str, *args: Any) -> Any:
        """
        Invoke a bound primitive.

        Raises:
            UnsupportedOperationError: If the primitive is not bound
        """
        operation = getattr(self, name, None) if name in AP_PRIMITIVES else None
        if operation is None:
            raise UnsupportedOperationError(name)
        return operation(*args)


def bind_capabilities(platform: ApPlatform) -> CapabilitySet:
    """
    Look up the soft-AP primitives on a platform adapter.

    Missing primitives are not an error here; they stay unbound and every
    dependent controller call reports them as unsupported.

    Args:
        platform: Adapter to inspect

    Returns:
        CapabilitySet with each primitive found on the adapter
    """
    bound = {}
    for name in AP_PRIMITIVES:
        operation = getattr(platform, name, None)
        if callable(operation):
            bound[name] = operation

    try:
        hardware_supported = bool(platform.is_hardware_supported())
    except Exception as e:
        logger.error(f"Hardware support check failed: {e}")
        hardware_supported = False

    capabilities = CapabilitySet(hardware_supported=hardware_supported, **bound)
    if capabilities.missing:
        logger.warning(
            f"{type(platform).__name__} lacks soft-AP primitives: "
            f"{', '.join(capabilities.missing)}"
        )
    if not hardware_supported:
        logger.warning(f"{type(platform).__name__} reports no soft-AP hardware support")
    return capabilities
