#!/usr/bin/env python3
"""
Data models for the access point controller.
Contains enum classes and dataclasses used throughout the package.
"""

from enum import Enum, IntEnum
from dataclasses import dataclass, asdict, field
from typing import Any, Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")

# Raw state codes below this value use the legacy numbering
LEGACY_STATE_OFFSET = 10


def normalize_state(raw: int) -> int:
    """
    Map a raw soft-AP state code onto the modern numbering.

    Older platforms report states 0-4, newer ones 10-14. Non-negative codes
    below the offset are shifted up so both ranges land on the same value;
    negative codes are error sentinels and stay as they are.

    Args:
        raw: State code as reported by the platform

    Returns:
        The normalized state code
    """
    if 0 <= raw < LEGACY_STATE_OFFSET:
        return raw + LEGACY_STATE_OFFSET
    return raw


class ApState(IntEnum):
    """
    Soft-AP states, using the modern numeric values.

    UNKNOWN is the sentinel for codes that could not be read or mapped.
    """

    UNKNOWN = -1
    DISABLING = 10
    DISABLED = 11
    ENABLING = 12
    ENABLED = 13
    FAILED = 14

    @classmethod
    def from_raw(cls, raw: int) -> "ApState":
        """Normalize a raw platform code and map it to a state."""
        try:
            return cls(normalize_state(raw))
        except ValueError:
            return cls.UNKNOWN

    def can_transition_to(self, other: "ApState") -> bool:
        """Check whether moving from this state to `other` follows the AP lifecycle."""
        if other == self:
            return True
        return other in _TRANSITIONS.get(self, ())


_TRANSITIONS = {
    ApState.DISABLED: (ApState.ENABLING, ApState.FAILED),
    ApState.ENABLING: (ApState.ENABLED, ApState.FAILED),
    ApState.ENABLED: (ApState.DISABLING, ApState.FAILED),
    ApState.DISABLING: (ApState.DISABLED, ApState.FAILED),
    ApState.FAILED: (ApState.ENABLING, ApState.DISABLED),
    ApState.UNKNOWN: tuple(ApState),
}


@dataclass
class ApConfiguration:
    """
    Soft-AP network settings as owned by the platform.

    The controller passes instances through without validating them.
    """

    ssid: str
    pre_shared_key: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to a dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ApConfiguration":
        """Create a configuration object from a dictionary."""
        return cls(ssid=data["ssid"], pre_shared_key=data.get("pre_shared_key"))


@dataclass(frozen=True)
class Client:
    """A device seen on the AP's local network."""

    ip_address: str
    hardware_address: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


@dataclass
class NetworkInterface:
    """A local network interface as reported by the platform."""

    name: str
    hardware_address: Optional[str] = None
    addresses: List[str] = field(default_factory=list)
    display_name: str = ""

    def __post_init__(self) -> None:
        if not self.display_name:
            self.display_name = self.name


@dataclass
class CommandResult:
    """
    Result of a command execution.

    This class standardizes command execution returns with fields for stdout,
    stderr, success status, and the original command executed.
    """

    success: bool
    stdout: str = ""
    stderr: str = ""
    return_code: int = 0
    command: List[str] = field(default_factory=list)

    @property
    def output(self) -> str:
        """Get combined output (stdout + stderr)."""
        return f"{self.stdout}\n{self.stderr}".strip()


class Outcome(Enum):
    """How a controller operation ended."""

    SUCCESS = "success"
    NOT_SUPPORTED = "not_supported"  # primitive missing on this platform
    FAILURE = "failure"  # platform call raised
    PARTIAL_FAILURE = "partial_failure"  # read failed after producing data
    AP_DISABLED = "ap_disabled"  # operation needs a running AP


@dataclass
class ApResult(Generic[T]):
    """
    Outcome of a controller operation together with its value.

    Lets callers tell "the platform said no" apart from "the call failed",
    while the plain facade methods keep returning simple defaults.
    """

    outcome: Outcome
    value: Optional[T] = None
    error: Optional[BaseException] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.SUCCESS

    @property
    def has_value(self) -> bool:
        """True when `value` carries data, complete or partial."""
        return self.outcome in (Outcome.SUCCESS, Outcome.PARTIAL_FAILURE)

    def value_or(self, default: Any) -> Any:
        """Return the carried value, or `default` when there is none."""
        return self.value if self.has_value else default

    @classmethod
    def success(cls, value: Optional[T] = None) -> "ApResult[T]":
        return cls(Outcome.SUCCESS, value)

    @classmethod
    def not_supported(cls, message: str = "") -> "ApResult[T]":
        return cls(Outcome.NOT_SUPPORTED, message=message)

    @classmethod
    def failure(cls, error: BaseException) -> "ApResult[T]":
        return cls(Outcome.FAILURE, error=error, message=str(error))

    @classmethod
    def partial(cls, value: T, error: BaseException) -> "ApResult[T]":
        return cls(Outcome.PARTIAL_FAILURE, value, error=error, message=str(error))

    @classmethod
    def ap_disabled(cls) -> "ApResult[T]":
        return cls(Outcome.AP_DISABLED, message="access point is not enabled")
