#!/usr/bin/env python3
"""
Exception types for the access point controller.

None of these escape the controller's facade methods; they travel between
the platform adapters, the capability binder and the controller, which
turns them into result outcomes.
"""

from .models import CommandResult


class ApControlError(Exception):
    """Base exception for all access point control errors"""
    pass


class UnsupportedOperationError(ApControlError):
    """Raised when a soft-AP primitive is not bound on this platform"""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Operation not supported on this platform: {operation}")


class PlatformCommandError(ApControlError):
    """Raised when a platform command fails"""

    def __init__(self, message: str, result: CommandResult):
        self.result = result
        super().__init__(
            f"{message} (Return code: {result.return_code}): {result.stderr.strip()}"
        )
