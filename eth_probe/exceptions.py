"""Errors raised while probing contracts."""

from __future__ import annotations

from typing import Any, Sequence


class ProbeError(Exception):
    """Base exception for probing errors."""


class InterfaceMismatch(ProbeError):
    """
    The call reverted, hit an unknown selector or returned undecodable data,
    the contract doesn't speak this interface.
    """

    def __init__(self, message: str, method: str | None = None, cause: Any = None):
        super().__init__(message)
        self.method = method
        self.cause = cause


class DegenerateResult(ProbeError):
    """The call succeeded but the acceptance predicate rejected its value."""

    def __init__(self, message: str, method: str | None = None, value: Any = None):
        super().__init__(message)
        self.method = method
        self.value = value


class ExhaustedProbes(ProbeError):
    """No candidate probe produced an acceptable result."""

    def __init__(self, message: str, contract: str, attempts: Sequence = ()):
        super().__init__(message)
        self.contract = contract
        self.attempts = list(attempts)


class TransportFailure(ProbeError):
    """The chain reader itself is unavailable, aborts the whole operation."""

    def __init__(self, message: str, cause: Any = None):
        super().__init__(message)
        self.cause = cause


class ConfigError(ValueError):
    """Network or factory misconfiguration."""
