"""Error taxonomy for strategy optimization and race simulation.

Every error names the offending field and value so callers can surface
something more useful than a generic failure message.
"""

from typing import Any


class StrategyError(ValueError):
    """Base class for all errors raised by this package."""

    kind = "strategy_error"

    def __init__(self, field: str, value: Any, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"{self.kind}: {field}={value!r} {reason}")

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "field": self.field,
            "value": repr(self.value),
            "reason": self.reason,
        }


class InfeasibleError(StrategyError):
    """No strategy satisfies the physical and regulatory constraints."""

    kind = "infeasible"


class InvalidConfigError(StrategyError):
    """Malformed optimization or simulation parameters."""

    kind = "invalid_config"


class NumericError(StrategyError):
    """Degenerate inputs that would produce non-finite lap times."""

    kind = "numeric"


class OperationCancelledError(StrategyError):
    """The caller cancelled the operation before it completed."""

    kind = "cancelled"

    def __init__(self, operation: str, progress: Any = None):
        super().__init__(operation, progress, "was cancelled")
