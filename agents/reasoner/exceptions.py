from __future__ import annotations


class ReasoningError(Exception):
    """Base class for failures raised inside a reasoning run."""


class RunCancelledError(ReasoningError):
    """Signals that a run stopped early on cancellation or a cost/time cap. Never escapes ``run``."""

    def __init__(self, reason: str, *, step: str = "cancelled"):
        self.reason = reason
        self.step = step
        super().__init__(reason)
