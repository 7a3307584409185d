"""
Error taxonomy for the pollution-index engine.

Per-sample problems derive from SampleError and are captured per item by
evaluate_all(); InvalidIndexError signals a broken internal invariant and
is never captured.
"""


class PollutionIndexError(ValueError):
    """Base class for every error raised by the engine."""


class SampleError(PollutionIndexError):
    """A problem confined to a single sample's evaluation."""


class UnknownMetalError(SampleError, KeyError):
    """A metal identifier has no entry in the standards table."""

    def __init__(self, metal: str):
        self.metal = metal
        super().__init__(f"No standard defined for metal '{metal}'")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class InvalidConcentrationError(SampleError):
    """A concentration is negative, non-finite, non-numeric or missing."""

    def __init__(self, metal: str, value, sample_id=None, reason: str = None):
        self.metal = metal
        self.value = value
        self.sample_id = sample_id
        self.reason = reason
        where = f" in sample '{sample_id}'" if sample_id is not None else ""
        why = f" ({reason})" if reason else ""
        super().__init__(f"Invalid concentration for '{metal}'{where}: {value!r}{why}")


class InsufficientDataError(SampleError):
    """No usable metals remain after filtering unknown/unusable entries."""


class InvalidIndexError(PollutionIndexError):
    """An index value violates an engine invariant (e.g. negative HPI)."""
