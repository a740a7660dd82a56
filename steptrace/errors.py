"""Exception types raised for caller contract violations."""

from __future__ import annotations


class MalformedInstanceError(ValueError):
    """Raised when a problem instance cannot be simulated as given.

    Covers missing start states, empty accept sets, ragged matrices and
    similar defects in the caller's data. Expected negative outcomes
    (rejection, no solution) are reported in results, never raised.
    """

    pass
