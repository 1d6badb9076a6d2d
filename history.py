# history.py v1.0
# Part of NetDyn: Graph-Indexed Network Dynamics
# - Global history functions for delay systems, following the call contract
#   h(p, t, idxs=None) -> past values of the state at the global positions
#   `idxs` (all positions when idxs is None).
# - The dispatcher wraps these per entity, so vertex and edge functions only
#   ever see their own local indices.

import numpy as np
from scipy.interpolate import interp1d

from errors import ShapeMismatch


class ConstantHistory:
    """The state before the initial time is a fixed vector."""
    def __init__(self, values):
        self.values = np.asarray(values, dtype=float)
        if self.values.ndim != 1:
            raise ShapeMismatch("A constant history must be a flat vector.")

    def __call__(self, p, t, idxs=None):
        if idxs is None:
            return self.values.copy()
        return self.values[idxs]


class TabulatedHistory:
    """
    Linear interpolation between recorded states. Queries before the first or
    after the last sample return the first or last recorded state.

    Args:
        ts (array): Sample times, strictly increasing, shape (n,).
        xs (array): Recorded states, shape (n, dim).
    """
    def __init__(self, ts, xs):
        ts = np.asarray(ts, dtype=float)
        xs = np.asarray(xs, dtype=float)
        if xs.ndim != 2 or xs.shape[0] != ts.shape[0]:
            raise ShapeMismatch(f"Expected states of shape ({ts.shape[0]}, dim), got {xs.shape}.")
        self.ts = ts
        self.xs = xs
        if len(ts) == 1:
            self._interp = lambda t: xs[0]
        else:
            self._interp = interp1d(ts, xs, axis=0, bounds_error=False,
                                    fill_value=(xs[0], xs[-1]), assume_sorted=True)

    @classmethod
    def from_solution(cls, sol) -> 'TabulatedHistory':
        """Builds a history from a `scipy.integrate.solve_ivp` result."""
        return cls(sol.t, sol.y.T)

    def __call__(self, p, t, idxs=None):
        state = np.asarray(self._interp(t))
        if idxs is None:
            return state
        return state[idxs]
