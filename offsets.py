# offsets.py v1.0
# Part of NetDyn: Graph-Indexed Network Dynamics
# - Turns per-entity dimensions into cumulative offsets and contiguous
#   half-open index ranges over one stacked flat array.

import numpy as np

from errors import ConstructionError


def check_dims(dims):
    for i, dim in enumerate(dims):
        if isinstance(dim, bool) or not isinstance(dim, (int, np.integer)):
            raise ConstructionError(f"Dimension of entity {i} must be an integer, got {dim!r}.")
        if dim <= 0:
            raise ConstructionError(f"Dimension of entity {i} must be positive, got {dim}.")


def create_offsets(dims, counter: int = 0) -> list:
    """Offsets for a stacked array of dimensions `dims`, starting at `counter`."""
    check_dims(dims)
    offs = []
    for dim in dims:
        offs.append(counter)
        counter += int(dim)
    return offs


def create_idxs(offs, dims) -> list:
    """Index ranges for a stacked array of dimensions `dims` at offsets `offs`."""
    return [range(off, off + int(dim)) for off, dim in zip(offs, dims)]


def create_offsets_and_idxs(dims, counter: int = 0) -> tuple:
    offs = create_offsets(dims, counter=counter)
    return offs, create_idxs(offs, dims)
