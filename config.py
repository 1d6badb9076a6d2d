# config.py v1.0
# Part of NetDyn: Graph-Indexed Network Dynamics
# - DynamicsConfig carries every construction-time switch explicitly. Nothing
#   is read from environment variables and there is no global toggle.
# - Misconfigured parallelism is reported as a ParallelismWarning rather than
#   printed, so the caller decides how to present it.

import json
import multiprocessing as mp
import warnings

import numpy as np

from errors import ConstructionError, ParallelismWarning


class DynamicsConfig:
    """
    Construction-time configuration of a network right-hand side.

    Attributes:
        parallel (bool): Run the per-group entity loops on a thread pool.
        num_workers (int): Number of contiguous chunks (and pool threads) per loop.
        verbose (bool): Print construction reports with termcolor.
        dtype (np.dtype): Element type of the internal prototype buffers.
    """
    def __init__(self, parallel: bool = False, num_workers: int = None,
                 verbose: bool = False, dtype=np.float64):
        if num_workers is None:
            num_workers = mp.cpu_count() if parallel else 1
        if not isinstance(num_workers, (int, np.integer)) or isinstance(num_workers, bool):
            raise ConstructionError("num_workers must be an integer.")
        if num_workers <= 0:
            raise ConstructionError(f"num_workers must be positive, got {num_workers}.")

        self.parallel = bool(parallel)
        self.num_workers = int(num_workers)
        self.verbose = bool(verbose)
        self.dtype = np.dtype(dtype)

        if self.parallel and self.num_workers < 2:
            warnings.warn(
                "Parallel evaluation requested with a single worker; the entity "
                "loops will run sequentially. Set num_workers to the number of "
                "physical cores to benefit from parallel evaluation.",
                ParallelismWarning,
                stacklevel=2,
            )

    @property
    def runs_parallel(self) -> bool:
        return self.parallel and self.num_workers > 1

    def __repr__(self):
        return (f"DynamicsConfig(parallel={self.parallel}, num_workers={self.num_workers}, "
                f"verbose={self.verbose}, dtype={self.dtype.name})")

    def to_dict(self) -> dict:
        return {
            'parallel': self.parallel,
            'num_workers': self.num_workers,
            'verbose': self.verbose,
            'dtype': self.dtype.name,
        }

    @classmethod
    def from_dict(cls, params: dict) -> 'DynamicsConfig':
        return cls(
            parallel=params.get('parallel', False),
            num_workers=params.get('num_workers', None),
            verbose=params.get('verbose', False),
            dtype=params.get('dtype', 'float64'),
        )


def load_config(path: str) -> DynamicsConfig:
    """Reads a DynamicsConfig from a JSON file."""
    with open(path, 'r') as f:
        params = json.load(f)
    if not isinstance(params, dict):
        raise ConstructionError(f"Config file '{path}' must contain a JSON object.")
    return DynamicsConfig.from_dict(params)
