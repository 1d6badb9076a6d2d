# parallel.py v1.0
# Part of NetDyn: Graph-Indexed Network Dynamics
# - WorkPartition splits a flat index list into contiguous chunks and runs a
#   function over every chunk, either one after the other or on a thread
#   pool. The chunking is identical in both modes.
# - Threads rather than processes: every chunk writes into the same shared
#   numpy buffers, which worker processes could not see.
# - `run` returns only after every chunk has finished, which is the barrier
#   between the edge pass and the vertex pass.
# - The pool is started lazily, so a partition that never runs in parallel
#   never owns threads.

import threading
from multiprocessing.pool import ThreadPool

from termcolor import cprint


class WorkPartition:
    def __init__(self, num_workers: int = 1, parallel: bool = False, verbose: bool = False):
        self.num_workers = max(1, int(num_workers))
        self.parallel = bool(parallel) and self.num_workers > 1
        # Created on the first parallel run, released by close()
        self.pool = None
        self._lock = threading.Lock()
        if self.parallel and verbose:
            cprint(f"   -> Parallel evaluation enabled on {self.num_workers} threads.", 'green')

    @property
    def is_parallel(self) -> bool:
        return self.parallel

    def _get_pool(self) -> ThreadPool:
        with self._lock:
            if self.pool is None:
                self.pool = ThreadPool(self.num_workers)
            return self.pool

    def chunks(self, indices) -> list:
        """Splits `indices` into at most `num_workers` contiguous, non-empty chunks."""
        n = len(indices)
        if n == 0:
            return []
        num_chunks = min(self.num_workers, n)
        size, rest = divmod(n, num_chunks)
        chunks = []
        start = 0
        for c in range(num_chunks):
            stop = start + size + (1 if c < rest else 0)
            chunks.append(indices[start:stop])
            start = stop
        return chunks

    def run(self, fn, indices):
        """Calls `fn(chunk)` for every chunk of `indices`; returns when all are done."""
        chunks = self.chunks(indices)
        if not self.parallel or len(chunks) < 2:
            for chunk in chunks:
                fn(chunk)
        else:
            self._get_pool().map(fn, chunks)

    def close(self):
        """Releases the worker threads. A later parallel run starts a new pool."""
        with self._lock:
            pool, self.pool = self.pool, None
        if pool is not None:
            pool.close()
            pool.join()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
