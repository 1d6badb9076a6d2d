# test_config.py v1.0
# Unit tests for the configuration layer, the work partition and the
# history functions used by delay networks.

import json
import os
import tempfile
import unittest
import warnings

import numpy as np
from termcolor import cprint

from config import DynamicsConfig, load_config
from errors import ConstructionError, ParallelismWarning, ShapeMismatch
from history import ConstantHistory, TabulatedHistory
from parallel import WorkPartition


class TestDynamicsConfig(unittest.TestCase):

    def setUp(self):
        cprint(f"\n--- Running test: {self._testMethodName} ---", 'yellow')

    def test_01_defaults_and_validation(self):
        config = DynamicsConfig()
        self.assertFalse(config.parallel)
        self.assertEqual(config.num_workers, 1)
        self.assertFalse(config.runs_parallel)
        self.assertEqual(config.dtype, np.float64)

        with self.assertRaises(ConstructionError):
            cprint("  -> Testing validation: zero workers...", 'cyan')
            DynamicsConfig(num_workers=0)
        with self.assertRaises(ConstructionError):
            DynamicsConfig(num_workers=2.5)
        with self.assertRaises(ConstructionError):
            DynamicsConfig(num_workers=True)
        cprint("Test Passed: Config validation is robust.", 'green')

    def test_02_single_worker_warning(self):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter('always')
            config = DynamicsConfig(parallel=True, num_workers=1)
        self.assertTrue(any(issubclass(w.category, ParallelismWarning) for w in caught))
        self.assertFalse(config.runs_parallel)

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter('always')
            config = DynamicsConfig(parallel=True, num_workers=3)
        self.assertEqual(caught, [])
        self.assertTrue(config.runs_parallel)

    def test_03_json_round_trip(self):
        config = DynamicsConfig(parallel=True, num_workers=2, dtype='float32')
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'dynamics.json')
            with open(path, 'w') as f:
                json.dump(config.to_dict(), f)
            loaded = load_config(path)
            self.assertEqual(loaded.to_dict(), config.to_dict())
            self.assertEqual(loaded.dtype, np.float32)

            with open(path, 'w') as f:
                json.dump([1, 2], f)
            with self.assertRaises(ConstructionError):
                load_config(path)


class TestWorkPartition(unittest.TestCase):

    def setUp(self):
        cprint(f"\n--- Running test: {self._testMethodName} ---", 'yellow')

    def test_01_contiguous_chunks(self):
        partition = WorkPartition(3)
        self.assertFalse(partition.is_parallel)
        self.assertEqual(partition.chunks(list(range(10))), [[0, 1, 2, 3], [4, 5, 6], [7, 8, 9]])
        self.assertEqual(partition.chunks([4, 7]), [[4], [7]])
        self.assertEqual(partition.chunks([]), [])

    def test_02_run_visits_every_index_once(self):
        indices = list(range(37))
        for parallel in (False, True):
            seen = []
            with WorkPartition(4, parallel=parallel) as partition:
                self.assertEqual(partition.is_parallel, parallel)
                partition.run(seen.extend, indices)
                self.assertEqual(partition.pool is not None, parallel)
            self.assertIsNone(partition.pool)
            self.assertEqual(sorted(seen), indices)
        cprint("Test Passed: Every index is visited exactly once.", 'green')


class TestHistory(unittest.TestCase):

    def setUp(self):
        cprint(f"\n--- Running test: {self._testMethodName} ---", 'yellow')

    def test_01_constant_history(self):
        h = ConstantHistory([1.0, 2.0, 3.0])
        np.testing.assert_array_equal(h(None, -5.0), [1.0, 2.0, 3.0])
        np.testing.assert_array_equal(h(None, 0.0, idxs=np.array([2, 0])), [3.0, 1.0])
        with self.assertRaises(ShapeMismatch):
            ConstantHistory(np.zeros((2, 2)))

    def test_02_tabulated_history(self):
        ts = np.array([0.0, 1.0, 2.0])
        xs = np.array([[0.0, 10.0], [1.0, 20.0], [4.0, 40.0]])
        h = TabulatedHistory(ts, xs)
        np.testing.assert_allclose(h(None, 0.5), [0.5, 15.0])
        np.testing.assert_allclose(h(None, 1.5, idxs=[1]), [30.0])
        # Outside the recorded interval the nearest sample is returned
        np.testing.assert_allclose(h(None, -1.0), [0.0, 10.0])
        np.testing.assert_allclose(h(None, 3.0), [4.0, 40.0])
        with self.assertRaises(ShapeMismatch):
            TabulatedHistory(ts, xs[:2])

if __name__ == "__main__":
    unittest.main(verbosity=2)
