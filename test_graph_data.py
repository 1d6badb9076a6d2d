# test_graph_data.py v1.0
# Unit tests for the swappable buffer, the entity views and the view aggregate.
# Views must keep observing whatever array the buffer currently holds.

import unittest
import numpy as np
from termcolor import cprint

from errors import IndexOutOfBounds, ShapeMismatch, TypeMismatch
from graph_data import EdgeView, GraphData, GraphDataBuffer, VertexView, view_e, view_v
from graph_structure import GraphStructure
from topologies import GraphTopology, generate_wheel_topology

EXAMPLE_EDGES = [(0, 1), (0, 3), (0, 4), (1, 2), (1, 3), (1, 4), (2, 3), (2, 4)]

class TestEntityViews(unittest.TestCase):

    def setUp(self):
        cprint(f"\n--- Running test: {self._testMethodName} ---", 'yellow')
        self.gdb = GraphDataBuffer(np.arange(1, 16), np.arange(1, 16))
        self.vd = VertexView(self.gdb, 5, 5)
        self.ed = EdgeView(self.gdb, 10, 4)

    def test_01_indexing(self):
        self.assertEqual(len(self.vd), 5)
        self.assertEqual(self.vd[0], 6)
        self.assertEqual(self.vd[-1], 10)
        self.assertEqual(self.ed[0], 11)
        self.assertEqual(self.ed[-1], 14)
        self.assertEqual(list(self.ed), [11, 12, 13, 14])
        np.testing.assert_array_equal(self.ed[1:3], [12, 13])

        with self.assertRaises(IndexOutOfBounds):
            cprint("  -> Testing validation: index past the end...", 'cyan')
            self.ed[4]
        with self.assertRaises(IndexOutOfBounds):
            self.vd[-6] = 1
        cprint("Test Passed: Views index their own slice only.", 'green')

    def test_02_writes_go_through_to_the_buffer(self):
        self.ed[0:2] = [1, 2]
        self.assertEqual((self.ed[0], self.ed[1]), (1, 2))
        self.ed[0:2] = np.arange(9, 11)
        self.assertEqual(self.ed[0:2].tolist(), [9, 10])
        self.ed[0:2] = np.array([1, 2, 3, 4])[[1, 2]]
        self.assertTrue(self.ed[0:2].tolist() == [2, 3])

        self.vd[1] = 42
        self.assertEqual(self.gdb.v_array[6], 42)
        # The edge array was not touched by the vertex write
        self.assertEqual(self.gdb.e_array[6], 7)
        # Slices are zero-copy
        self.vd.array[:] = 0
        self.assertEqual(self.gdb.v_array[5:10].tolist(), [0] * 5)

    def test_03_equality_and_numpy_interop(self):
        self.assertTrue(self.vd == np.arange(6, 11))
        self.assertFalse(self.vd == np.arange(6, 10))
        self.assertTrue(self.vd == [6, 7, 8, 9, 10])
        np.testing.assert_array_equal(np.asarray(self.ed), [11, 12, 13, 14])
        self.assertEqual(float(np.sum(self.ed)), 50.0)
        self.assertEqual(self.ed.dtype, self.gdb.e_array.dtype)

class TestGraphData(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cprint(f"\n--- Setting up Test Environment for GraphData ---", 'yellow')
        cls.topo = GraphTopology(5, EXAMPLE_EDGES, directed=False)
        cls.gs = GraphStructure(cls.topo, [2] * 5, [2] * 8)

    def setUp(self):
        rng = np.random.default_rng(3)
        self.v_array = rng.random(10)
        self.e_array = rng.random(16)
        self.gd = GraphData(self.v_array, self.e_array, self.gs)

    def assert_views(self, v_array, e_array):
        for i in range(5):
            self.assertTrue(self.gd.get_vertex(i) == v_array[2 * i:2 * i + 2])
        for i in range(8):
            self.assertTrue(self.gd.get_edge(i) == e_array[2 * i:2 * i + 2])

    def test_01_accessors(self):
        """Vertex, edge and endpoint views cover the ranges of the index."""
        self.assert_views(self.v_array, self.e_array)
        self.assertTrue(self.gd.vertex_view(2) == self.v_array[4:6])
        self.assertTrue(self.gd.get_src_vertex(0) == self.v_array[0:2])
        self.assertTrue(self.gd.get_dst_vertex(0) == self.v_array[2:4])
        self.assertTrue(self.gd.get_src_vertex(7) == self.v_array[4:6])
        self.assertTrue(self.gd.get_dst_vertex(7) == self.v_array[8:10])
        for e in range(8):
            self.assertTrue(self.gd.edge_source_view(e) == self.gd.vertex_view(self.gs.s_e[e]))
            self.assertTrue(self.gd.edge_dest_view(e) == self.gd.vertex_view(self.gs.d_e[e]))
        cprint("Test Passed: Accessors return the indexed slices.", 'green')

    def test_02_half_edges(self):
        """Each vertex sees the half of an undirected edge that faces it."""
        e = self.e_array
        self.assertTrue(list(self.gd.vertex_in_edges(0)) == [e[1:2], e[3:4], e[5:6]])
        self.assertTrue(list(self.gd.get_dst_edges(2)) == [e[6:7], e[13:14], e[15:16]])
        self.assertTrue(list(self.gd.get_dst_edges(4)) == [e[4:5], e[10:11], e[14:15]])
        self.assertTrue(list(self.gd.vertex_out_edges(0)) == [e[0:1], e[2:3], e[4:5]])

    def test_03_swapping(self):
        """After swaps every view observes the newly installed arrays."""
        rng = np.random.default_rng(11)
        for _ in range(3):
            v_new = rng.random(10)
            e_new = rng.random(16)
            self.gd.swap_v_array(v_new)
            self.gd.swap_e_array(e_new)
            self.assert_views(v_new, e_new)
            self.assertTrue(list(self.gd.get_dst_edges(0)) == [e_new[1:2], e_new[3:4], e_new[5:6]])

        # Writing through a view mutates the installed array
        self.gd.get_vertex(1)[0] = -1.0
        self.assertEqual(v_new[2], -1.0)
        cprint("Test Passed: Views survive buffer swaps.", 'green')

    def test_04_swap_type_mismatch_is_atomic(self):
        with self.assertRaises(TypeMismatch):
            cprint("  -> Testing validation: integer array into a float buffer...", 'cyan')
            self.gd.swap_v_array(np.arange(10))
        with self.assertRaises(TypeMismatch):
            self.gd.swap_e_array(list(range(16)))
        with self.assertRaises(ShapeMismatch):
            self.gd.swap_v_array(np.zeros(9))
        # The previous arrays are still installed
        self.assertIs(self.gd.v_array, self.v_array)
        self.assert_views(self.v_array, self.e_array)
        cprint("Test Passed: Failed swaps leave the old arrays installed.", 'green')

    def test_05_entity_out_of_range(self):
        with self.assertRaises(IndexOutOfBounds):
            self.gd.get_vertex(5)
        with self.assertRaises(IndexOutOfBounds):
            self.gd.get_edge(-1)
        with self.assertRaises(IndexOutOfBounds):
            self.gd.get_src_edges(7)
        with self.assertRaises(ShapeMismatch):
            GraphData(np.zeros(9), np.zeros(16), self.gs)

    def test_06_directed_wheel(self):
        """Endpoint views and incident edges on a directed wheel with edge dim 3."""
        topo = generate_wheel_topology(5, directed=True)
        gs = GraphStructure(topo, [2] * 5, [3] * topo.num_edges)
        v_array = np.random.rand(gs.dim_v)
        e_array = np.random.rand(gs.dim_e)
        gd = GraphData(v_array, e_array, gs)

        for i, (s, d) in enumerate(topo.edges):
            self.assertTrue(gd.get_edge(i) == e_array[3 * i:3 * i + 3])
            self.assertTrue(gd.get_src_vertex(i) == v_array[2 * s:2 * s + 2])
            self.assertTrue(gd.get_dst_vertex(i) == v_array[2 * d:2 * d + 2])
        for v in range(5):
            edges_in = [i for i, (_, d) in enumerate(topo.edges) if d == v]
            edges_out = [i for i, (s, _) in enumerate(topo.edges) if s == v]
            self.assertTrue(list(gd.get_dst_edges(v)) == [e_array[3 * i:3 * i + 3] for i in edges_in])
            self.assertTrue(list(gd.get_src_edges(v)) == [e_array[3 * i:3 * i + 3] for i in edges_out])

    def test_07_symbol_views(self):
        topo = GraphTopology(2, [(0, 1)], directed=True)
        gs = GraphStructure(topo, [2, 2], [1], v_syms=['u_0', 'w_0', 'u_1', 'w_1'], e_syms=['flow_0'])
        gd = GraphData(np.array([1.0, 2.0, 3.0, 4.0]), np.array([5.0]), gs)
        np.testing.assert_array_equal(view_v(gd, gs, 'u'), [1.0, 3.0])
        np.testing.assert_array_equal(view_v(gd, gs, '_1'), [3.0, 4.0])
        np.testing.assert_array_equal(view_e(gd, gs, 'flow'), [5.0])
        self.assertEqual(len(view_v(gd, gs, 'nothing')), 0)

if __name__ == "__main__":
    unittest.main(verbosity=2)
