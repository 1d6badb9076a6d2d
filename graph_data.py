# graph_data.py v1.0
# Part of NetDyn: Graph-Indexed Network Dynamics
# - GraphDataBuffer is the single mutable cell holding the vertex and edge
#   arrays. Replacing an array rewrites one attribute and nothing else.
# - VertexView/EdgeView behave like small mutable sequences over one entity's
#   slice. They store (buffer, offset, length) and resolve the array through
#   the buffer on every access, so they stay valid across swaps.
# - GraphData precomputes every view once from a GraphStructure.

from collections.abc import Sequence

import numpy as np

from errors import IndexOutOfBounds, ShapeMismatch, TypeMismatch


class GraphDataBuffer:
    """Holds the two flat arrays underlying the data of a graph. Both can be swapped."""
    def __init__(self, v_array: np.ndarray, e_array: np.ndarray):
        self.v_array = np.asarray(v_array)
        self.e_array = np.asarray(e_array)

    @staticmethod
    def _check_swap(current: np.ndarray, array, what: str):
        if not isinstance(array, np.ndarray):
            raise TypeMismatch(f"The {what} array must be a numpy array, got {type(array).__name__}.")
        if array.dtype != current.dtype:
            raise TypeMismatch(f"Cannot swap a {array.dtype} {what} array into a {current.dtype} buffer.")
        if array.shape != current.shape:
            raise ShapeMismatch(f"Cannot swap a {what} array of shape {array.shape} "
                                f"into a buffer of shape {current.shape}.")

    def swap_v_array(self, array: np.ndarray):
        self._check_swap(self.v_array, array, "vertex")
        self.v_array = array

    def swap_e_array(self, array: np.ndarray):
        self._check_swap(self.e_array, array, "edge")
        self.e_array = array


class EntityView(Sequence):
    """
    View-like access to the data of one vertex or edge.

    Unlike a numpy view, the parent array is not stored in the view but in
    the GraphDataBuffer, which means the parent can be swapped. Integer
    indices are local (0..len-1); slices return zero-copy numpy views of the
    currently installed array.
    """
    __slots__ = ('gdb', 'idx_offset', 'len')

    def __init__(self, gdb: GraphDataBuffer, idx_offset: int, length: int):
        self.gdb = gdb
        self.idx_offset = idx_offset
        self.len = length

    def _parent(self) -> np.ndarray:
        raise NotImplementedError

    @property
    def array(self) -> np.ndarray:
        """Zero-copy numpy slice of the currently installed array."""
        return self._parent()[self.idx_offset:self.idx_offset + self.len]

    @property
    def dtype(self):
        return self._parent().dtype

    def _local(self, idx) -> int:
        if idx < 0:
            idx += self.len
        if not 0 <= idx < self.len:
            raise IndexOutOfBounds(f"Index {idx} out of bounds for a view of length {self.len}.")
        return self.idx_offset + idx

    def __len__(self):
        return self.len

    def __getitem__(self, idx):
        if isinstance(idx, (int, np.integer)):
            return self._parent()[self._local(int(idx))]
        return self.array[idx]

    def __setitem__(self, idx, value):
        if isinstance(idx, (int, np.integer)):
            self._parent()[self._local(int(idx))] = value
        else:
            self.array[idx] = value

    def __iter__(self):
        return iter(self.array)

    def __array__(self, dtype=None, copy=None):
        if copy:
            return np.array(self.array, dtype=dtype)
        return np.asarray(self.array, dtype=dtype)

    def __eq__(self, other):
        try:
            other = np.asarray(other)
        except (TypeError, ValueError):
            return NotImplemented
        if other.shape != (self.len,):
            return False
        return bool(np.array_equal(self.array, other))

    __hash__ = None

    def __repr__(self):
        return f"{self.__class__.__name__}({self.array.tolist()})"


class VertexView(EntityView):
    __slots__ = ()

    def _parent(self) -> np.ndarray:
        return self.gdb.v_array


class EdgeView(EntityView):
    __slots__ = ()

    def _parent(self) -> np.ndarray:
        return self.gdb.e_array


def _check_entity(i: int, count: int, what: str):
    if not 0 <= i < count:
        raise IndexOutOfBounds(f"{what} {i} does not exist (valid: 0..{count - 1}).")


class GraphData:
    """
    Access to the underlying linear data of a graph in terms of vertices and edges.

    All views are built once from a GraphStructure and reference the
    GraphDataBuffer, never a specific array, so `swap_v_array` and
    `swap_e_array` change what every view observes without rebuilding any.
    """
    def __init__(self, v_array: np.ndarray, e_array: np.ndarray, gs):
        v_array = np.asarray(v_array)
        e_array = np.asarray(e_array)
        if v_array.shape != (gs.dim_v,):
            raise ShapeMismatch(f"Vertex array has shape {v_array.shape}, expected ({gs.dim_v},).")
        if e_array.shape != (gs.dim_e,):
            raise ShapeMismatch(f"Edge array has shape {e_array.shape}, expected ({gs.dim_e},).")

        self.gdb = GraphDataBuffer(v_array, e_array)
        gdb = self.gdb
        self.num_v = gs.num_v
        self.num_e = gs.num_e

        self.v = [VertexView(gdb, off, dim) for off, dim in zip(gs.v_offs, gs.v_dims)]
        self.e = [EdgeView(gdb, off, dim) for off, dim in zip(gs.e_offs, gs.e_dims)]
        # The vertices that are the source / destination of each edge
        self.v_s_e = [VertexView(gdb, off, gs.v_dims[s])
                      for off, s in zip(gs.s_e_offs, gs.s_e)]
        self.v_d_e = [VertexView(gdb, off, gs.v_dims[d])
                      for off, d in zip(gs.d_e_offs, gs.d_e)]
        # The (half-)edges that have each vertex as destination / source
        self.dst_edges = [tuple(EdgeView(gdb, off, dim) for off, dim in edges_in)
                          for edges_in in gs.dst_edges_dat]
        self.src_edges = [tuple(EdgeView(gdb, off, dim) for off, dim in edges_out)
                          for edges_out in gs.src_edges_dat]

    @property
    def v_array(self) -> np.ndarray:
        return self.gdb.v_array

    @property
    def e_array(self) -> np.ndarray:
        return self.gdb.e_array

    def swap_v_array(self, array: np.ndarray):
        """Swaps the underlying vertex array. Element type and length must match."""
        self.gdb.swap_v_array(array)

    def swap_e_array(self, array: np.ndarray):
        """Swaps the underlying edge array. Element type and length must match."""
        self.gdb.swap_e_array(array)

    def get_vertex(self, i: int) -> VertexView:
        _check_entity(i, self.num_v, "Vertex")
        return self.v[i]

    def get_edge(self, i: int) -> EdgeView:
        _check_entity(i, self.num_e, "Edge")
        return self.e[i]

    def get_src_vertex(self, i: int) -> VertexView:
        """The data of the source vertex of edge `i`."""
        _check_entity(i, self.num_e, "Edge")
        return self.v_s_e[i]

    def get_dst_vertex(self, i: int) -> VertexView:
        """The data of the destination vertex of edge `i`."""
        _check_entity(i, self.num_e, "Edge")
        return self.v_d_e[i]

    def get_dst_edges(self, i: int) -> tuple:
        """
        The (half-)edges that have vertex `i` as destination. For directed
        graphs these are the in-edges.
        """
        _check_entity(i, self.num_v, "Vertex")
        return self.dst_edges[i]

    def get_src_edges(self, i: int) -> tuple:
        """
        The (half-)edges that have vertex `i` as source. For directed graphs
        these are the out-edges.
        """
        _check_entity(i, self.num_v, "Vertex")
        return self.src_edges[i]

    vertex_view = get_vertex
    edge_view = get_edge
    edge_source_view = get_src_vertex
    edge_dest_view = get_dst_vertex
    vertex_in_edges = get_dst_edges
    vertex_out_edges = get_src_edges


def positions_containing(syms, sym="") -> list:
    """Positions of all symbols containing `sym`, in buffer order."""
    sym = str(sym)
    return [i for i, s in enumerate(syms) if sym in s]


def view_v(gd: GraphData, gs, sym="") -> np.ndarray:
    """Values of the vertex variables whose symbol contains `sym`."""
    return gd.v_array[positions_containing(gs.v_syms, sym)]


def view_e(gd: GraphData, gs, sym="") -> np.ndarray:
    """Values of the edge variables whose symbol contains `sym`."""
    return gd.e_array[positions_containing(gs.e_syms, sym)]
