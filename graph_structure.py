# graph_structure.py v1.0
# Part of NetDyn: Graph-Indexed Network Dynamics
# - GraphStructure is the static topology/offset index. It is computed once
#   from a graph and the per-vertex/per-edge dimensions and never mutated.
# - It assumes two flat arrays, one for the vertex variables and one for the
#   edge variables. The graph itself is encoded in s_e and d_e, the source and
#   destination vertex of every edge, so that edge e = (s_e[e], d_e[e]).

from termcolor import cprint

from errors import ConstructionError, ShapeMismatch
from offsets import create_offsets_and_idxs, check_dims
from topologies import as_topology


class GraphStructure:
    """
    Offsets and index ranges for every aspect of the graph.

    Attributes:
        num_v, num_e (int): Number of vertices and edges.
        v_dims, e_dims (tuple): Dimension per vertex / per edge.
        dim_v, dim_e (int): Total vertex / edge dimension.
        s_e, d_e (tuple): Source / destination vertex per edge.
        s_v, d_v (tuple): Edges leaving / entering each vertex.
        v_offs, e_offs (tuple): Linear offset per vertex / edge.
        v_idx, e_idx (tuple): Index range per vertex / edge.
        s_e_offs, d_e_offs (tuple): Offset of the source / destination vertex per edge.
        s_e_idx, d_e_idx (tuple): Index range of the source / destination vertex per edge.
        dst_edges_dat (tuple): Per vertex, (offset, length) of the (half-)edges entering it.
        src_edges_dat (tuple): Per vertex, (offset, length) of the (half-)edges leaving it.
    """
    def __init__(self, graph, v_dims, e_dims, v_syms=None, e_syms=None, verbose: bool = False):
        topology = as_topology(graph)
        self.directed = topology.is_directed()
        self.num_v = topology.num_vertices
        self.num_e = topology.num_edges

        v_dims = list(v_dims)
        e_dims = list(e_dims)
        if len(v_dims) != self.num_v:
            raise ConstructionError(f"Got {len(v_dims)} vertex dimensions for {self.num_v} vertices.")
        if len(e_dims) != self.num_e:
            raise ConstructionError(f"Got {len(e_dims)} edge dimensions for {self.num_e} edges.")
        check_dims(v_dims)
        check_dims(e_dims)
        if not self.directed:
            for i, dim in enumerate(e_dims):
                if dim % 2 != 0:
                    raise ShapeMismatch(
                        f"Edge {i} has odd dimension {dim}; edges of an undirected graph "
                        "carry one half per direction.")

        self.v_dims = tuple(int(d) for d in v_dims)
        self.e_dims = tuple(int(d) for d in e_dims)
        self.dim_v = sum(self.v_dims)
        self.dim_e = sum(self.e_dims)
        self.v_syms = self._check_syms(v_syms, self.dim_v, "vertex")
        self.e_syms = self._check_syms(e_syms, self.dim_e, "edge")

        self.s_e = tuple(topology.src)
        self.d_e = tuple(topology.dst)

        s_v = [[] for _ in range(self.num_v)]
        d_v = [[] for _ in range(self.num_v)]
        for i in range(self.num_e):
            s_v[self.s_e[i]].append(i)
            d_v[self.d_e[i]].append(i)
        self.s_v = tuple(tuple(l) for l in s_v)
        self.d_v = tuple(tuple(l) for l in d_v)

        v_offs, v_idx = create_offsets_and_idxs(self.v_dims)
        e_offs, e_idx = create_offsets_and_idxs(self.e_dims)
        self.v_offs, self.v_idx = tuple(v_offs), tuple(v_idx)
        self.e_offs, self.e_idx = tuple(e_offs), tuple(e_idx)

        self.s_e_offs = tuple(self.v_offs[s] for s in self.s_e)
        self.d_e_offs = tuple(self.v_offs[d] for d in self.d_e)
        self.s_e_idx = tuple(self.v_idx[s] for s in self.s_e)
        self.d_e_idx = tuple(self.v_idx[d] for d in self.d_e)

        dst_edges_dat = []
        src_edges_dat = []
        for i_v in range(self.num_v):
            edges_in = []
            edges_out = []
            if self.directed:
                for i_e in self.d_v[i_v]:
                    edges_in.append((self.e_offs[i_e], self.e_dims[i_e]))
                for i_e in self.s_v[i_v]:
                    edges_out.append((self.e_offs[i_e], self.e_dims[i_e]))
            else:
                # The first half of an undirected edge faces its destination,
                # the second half faces its source.
                for i_e in self.d_v[i_v]:
                    half = self.e_dims[i_e] // 2
                    edges_in.append((self.e_offs[i_e], half))
                    edges_out.append((self.e_offs[i_e] + half, half))
                for i_e in self.s_v[i_v]:
                    half = self.e_dims[i_e] // 2
                    edges_in.append((self.e_offs[i_e] + half, half))
                    edges_out.append((self.e_offs[i_e], half))
            dst_edges_dat.append(tuple(edges_in))
            src_edges_dat.append(tuple(edges_out))
        self.dst_edges_dat = tuple(dst_edges_dat)
        self.src_edges_dat = tuple(src_edges_dat)

        if verbose:
            kind = "directed" if self.directed else "undirected"
            cprint(f"   -> Indexed {kind} graph: {self.num_v} vertices (dim {self.dim_v}), "
                   f"{self.num_e} edges (dim {self.dim_e}).", 'green')

    @staticmethod
    def _check_syms(syms, total: int, what: str) -> tuple:
        if syms is None:
            return ()
        syms = tuple(str(s) for s in syms)
        if len(syms) != total:
            raise ConstructionError(f"Got {len(syms)} {what} symbols for a total {what} dimension of {total}.")
        return syms

    def vertex_neighbors(self, i: int) -> list:
        """Sources of the edges entering `i`, then destinations of the edges leaving it."""
        return [self.s_e[e] for e in self.d_v[i]] + [self.d_e[e] for e in self.s_v[i]]

    def describe(self) -> dict:
        return {
            'directed': self.directed,
            'num_vertices': self.num_v,
            'num_edges': self.num_e,
            'dim_v': self.dim_v,
            'dim_e': self.dim_e,
        }

    def __repr__(self):
        kind = "directed" if self.directed else "undirected"
        return (f"GraphStructure({kind}, num_v={self.num_v}, num_e={self.num_e}, "
                f"dim_v={self.dim_v}, dim_e={self.dim_e})")
