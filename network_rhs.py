# network_rhs.py v1.0
# Part of NetDyn: Graph-Indexed Network Dynamics
# - NetworkRHS is the callable an external ODE/DDE solver evaluates once per
#   right-hand side: it points the calling thread's GraphData at the solver's state,
#   then runs every edge group followed by every vertex group.
# - Entities are grouped once, at construction, by the identity of their
#   component. Each group runs through one kind-specific loop, so there are
#   no per-entity type tests during evaluation.
# - Every check (parameter sizes, buffer lengths) happens before the first
#   user function is called.

import threading
from enum import Enum
from functools import partial

import numpy as np

from components import ComponentKind
from errors import ConstructionError, IndexOutOfBounds, ShapeMismatch, TypeMismatch
from graph_data import GraphData


class AssemblyPath(Enum):
    ODE_STATIC = 'ode_static'  # ODE vertices, static edges; state = vertices
    DDE_STATIC = 'dde_static'  # history-aware vertices and edges; state = vertices
    ODE_ODE = 'ode_ode'        # ODE vertices and dynamic edges; state = vertices + edges


def group_by_identity(components) -> list:
    """[(component, [entity indices])] in order of first appearance."""
    groups = {}
    for i, c in enumerate(components):
        if id(c) not in groups:
            groups[id(c)] = (c, [])
        groups[id(c)][1].append(i)
    return list(groups.values())


def _is_per_entity(p_side) -> bool:
    if isinstance(p_side, np.ndarray):
        return p_side.ndim >= 1
    return isinstance(p_side, (list, tuple))


def split_parameters(p) -> tuple:
    """
    Splits `p` into (p_v, v_local, p_e, e_local). A 2-tuple is read as
    (vertex parameters, edge parameters); a side that is a list, tuple or
    array is indexed per entity, anything else is passed to every entity.
    """
    if isinstance(p, tuple) and len(p) == 2:
        p_v, p_e = p
        return p_v, _is_per_entity(p_v), p_e, _is_per_entity(p_e)
    return p, False, p, False


def check_parameters(p, num_v: int, num_e: int) -> tuple:
    p_v, v_local, p_e, e_local = split_parameters(p)
    if v_local and len(p_v) != num_v:
        raise IndexOutOfBounds(f"Got vertex parameters for {len(p_v)} vertices, the graph has {num_v}.")
    if e_local and len(p_e) != num_e:
        raise IndexOutOfBounds(f"Got edge parameters for {len(p_e)} edges, the graph has {num_e}.")
    return p_v, v_local, p_e, e_local


def local_history(h, p, global_idxs: np.ndarray):
    """Wraps a global history `h(p, t, idxs)` so local indices of one entity map to global ones."""
    def h_local(t, idxs=None):
        if idxs is None:
            return h(p, t, idxs=global_idxs)
        return h(p, t, idxs=global_idxs[idxs])
    return h_local


class NetworkRHS:
    """
    The right-hand side of a network dynamical system.

    Call as `rhs(dx, x, p, t)` or, for history-aware networks,
    `rhs(dx, x, h, p, t)`. `dx` is written in place.
    """
    def __init__(self, vertices: list, edges: list, graph_structure, graph_data: GraphData,
                 path: AssemblyPath, partition):
        self.graph_structure = graph_structure
        self.path = path
        self.partition = partition
        self._dtype = graph_data.v_array.dtype
        # One aggregate (and edge scratch buffer) per calling thread; the
        # constructing thread owns the prototype.
        self._local = threading.local()
        self._local.graph_data = graph_data
        self._local.edge_scratch = graph_data.e_array
        gs = graph_structure

        if len(vertices) != gs.num_v or len(edges) != gs.num_e:
            raise ConstructionError("Number of components does not match the graph structure.")

        self._v_slices = tuple(slice(idx.start, idx.stop) for idx in gs.v_idx)
        self._e_dx_slices = tuple(slice(idx.start + gs.dim_v, idx.stop + gs.dim_v) for idx in gs.e_idx)
        self._v_ranges = tuple(np.arange(idx.start, idx.stop) for idx in gs.v_idx)

        loops = {
            ComponentKind.ODE_VERTEX: self._ode_vertex_loop,
            ComponentKind.DIRECTED_ODE_VERTEX: self._directed_vertex_loop,
            ComponentKind.DDE_VERTEX: self._dde_vertex_loop,
            ComponentKind.STATIC_EDGE: self._static_edge_loop,
            ComponentKind.STATIC_DELAY_EDGE: self._static_delay_edge_loop,
            ComponentKind.ODE_EDGE: self._ode_edge_loop,
        }
        self.vertex_groups = [(c, indices, loops[c.kind]) for c, indices in group_by_identity(vertices)]
        self.edge_groups = [(c, indices, loops[c.kind]) for c, indices in group_by_identity(edges)]

    @property
    def graph_data(self) -> GraphData:
        """The aggregate used by evaluations on the calling thread."""
        local = self._local
        if not hasattr(local, 'graph_data'):
            gs = self.graph_structure
            local.graph_data = GraphData(np.zeros(gs.dim_v, dtype=self._dtype),
                                         np.zeros(gs.dim_e, dtype=self._dtype), gs)
            local.edge_scratch = local.graph_data.e_array
        return local.graph_data

    @property
    def needs_history(self) -> bool:
        return self.path == AssemblyPath.DDE_STATIC

    @property
    def state_dim(self) -> int:
        gs = self.graph_structure
        return gs.dim_v + gs.dim_e if self.path == AssemblyPath.ODE_ODE else gs.dim_v

    # --- inner loops, one per component kind ---

    def _ode_vertex_loop(self, component, chunk, dx, gd, params, t, h):
        f = component.f
        p_v, v_local = params[0], params[1]
        for i in chunk:
            f(dx[self._v_slices[i]], gd.v[i], gd.dst_edges[i], p_v[i] if v_local else p_v, t)

    def _directed_vertex_loop(self, component, chunk, dx, gd, params, t, h):
        f = component.f
        p_v, v_local = params[0], params[1]
        for i in chunk:
            f(dx[self._v_slices[i]], gd.v[i],
              gd.dst_edges[i],  # edges entering the vertex
              gd.src_edges[i],  # edges leaving the vertex
              p_v[i] if v_local else p_v, t)

    def _dde_vertex_loop(self, component, chunk, dx, gd, params, t, h):
        f = component.f
        p_v, v_local = params[0], params[1]
        p = params[4]
        for i in chunk:
            h_v = local_history(h, p, self._v_ranges[i])
            f(dx[self._v_slices[i]], gd.v[i], gd.dst_edges[i], h_v, p_v[i] if v_local else p_v, t)

    def _static_edge_loop(self, component, chunk, dx, gd, params, t, h):
        f = component.f
        p_e, e_local = params[2], params[3]
        for i in chunk:
            f(gd.e[i], gd.v_s_e[i], gd.v_d_e[i], p_e[i] if e_local else p_e, t)

    def _static_delay_edge_loop(self, component, chunk, dx, gd, params, t, h):
        f = component.f
        gs = self.graph_structure
        p_e, e_local = params[2], params[3]
        p = params[4]
        for i in chunk:
            h_s = local_history(h, p, self._v_ranges[gs.s_e[i]])
            h_d = local_history(h, p, self._v_ranges[gs.d_e[i]])
            f(gd.e[i], gd.v_s_e[i], gd.v_d_e[i], h_s, h_d, p_e[i] if e_local else p_e, t)

    def _ode_edge_loop(self, component, chunk, dx, gd, params, t, h):
        f = component.f
        p_e, e_local = params[2], params[3]
        for i in chunk:
            f(dx[self._e_dx_slices[i]], gd.e[i], gd.v_s_e[i], gd.v_d_e[i],
              p_e[i] if e_local else p_e, t)

    def _run_groups(self, groups, dx, gd, params, t, h):
        for component, indices, loop in groups:
            self.partition.run(partial(loop, component, dx=dx, gd=gd, params=params, t=t, h=h), indices)

    # --- buffer installation ---

    def _split_state(self, x: np.ndarray) -> tuple:
        gs = self.graph_structure
        if x.ndim != 1:
            raise ShapeMismatch(f"State must be a flat array, got shape {x.shape}.")
        n = x.shape[0]
        if n == gs.dim_v + gs.dim_e:
            return x[:gs.dim_v], x[gs.dim_v:]
        if n == gs.dim_v and self.path != AssemblyPath.ODE_ODE:
            return x, None
        raise ShapeMismatch(f"Size of the state ({n}) does not match the dimension of the system "
                            f"({self.state_dim}).")

    def _install(self, x: np.ndarray) -> GraphData:
        v_part, e_part = self._split_state(x)
        gd = self.graph_data
        if x.dtype == gd.v_array.dtype:
            gd.swap_v_array(v_part)
            # Static edges of a vertex-only state live in the edge scratch buffer.
            gd.swap_e_array(self._local.edge_scratch if e_part is None else e_part)
            return gd
        # A solver working in another element type gets a transient aggregate.
        if e_part is None:
            e_part = np.zeros(self.graph_structure.dim_e, dtype=x.dtype)
        return GraphData(v_part, e_part, self.graph_structure)

    # --- entry points ---

    def evaluate(self, dx, x, p, t, h=None):
        gs = self.graph_structure
        split = check_parameters(p, gs.num_v, gs.num_e)
        if not isinstance(dx, np.ndarray):
            raise TypeMismatch(f"The derivative buffer must be a numpy array, got {type(dx).__name__}.")
        x = np.asarray(x)
        if dx.shape != x.shape:
            raise ShapeMismatch(f"Sizes of dx {dx.shape} and x {x.shape} do not match.")
        if self.needs_history and h is None:
            raise TypeError("This network contains history-aware components and needs a history function.")

        gd = self._install(x)
        params = split + (p,)
        self._run_groups(self.edge_groups, dx, gd, params, t, h)
        self._run_groups(self.vertex_groups, dx, gd, params, t, h)

    def __call__(self, dx, x, *args):
        if len(args) == 2:
            p, t = args
            h = None
        elif len(args) == 3:
            h, p, t = args
        else:
            raise TypeError("Call as rhs(dx, x, p, t) or rhs(dx, x, h, p, t).")
        self.evaluate(dx, x, p, t, h)

    def graph_data_snapshot(self, x, p, t, h=None) -> GraphData:
        """
        A GraphData on top of `x` for inspection. For networks with static
        edges and a vertex-only state the edge values are computed first.
        The aggregate used for evaluation is not touched.
        """
        gs = self.graph_structure
        params = check_parameters(p, gs.num_v, gs.num_e) + (p,)
        x = np.asarray(x)
        v_part, e_part = self._split_state(x)
        if e_part is None:
            gd = GraphData(v_part, np.zeros(gs.dim_e, dtype=x.dtype), gs)
            self._run_groups(self.edge_groups, None, gd, params, t, h)
        else:
            gd = GraphData(v_part, e_part, gs)
        return gd
