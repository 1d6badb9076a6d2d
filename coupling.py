# coupling.py v1.0
# Part of NetDyn: Graph-Indexed Network Dynamics
# - On undirected graphs each edge carries two halves, one per direction.
#   Users write edge functions for a single direction; `prepare_edges`
#   rebuilds them into two-sided functions of doubled dimension according to
#   the edge's coupling policy. This has to run before the GraphStructure is
#   built, because it changes the edge dimensions.
# - On directed graphs the policies that only make sense for undirected
#   edges are rejected.

import numpy as np
import scipy.sparse as sp
from scipy.linalg import block_diag

from components import (ComponentKind, Coupling, EdgeComponent, StaticEdge,
                        StaticDelayEdge, ODEEdge, promote_all)
from errors import CouplingError
from topologies import as_topology

UNDIRECTED_ONLY = (Coupling.SYMMETRIC, Coupling.ANTISYMMETRIC, Coupling.UNDIRECTED)
RECONSTRUCTED = (Coupling.UNSPECIFIED, Coupling.SYMMETRIC, Coupling.ANTISYMMETRIC)


def _doubled_mass_matrix(mass_matrix):
    if mass_matrix is None or np.isscalar(mass_matrix):
        return mass_matrix
    if sp.issparse(mass_matrix):
        return sp.block_diag([mass_matrix, mass_matrix], format='csr')
    mass_matrix = np.asarray(mass_matrix)
    if mass_matrix.ndim == 1:
        return np.concatenate([mass_matrix, mass_matrix])
    return block_diag(mass_matrix, mass_matrix)


def _reconstruct_static(edge: StaticEdge) -> StaticEdge:
    dim, orig_f, coupling = edge.dim, edge.f, edge.coupling
    if coupling == Coupling.UNSPECIFIED:
        # Only consistent if orig_f depends on nothing but its two endpoint views.
        def f(e, v_s, v_d, p, t):
            orig_f(e[:dim], v_s, v_d, p, t)
            orig_f(e[dim:], v_d, v_s, p, t)
    elif coupling == Coupling.ANTISYMMETRIC:
        def f(e, v_s, v_d, p, t):
            orig_f(e[:dim], v_s, v_d, p, t)
            e[dim:] = -e[:dim]
    else:
        def f(e, v_s, v_d, p, t):
            orig_f(e[:dim], v_s, v_d, p, t)
            e[dim:] = e[:dim]
    return StaticEdge(f, 2 * dim, coupling=Coupling.UNDIRECTED, sym=edge.sym * 2)


def _reconstruct_delay(edge: StaticDelayEdge) -> StaticDelayEdge:
    dim, orig_f, coupling = edge.dim, edge.f, edge.coupling
    if coupling == Coupling.UNSPECIFIED:
        def f(e, v_s, v_d, h_s, h_d, p, t):
            orig_f(e[:dim], v_s, v_d, h_s, h_d, p, t)
            orig_f(e[dim:], v_d, v_s, h_d, h_s, p, t)
    elif coupling == Coupling.ANTISYMMETRIC:
        def f(e, v_s, v_d, h_s, h_d, p, t):
            orig_f(e[:dim], v_s, v_d, h_s, h_d, p, t)
            e[dim:] = -e[:dim]
    else:
        def f(e, v_s, v_d, h_s, h_d, p, t):
            orig_f(e[:dim], v_s, v_d, h_s, h_d, p, t)
            e[dim:] = e[:dim]
    return StaticDelayEdge(f, 2 * dim, coupling=Coupling.UNDIRECTED, sym=edge.sym * 2)


def _reconstruct_ode(edge: ODEEdge) -> ODEEdge:
    dim, orig_f, coupling = edge.dim, edge.f, edge.coupling
    if coupling == Coupling.UNSPECIFIED:
        def f(de, e, v_s, v_d, p, t):
            orig_f(de[:dim], e[:dim], v_s, v_d, p, t)
            orig_f(de[dim:], e[dim:], v_d, v_s, p, t)
    elif coupling == Coupling.ANTISYMMETRIC:
        def f(de, e, v_s, v_d, p, t):
            orig_f(de[:dim], e[:dim], v_s, v_d, p, t)
            de[dim:] = -de[:dim]
    else:
        def f(de, e, v_s, v_d, p, t):
            orig_f(de[:dim], e[:dim], v_s, v_d, p, t)
            de[dim:] = de[:dim]
    return ODEEdge(f, 2 * dim, coupling=Coupling.UNDIRECTED, sym=edge.sym * 2,
                   mass_matrix=_doubled_mass_matrix(edge.mass_matrix))


_RECONSTRUCTORS = {
    ComponentKind.STATIC_EDGE: _reconstruct_static,
    ComponentKind.STATIC_DELAY_EDGE: _reconstruct_delay,
    ComponentKind.ODE_EDGE: _reconstruct_ode,
}


def reconstruct_edge(edge: EdgeComponent) -> EdgeComponent:
    """
    Rebuilds an edge that only computes the output at its destination end into
    one that computes output for both ends. The dimension doubles: the first
    `dim` entries face the destination, the second `dim` entries the source.
    """
    if edge.coupling not in RECONSTRUCTED:
        raise CouplingError(f"Coupling '{edge.coupling.value}' cannot be symmetrized.")
    return _RECONSTRUCTORS[edge.kind](edge)


def _prepare_edge(i, edge: EdgeComponent, directed: bool) -> EdgeComponent:
    if directed:
        if edge.coupling in UNDIRECTED_ONLY:
            raise CouplingError(f"Coupling type '{edge.coupling.value}' of edge {i} "
                                "is not available for directed graphs.")
        return edge
    if edge.coupling == Coupling.DIRECTED:
        raise CouplingError(f"Coupling type 'directed' of edge {i} is not available for undirected graphs.")
    if edge.coupling in RECONSTRUCTED:
        return reconstruct_edge(edge)
    return edge


def prepare_edges(edges, graph):
    """
    Validates the coupling of every edge against the graph's directedness and
    symmetrizes the edges of undirected graphs. Accepts a single edge component
    or a list; shared components are rebuilt once and stay shared.
    """
    directed = as_topology(graph).is_directed()
    if isinstance(edges, EdgeComponent):
        return _prepare_edge(0, edges, directed)
    prepared = {}
    for i, edge in enumerate(edges):
        if id(edge) not in prepared:
            prepared[id(edge)] = _prepare_edge(i, edge, directed)
    return promote_all(edges, lambda edge: prepared[id(edge)])
