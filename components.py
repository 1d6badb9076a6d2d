# components.py v1.0
# Part of NetDyn: Graph-Indexed Network Dynamics
# - The update-function kinds form a closed set (ComponentKind). Every
#   component carries its kind as a class attribute, so the dispatcher can
#   branch on a tag instead of running isinstance chains in the hot loop.
# - Promotion between kinds (static edge -> delay edge, static edge -> ODE
#   edge, ODE vertex -> DDE vertex) is explicit and identity-preserving.
#
# Call signatures (all views 0-based):
#   ODEVertex          f(dv, v, edges_in, p, t)
#   DirectedODEVertex  f(dv, v, edges_in, edges_out, p, t)
#   DDEVertex          f(dv, v, edges_in, h_v, p, t)
#   StaticEdge         f(e, v_s, v_d, p, t)
#   StaticDelayEdge    f(e, v_s, v_d, h_s, h_d, p, t)
#   ODEEdge            f(de, e, v_s, v_d, p, t)

from enum import Enum

import numpy as np

from errors import ConstructionError


class ComponentKind(Enum):
    ODE_VERTEX = 'ode_vertex'
    DIRECTED_ODE_VERTEX = 'directed_ode_vertex'
    DDE_VERTEX = 'dde_vertex'
    STATIC_EDGE = 'static_edge'
    STATIC_DELAY_EDGE = 'static_delay_edge'
    ODE_EDGE = 'ode_edge'


class Coupling(Enum):
    """How the two halves of an undirected edge relate."""
    UNSPECIFIED = 'unspecified'
    SYMMETRIC = 'symmetric'
    ANTISYMMETRIC = 'antisymmetric'
    DIRECTED = 'directed'
    UNDIRECTED = 'undirected'


class Component:
    """
    Base class for all vertex and edge update functions.

    Attributes:
        f (callable): The user's update function, see the module header for its signature.
        dim (int): Number of state variables of one entity.
        sym (list): One symbol per state variable.
    """
    kind = None
    default_sym = 'x'

    def __init__(self, f, dim: int, sym=None):
        if not callable(f):
            raise ConstructionError(f"{self.__class__.__name__}: f must be callable.")
        if isinstance(dim, bool) or not isinstance(dim, (int, np.integer)) or dim <= 0:
            raise ConstructionError(f"{self.__class__.__name__}: dim must be a positive integer, got {dim!r}.")
        if sym is None:
            sym = [self.default_sym] * dim
        sym = [str(s) for s in sym]
        if len(sym) != dim:
            raise ConstructionError(f"{self.__class__.__name__}: got {len(sym)} symbols for dim {dim}.")
        self.f = f
        self.dim = int(dim)
        self.sym = sym

    def __repr__(self):
        name = getattr(self.f, '__name__', repr(self.f))
        return f"{self.__class__.__name__}(f={name}, dim={self.dim})"


class VertexComponent(Component):
    default_sym = 'v'

    def __init__(self, f, dim: int, sym=None, mass_matrix=None):
        super().__init__(f, dim, sym)
        self.mass_matrix = mass_matrix


class EdgeComponent(Component):
    default_sym = 'e'

    def __init__(self, f, dim: int, coupling=Coupling.UNSPECIFIED, sym=None):
        super().__init__(f, dim, sym)
        try:
            self.coupling = Coupling(coupling)
        except ValueError:
            raise ConstructionError(f"Unknown coupling type: {coupling!r}") from None


class ODEVertex(VertexComponent):
    kind = ComponentKind.ODE_VERTEX


class DirectedODEVertex(VertexComponent):
    """A vertex that sees its incoming and its outgoing edges."""
    kind = ComponentKind.DIRECTED_ODE_VERTEX


class DDEVertex(VertexComponent):
    """A vertex that can query the past of its own state through `h_v(t, idxs)`."""
    kind = ComponentKind.DDE_VERTEX


class StaticEdge(EdgeComponent):
    """An edge whose value is an instantaneous function of its endpoints."""
    kind = ComponentKind.STATIC_EDGE


class StaticDelayEdge(EdgeComponent):
    kind = ComponentKind.STATIC_DELAY_EDGE


class ODEEdge(EdgeComponent):
    """An edge with its own dynamic state, integrated alongside the vertices."""
    kind = ComponentKind.ODE_EDGE

    def __init__(self, f, dim: int, coupling=Coupling.UNSPECIFIED, sym=None, mass_matrix=None):
        super().__init__(f, dim, coupling=coupling, sym=sym)
        self.mass_matrix = mass_matrix

# --- PROMOTION ---

def promote_to_dde_vertex(vertex: ODEVertex) -> DDEVertex:
    """A DDEVertex that ignores the history function."""
    if vertex.kind == ComponentKind.DDE_VERTEX:
        return vertex
    if vertex.kind != ComponentKind.ODE_VERTEX:
        raise ConstructionError(f"{vertex!r} cannot be used in a network with history-aware components.")
    orig_f = vertex.f

    def f(dv, v, edges_in, h_v, p, t):
        orig_f(dv, v, edges_in, p, t)

    f.__name__ = getattr(orig_f, '__name__', 'f')
    return DDEVertex(f, vertex.dim, sym=vertex.sym, mass_matrix=vertex.mass_matrix)


def promote_to_delay_edge(edge: StaticEdge) -> StaticDelayEdge:
    """A StaticDelayEdge that ignores both history functions."""
    if edge.kind == ComponentKind.STATIC_DELAY_EDGE:
        return edge
    if edge.kind != ComponentKind.STATIC_EDGE:
        raise ConstructionError(f"{edge!r} cannot be used in a network with history-aware components.")
    orig_f = edge.f

    def f(e, v_s, v_d, h_s, h_d, p, t):
        orig_f(e, v_s, v_d, p, t)

    f.__name__ = getattr(orig_f, '__name__', 'f')
    return StaticDelayEdge(f, edge.dim, coupling=edge.coupling, sym=edge.sym)


def promote_to_ode_edge(edge: StaticEdge) -> ODEEdge:
    """
    Turns a static edge into an algebraic ODE edge: with a zero mass matrix
    the equation `0 = f(v_s, v_d) - e` pins the edge state to the static value.
    """
    if edge.kind == ComponentKind.ODE_EDGE:
        return edge
    if edge.kind != ComponentKind.STATIC_EDGE:
        raise ConstructionError(f"{edge!r} cannot be combined with dynamic edges.")
    orig_f = edge.f

    def f(de, e, v_s, v_d, p, t):
        orig_f(de, v_s, v_d, p, t)
        de -= np.asarray(e)

    f.__name__ = getattr(orig_f, '__name__', 'f')
    return ODEEdge(f, edge.dim, coupling=edge.coupling, sym=edge.sym, mass_matrix=0.0)


def promote_all(components: list, promote) -> list:
    """Applies `promote` once per distinct component so shared components stay shared."""
    cache = {}
    promoted = []
    for c in components:
        if id(c) not in cache:
            cache[id(c)] = promote(c)
        promoted.append(cache[id(c)])
    return promoted
