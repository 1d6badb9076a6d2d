# topologies.py v14.0
# Part of NetDyn: Graph-Indexed Network Dynamics
# v14.0: "Edge-centric substrate"
# - TopologyData became GraphTopology: a passive container of vertices and an
#   ordered edge list (source, destination) plus a directedness flag, which is
#   all the index layer consumes from a graph.
# - Edges are kept in a fixed lexicographic enumeration order; undirected
#   edges are stored with src <= dst.
# - networkx graphs are adapted through `from_networkx`.
# - The generators (crystal, wheel, ring) and the factory now produce
#   GraphTopology objects.

import networkx as nx
import numpy as np
from termcolor import cprint

from errors import ConstructionError


class GraphTopology:
    """A simple, passive data container for the static graph."""
    def __init__(self, num_vertices: int, edges: list, directed: bool = True, **kwargs):
        if num_vertices < 0:
            raise ConstructionError("Number of vertices must be non-negative.")
        self.num_vertices = int(num_vertices)
        self.directed = bool(directed)

        normalized = []
        for s, d in edges:
            s, d = int(s), int(d)
            if not (0 <= s < self.num_vertices and 0 <= d < self.num_vertices):
                raise ConstructionError(f"Edge ({s}, {d}) refers to a vertex outside 0..{self.num_vertices - 1}.")
            if not self.directed and s > d:
                s, d = d, s
            normalized.append((s, d))
        normalized.sort()
        for a, b in zip(normalized, normalized[1:]):
            if a == b:
                raise ConstructionError(f"Duplicate edge {a}.")

        self.src = [s for s, _ in normalized]
        self.dst = [d for _, d in normalized]
        self.num_edges = len(normalized)

        # Store any additional metadata (like width, height for crystals)
        self.metadata = kwargs
        self.__dict__.update(kwargs)

    def is_directed(self) -> bool:
        return self.directed

    @property
    def edges(self) -> list:
        """The (source, destination) pairs in enumeration order."""
        return list(zip(self.src, self.dst))

    @property
    def neighbors(self) -> list:
        """Undirected adjacency list, one list of vertex ids per vertex."""
        neighbors = [[] for _ in range(self.num_vertices)]
        for s, d in zip(self.src, self.dst):
            neighbors[s].append(d)
            neighbors[d].append(s)
        return neighbors

    def incidence_matrix(self) -> np.ndarray:
        """Oriented incidence matrix: +1 where an edge enters a vertex, -1 where it leaves. Self-loops give a zero column."""
        inc = np.zeros((self.num_vertices, self.num_edges), dtype=int)
        for e, (s, d) in enumerate(zip(self.src, self.dst)):
            if s != d:
                inc[s, e] = -1
                inc[d, e] = 1
        return inc

    def __repr__(self):
        kind = "directed" if self.directed else "undirected"
        return f"GraphTopology({kind}, {self.num_vertices} vertices, {self.num_edges} edges)"

    @classmethod
    def from_networkx(cls, graph) -> 'GraphTopology':
        """Adapts a networkx Graph/DiGraph. Vertex ids follow `graph.nodes` order."""
        if graph.is_multigraph():
            raise ConstructionError("Multigraphs are not supported.")
        index = {node: i for i, node in enumerate(graph.nodes())}
        edges = [(index[u], index[v]) for u, v in graph.edges()]
        return cls(len(index), edges, directed=graph.is_directed())


def as_topology(graph) -> GraphTopology:
    """Returns `graph` as a GraphTopology, converting networkx graphs."""
    if isinstance(graph, GraphTopology):
        return graph
    if isinstance(graph, nx.Graph):
        return GraphTopology.from_networkx(graph)
    raise ConstructionError(f"Unsupported graph type: {type(graph).__name__}")

# --- GENERATOR FUNCTIONS ---

def generate_crystal_topology(width: int = 8, height: int = 6, verbose: bool = False) -> GraphTopology:
    """Undirected hexagonal lattice; vertex positions are kept in `points`."""
    if verbose:
        cprint(f"Generating graph: 2D crystal ({width}x{height})", 'cyan', attrs=['bold'])
    num_points = width * height
    points = np.zeros((num_points, 2), dtype=float)
    edges = []

    for r in range(height):
        for q in range(width):
            idx = r * width + q
            points[idx] = [q + 0.5 * (r % 2), r * np.sqrt(3) / 2]

            if q > 0:
                edges.append((idx - 1, idx))
            if r > 0:
                if r % 2 == 0:
                    if q > 0:
                        edges.append((idx - width - 1, idx))
                    edges.append((idx - width, idx))
                else:
                    edges.append((idx - width, idx))
                    if q < width - 1:
                        edges.append((idx - width + 1, idx))

    points -= np.mean(points, axis=0)
    return GraphTopology(num_points, edges, directed=False, points=points, width=width, height=height)


def generate_wheel_topology(num_vertices: int = 5, directed: bool = True) -> GraphTopology:
    """Hub 0 points at every rim vertex; the rim 1 -> 2 -> ... -> n-1 -> 1 is a cycle."""
    if num_vertices < 4:
        raise ConstructionError("A wheel needs at least 4 vertices.")
    edges = [(0, i) for i in range(1, num_vertices)]
    edges += [(i, i + 1) for i in range(1, num_vertices - 1)]
    edges.append((num_vertices - 1, 1))
    return GraphTopology(num_vertices, edges, directed=directed)


def generate_ring_topology(num_vertices: int = 10, directed: bool = False) -> GraphTopology:
    if num_vertices < 3:
        raise ConstructionError("A ring needs at least 3 vertices.")
    edges = [(i, (i + 1) % num_vertices) for i in range(num_vertices)]
    return GraphTopology(num_vertices, edges, directed=directed)

# --- FACTORY ---

class TopologyFactory:
    @staticmethod
    def create(topology_type: str, params: dict) -> GraphTopology:
        if topology_type == 'crystal':
            return generate_crystal_topology(
                width=params.get('width', 8),
                height=params.get('height', 6)
            )
        elif topology_type == 'wheel':
            return generate_wheel_topology(
                num_vertices=params.get('num_vertices', 5),
                directed=params.get('directed', True)
            )
        elif topology_type == 'ring':
            return generate_ring_topology(
                num_vertices=params.get('num_vertices', 10),
                directed=params.get('directed', False)
            )
        elif topology_type == 'barabasi_albert':
            graph = nx.barabasi_albert_graph(
                params.get('num_vertices', 20),
                params.get('degree', 2),
                seed=params.get('seed', None)
            )
            return GraphTopology.from_networkx(graph)
        else:
            raise ValueError(f"Unknown topology type: '{topology_type}'")
