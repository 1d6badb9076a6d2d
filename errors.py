# errors.py v1.0
# Part of NetDyn: Graph-Indexed Network Dynamics
# - Every failure the index, view and dispatch layers can detect has its own
#   exception class. All of them derive from the builtin exception a caller
#   would naturally catch (ValueError, TypeError, IndexError), so plain
#   `except ValueError` code keeps working.


class NetworkDynamicsError(Exception):
    """Base class for all errors raised by NetDyn."""


class ShapeMismatch(NetworkDynamicsError, ValueError):
    """A buffer length disagrees with the totals of the topology index."""


class TypeMismatch(NetworkDynamicsError, TypeError):
    """A buffer swap was attempted with an incompatible element type."""


class CouplingError(NetworkDynamicsError, ValueError):
    """An edge coupling policy is not valid for the graph's directedness."""


class IndexOutOfBounds(NetworkDynamicsError, IndexError):
    """An entity id, view index or parameter index is outside its range."""


class ConstructionError(NetworkDynamicsError, ValueError):
    """The network could not be assembled from the supplied components."""


class ParallelismWarning(UserWarning):
    """Parallel evaluation was requested but cannot run in parallel."""
