import enum
import math
from typing import List, NamedTuple

from errors import SolverStateError
from geo import euclidean_distance


class SolverState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    RUNNING = "running"
    COMPLETED = "completed"


class PathResult(NamedTuple):
    """Outcome of one solver run.

    distance[v] is the best known cost from the source (inf when unreached),
    predecessor[v] the previous node on that path (-1 for none).
    """
    distance: List[float]
    predecessor: List[int]

    def path_to(self, target):
        return reconstruct_path(self.predecessor, target, self.distance)

    def reachable(self, target):
        return not math.isinf(self.distance[target])


def euclidean(a, b):
    """Euclidean distance between coordinate tuples a and b."""
    return euclidean_distance(a, b)


def reconstruct_path(predecessor, current, distance=None):
    """Reconstructs path (list of node indices) by walking the predecessor array.

    Returns an empty list when distance says the node was never reached.
    """
    if distance is not None and math.isinf(distance[current]):
        return []
    path = [current]
    while predecessor[current] != -1:
        current = predecessor[current]
        path.append(current)
    path.reverse()
    return path


def physical_length(graph, path):
    """Sum of straight-line distances between consecutive path nodes."""
    return sum(
        euclidean(graph.get_coordinates(a), graph.get_coordinates(b))
        for a, b in zip(path[:-1], path[1:])
    )


def check_index(graph, index, name):
    if not 0 <= index < graph.node_count:
        raise IndexError(f"{name} index {index} out of range for {graph.node_count} nodes")


class Solver:
    """Shared run bookkeeping: state machine, last result, expansion count."""

    def __init__(self, graph):
        self.graph = graph
        self.state = SolverState.UNINITIALIZED
        self.expanded = 0
        self._result = None

    @property
    def result(self):
        if self.state is not SolverState.COMPLETED:
            raise SolverStateError(f"No result available, solver is {self.state.value}")
        return self._result

    def _begin(self):
        self.state = SolverState.RUNNING
        self.expanded = 0
        self._result = None

    def _finish(self, distance, predecessor):
        self._result = PathResult(distance, predecessor)
        self.state = SolverState.COMPLETED
        return self._result
