import logging
import math

from constants import DEFAULT_ASTAR_WEIGHT
from errors import InvalidWeightError
from strategies.common import Solver, check_index, euclidean

logger = logging.getLogger(__name__)


class WeightedAStar(Solver):
    """Weighted A*: f = g + weight * h, h = Euclidean distance to the target.

    weight = 1 is plain A*, weight > 1 leans on the heuristic (faster, maybe
    suboptimal), weight < 1 leans on the measured cost. The open set is a list
    scanned linearly; among equal f the node added first wins.
    """

    def __init__(self, graph, weight=DEFAULT_ASTAR_WEIGHT):
        if weight is None or math.isnan(weight) or weight < 0:
            raise InvalidWeightError(weight)
        super().__init__(graph)
        self.weight = float(weight)

    def heuristic(self, from_index, to_index):
        coordinates = self.graph.coordinates
        if not coordinates:
            return 0.0
        return euclidean(coordinates[from_index], coordinates[to_index])

    def run(self, source, target):
        """
        Searches from source until target is taken from the open set.
        Args:
            source: source node index
            target: target node index
        Returns:
            PathResult(distance, predecessor); distance holds the g scores
        """
        graph = self.graph
        check_index(graph, source, "Source")
        check_index(graph, target, "Target")
        self._begin()

        n = graph.node_count
        g_score = [math.inf] * n
        f_score = [math.inf] * n
        came_from = [-1] * n
        closed = [False] * n
        open_set = [source]

        g_score[source] = 0.0
        f_score[source] = self.weight * self.heuristic(source, target)

        while open_set:
            current = -1
            best_f = math.inf
            for node in open_set:
                if f_score[node] < best_f:
                    best_f = f_score[node]
                    current = node

            if current == -1 or current == target:
                break

            open_set.remove(current)
            closed[current] = True
            self.expanded += 1

            for neighbor, cost in graph.neighbors(current):
                if closed[neighbor]:
                    continue
                tentative_g = g_score[current] + cost
                if neighbor not in open_set:
                    open_set.append(neighbor)
                elif tentative_g >= g_score[neighbor]:
                    continue
                came_from[neighbor] = current
                g_score[neighbor] = tentative_g
                f_score[neighbor] = tentative_g + self.weight * self.heuristic(neighbor, target)

        logger.debug(
            "A* (w=%s) %d -> %d expanded %d nodes", self.weight, source, target, self.expanded
        )
        return self._finish(g_score, came_from)


def run_weighted_astar(graph, source, target, weight=DEFAULT_ASTAR_WEIGHT):
    """
    Performs weighted A* search from source to target.
    Args:
        graph: GraphData
        source: source node index
        target: target node index
        weight: heuristic weight, must not be negative
    Returns:
        (distance, predecessor) lists
    """
    return WeightedAStar(graph, weight).run(source, target)


run_astar = run_weighted_astar
