import logging
import math

from strategies.common import Solver, check_index

logger = logging.getLogger(__name__)


class DijkstraSolver(Solver):
    """Array-based Dijkstra over a dense graph, O(N^2) per run.

    Each step scans all unvisited nodes in ascending index order and keeps the
    first one with the smallest tentative distance, so among equal distances
    the lowest index is settled first.
    """

    def run(self, source):
        """
        Computes shortest paths from source to every node.
        Args:
            source: source node index
        Returns:
            PathResult(distance, predecessor)
        """
        graph = self.graph
        check_index(graph, source, "Source")
        self._begin()

        n = graph.node_count
        distance = [math.inf] * n
        predecessor = [-1] * n
        visited = [False] * n
        distance[source] = 0.0

        for _ in range(n - 1):
            u = self._closest_unvisited(distance, visited)
            if u == -1:
                break  # everything left is unreachable
            visited[u] = True
            self.expanded += 1

            for v, weight in graph.neighbors(u):
                if visited[v]:
                    continue
                new_cost = distance[u] + weight
                if new_cost < distance[v]:
                    distance[v] = new_cost
                    predecessor[v] = u

        logger.debug("Dijkstra from %d settled %d nodes", source, self.expanded)
        return self._finish(distance, predecessor)

    @staticmethod
    def _closest_unvisited(distance, visited):
        """Index of the nearest unvisited node, -1 if none is reachable.

        Strict `<` keeps the lowest index among equal distances; a `<=` scan
        would settle the highest one instead.
        """
        best = math.inf
        best_index = -1
        for v, d in enumerate(distance):
            if not visited[v] and d < best:
                best = d
                best_index = v
        return best_index


def run_dijkstra(graph, source):
    """
    Dijkstra's algorithm - uninformed shortest path search.
    Args:
        graph: GraphData
        source: source node index
    Returns:
        (distance, predecessor) lists
    """
    return DijkstraSolver(graph).run(source)
