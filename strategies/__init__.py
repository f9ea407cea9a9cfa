"""Package exposing the shortest path solvers."""

from .common import PathResult, SolverState, reconstruct_path
from .dijkstra import DijkstraSolver, run_dijkstra
from .astar import WeightedAStar, run_astar, run_weighted_astar

__all__ = [
    "PathResult",
    "SolverState",
    "reconstruct_path",
    "DijkstraSolver",
    "run_dijkstra",
    "WeightedAStar",
    "run_astar",
    "run_weighted_astar",
]
