"""Exceptions raised by the map readers and the path solvers."""

from constants import SUPPORTED_EXTENSIONS


class RoadGraphError(Exception):
    """Base class for every error raised by this project."""


class UnsupportedFormatError(RoadGraphError, ValueError):
    """The map file extension is neither .osm nor .xodr."""

    def __init__(self, extension):
        self.extension = extension
        super().__init__(
            f"Unsupported file extension: '{extension}'. "
            f"Supported: {', '.join(SUPPORTED_EXTENSIONS)}"
        )


class InvalidWeightError(RoadGraphError, ValueError):
    """The heuristic weight given to weighted A* is negative or not a number."""

    def __init__(self, weight):
        self.weight = weight
        super().__init__(f"Heuristic weight must be a non-negative number, got {weight!r}")


class GraphDataError(RoadGraphError, ValueError):
    """Adjacency matrix, coordinates and id map do not agree."""


class SolverStateError(RoadGraphError, RuntimeError):
    """A solver result was requested before the run completed."""
