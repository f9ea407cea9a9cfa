import logging
import math
from typing import NamedTuple

import numpy as np
import pandas as pd

from errors import GraphDataError

logger = logging.getLogger(__name__)


def read_attribute(element, name, defaults):
    """Read an XML attribute with a fallback from an attribute defaults table.

    Args:
        element: ElementTree element (None is allowed and yields the default)
        name (str): Attribute name
        defaults (dict): {attribute: default} for this element kind

    Returns:
        The attribute as float when the default is a float, otherwise as str.
        Missing attributes and unparsable numbers yield the default.
    """
    default = defaults.get(name, "")
    raw = element.get(name) if element is not None else None
    if raw is None:
        return default
    if isinstance(default, float):
        try:
            return float(raw.strip())
        except ValueError:
            logger.warning("Attribute %s=%r is not a number, using %s", name, raw, default)
            return default
    return raw


def namespace_of(element):
    """Return the '{ns}' prefix of an element's tag, or '' when it has none."""
    tag = element.tag
    return tag[:tag.index("}") + 1] if tag.startswith("{") else ""


class Point(NamedTuple):
    """A node position.

    OSM graphs store (longitude, latitude, elevation); OpenDRIVE graphs store
    planar (x, y, 0). The two must not be mixed.
    """
    x: float
    y: float
    z: float = 0.0


class GraphData:
    """Represents a road network as a dense, node-indexed directed graph."""

    def __init__(self, adjacency, coordinates, id_to_index):
        matrix = np.array(adjacency, dtype=float)
        n = len(coordinates)
        if matrix.shape != (n, n):
            raise GraphDataError(
                f"Adjacency matrix shape {matrix.shape} does not match {n} coordinates"
            )
        indices = list(id_to_index.values())
        if len(set(indices)) != len(indices):
            raise GraphDataError("Node id map contains duplicate indices")
        for node_id, index in id_to_index.items():
            if not 0 <= index < n:
                raise GraphDataError(f"Node id {node_id!r} maps to out-of-range index {index}")

        matrix.flags.writeable = False
        self.adjacency = matrix                               # adjacency[i, j]: weight or inf
        self.coordinates = tuple(Point(*c) for c in coordinates)
        self.id_to_index = dict(id_to_index)                  # {external_id: index}
        self._index_to_id = {index: node_id for node_id, index in self.id_to_index.items()}

    def __repr__(self):
        return f"GraphData(nodes={self.node_count}, edges={self.edge_count})"

    @property
    def node_count(self):
        return len(self.coordinates)

    @property
    def edge_count(self):
        return int(np.isfinite(self.adjacency).sum())

    def weight(self, from_index, to_index):
        """Returns the edge weight from one node to another, inf when there is no edge."""
        return float(self.adjacency[from_index, to_index])

    def neighbors(self, index):
        """Returns [(neighbor_index, weight), ...] for finite outgoing edges, ascending by index."""
        row = self.adjacency[index]
        return [(int(j), float(row[j])) for j in np.flatnonzero(np.isfinite(row))]

    def get_coordinates(self, index):
        """Returns the Point stored for a node index."""
        return self.coordinates[index]

    def index_of(self, node_id):
        """Translates an external node id to its dense index."""
        return self.id_to_index[node_id]

    def id_of(self, index):
        """Translates a dense index back to the external node id (None if the node has no id)."""
        return self._index_to_id.get(index)

    def path_cost(self, path):
        """Calculate total cost of edges in the given path (list of indices)."""
        total = 0.0
        for from_node, to_node in zip(path[:-1], path[1:]):
            edge_cost = self.weight(from_node, to_node)
            if math.isinf(edge_cost):
                return None  # Edge not found
            total += edge_cost
        return total

    def nodes_frame(self):
        """Node table as a DataFrame (index: node index, columns: id, x, y, z)."""
        frame = pd.DataFrame(self.coordinates, columns=["x", "y", "z"])
        frame.insert(0, "id", [self.id_of(i) for i in range(self.node_count)])
        frame.index.name = "index"
        return frame

    def edges_frame(self):
        """Finite directed edges as a DataFrame (columns: from, to, weight)."""
        rows, cols = np.nonzero(np.isfinite(self.adjacency))
        return pd.DataFrame({
            "from": rows.astype(int),
            "to": cols.astype(int),
            "weight": self.adjacency[rows, cols],
        })

    @classmethod
    def from_edges(cls, coordinates_by_id, edges):
        """Build a graph from {node_id: Point} and (from_id, to_id, weight) triples.

        Node indices follow the iteration order of coordinates_by_id. Edges are
        written in order, so a repeated (from, to) pair keeps its last weight.
        Edges that mention an unknown node id are dropped.
        """
        id_to_index = {node_id: i for i, node_id in enumerate(coordinates_by_id)}
        n = len(id_to_index)
        matrix = np.full((n, n), np.inf)
        for from_id, to_id, weight in edges:
            from_idx = id_to_index.get(from_id)
            to_idx = id_to_index.get(to_id)
            if from_idx is None or to_idx is None:
                continue
            matrix[from_idx, to_idx] = weight
        return cls(matrix, list(coordinates_by_id.values()), id_to_index)

    @classmethod
    def from_matrix(cls, matrix, coordinates=None, zero_is_no_edge=True):
        """Build a graph from a square weight matrix.

        With zero_is_no_edge, a 0 entry means "no edge" (the convention of
        hand-written cost tables). Node ids are the string form of the indices.
        """
        weights = np.array(matrix, dtype=float)
        if zero_is_no_edge:
            weights[weights == 0] = np.inf
        n = weights.shape[0]
        if coordinates is None:
            coordinates = [Point(0.0, 0.0, 0.0)] * n
        return cls(weights, coordinates, {str(i): i for i in range(n)})
