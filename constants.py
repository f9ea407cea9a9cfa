"""
Configuration constants for the road-map shortest path tools.

Everything tunable lives here so the readers and solvers stay free of magic
numbers.
"""

# =============================================================================
# Geometry
# =============================================================================

# Mean Earth radius used by the haversine distance (meters)
EARTH_RADIUS_M = 6_371_000.0

# Arcs flatter than this are projected as straight lines
ARC_CURVATURE_EPSILON = 1e-10

# =============================================================================
# Graph construction
# =============================================================================

# Weight of the synthetic edges that glue OpenDRIVE roads and junctions
# together. They model topological adjacency, not travel distance.
JOINT_WEIGHT = 0.001

# OSM "oneway" tag values
ONEWAY_FORWARD_VALUES = frozenset({"yes", "true", "1"})
ONEWAY_REVERSE_VALUES = frozenset({"-1"})

# Attribute defaults per element kind. Missing attributes take these values;
# a float default means the attribute is parsed as a number.
OSM_ATTRIBUTE_DEFAULTS = {
    "node": {"id": "", "lat": 0.0, "lon": 0.0, "ele": 0.0},
    "nd": {"ref": ""},
    "tag": {"k": "", "v": ""},
}

XODR_ATTRIBUTE_DEFAULTS = {
    "road": {"id": "", "length": 0.0, "junction": "-1"},
    "geometry": {"s": 0.0, "x": 0.0, "y": 0.0, "hdg": 0.0, "length": 0.0},
    "arc": {"curvature": 0.0},
    "link": {"elementType": "", "elementId": "", "contactPoint": ""},
    "lane": {"type": ""},
    "junction": {"id": ""},
    "connection": {"incomingRoad": "", "connectingRoad": "", "contactPoint": ""},
}

# Map file extensions understood by file_reader.parse_map_file
SUPPORTED_EXTENSIONS = (".osm", ".xodr")

# =============================================================================
# Search
# =============================================================================

# f(n) = g(n) + WEIGHT * h(n); 1.0 is plain A*
DEFAULT_ASTAR_WEIGHT = 1.0

# Weights tried by the built-in demo run
DEMO_ASTAR_WEIGHTS = (0.5, 1.0, 2.0)

# =============================================================================
# Logging
# =============================================================================

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"
DEFAULT_LOG_LEVEL = "WARNING"
