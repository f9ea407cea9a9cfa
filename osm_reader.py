import logging
import xml.etree.ElementTree as ET

from common import GraphData, Point, namespace_of, read_attribute
from constants import ONEWAY_FORWARD_VALUES, ONEWAY_REVERSE_VALUES, OSM_ATTRIBUTE_DEFAULTS
from geo import haversine_distance

logger = logging.getLogger(__name__)

NODE_DEFAULTS = OSM_ATTRIBUTE_DEFAULTS["node"]
ND_DEFAULTS = OSM_ATTRIBUTE_DEFAULTS["nd"]
TAG_DEFAULTS = OSM_ATTRIBUTE_DEFAULTS["tag"]

FORWARD = "forward"
REVERSE = "reverse"
BOTH = "both"


def read_osm(osm_path):
    """Load an .osm file and build its road graph

    Args:
        osm_path (str): Path to the OpenStreetMap XML file

    Returns:
        GraphData: graph of every node used by a highway way
    """
    logger.info("Parsing OSM file %s", osm_path)
    tree = ET.parse(osm_path)
    return build_osm_graph(tree.getroot())


def parse_osm(xml_text):
    """Same as read_osm, for OSM XML already held in memory."""
    return build_osm_graph(ET.fromstring(xml_text))


def way_tags(way, ns=""):
    """Returns the {k: v} tags of a way; the first occurrence of a key wins."""
    tags = {}
    for t in way.findall(ns + "tag"):
        k = read_attribute(t, "k", TAG_DEFAULTS)
        if k and k not in tags:
            tags[k] = read_attribute(t, "v", TAG_DEFAULTS)
    return tags


def oneway_direction(tags):
    """Classify a way as FORWARD, REVERSE or BOTH from its oneway tag."""
    value = tags.get("oneway")
    if value in ONEWAY_FORWARD_VALUES:
        return FORWARD
    if value in ONEWAY_REVERSE_VALUES:
        return REVERSE
    return BOTH


def build_osm_graph(root):
    """Build a GraphData from a parsed <osm> root element.

    Nodes are the OSM nodes referenced by at least one highway way, indexed in
    first-seen order. Consecutive node pairs of a way become edges weighted by
    their haversine distance in meters.
    """
    ns = namespace_of(root)

    # 1. Index every node by id
    osm_nodes = {}
    for n in root.iter(ns + "node"):
        nid = read_attribute(n, "id", NODE_DEFAULTS)
        if not nid:
            continue
        osm_nodes[nid] = Point(
            read_attribute(n, "lon", NODE_DEFAULTS),
            read_attribute(n, "lat", NODE_DEFAULTS),
            read_attribute(n, "ele", NODE_DEFAULTS),
        )
    logger.info("Found %d OSM nodes", len(osm_nodes))

    # 2. Keep only highway ways, with their node refs that actually exist
    highways = []
    dangling = 0
    for w in root.iter(ns + "way"):
        tags = way_tags(w, ns)
        if "highway" not in tags:
            continue
        refs = []
        for nd in w.findall(ns + "nd"):
            ref = read_attribute(nd, "ref", ND_DEFAULTS)
            if ref in osm_nodes:
                refs.append(ref)
            else:
                dangling += 1
        highways.append((refs, oneway_direction(tags)))
    logger.info("Found %d highway ways", len(highways))
    if dangling:
        logger.debug("Dropped %d node references without a matching node", dangling)

    # 3. Node table in first-seen order
    coordinates = {}
    for refs, _direction in highways:
        for ref in refs:
            if ref not in coordinates:
                coordinates[ref] = osm_nodes[ref]

    # 4. Edges between consecutive nodes of each way
    edges = []
    counts = {FORWARD: 0, REVERSE: 0, BOTH: 0}
    for refs, direction in highways:
        counts[direction] += 1
        for a, b in zip(refs[:-1], refs[1:]):
            if a == b:
                continue  # repeated ref, no self-loops
            pa, pb = coordinates[a], coordinates[b]
            distance = haversine_distance(pa.y, pa.x, pb.y, pb.x)
            if direction in (FORWARD, BOTH):
                edges.append((a, b, distance))
            if direction in (REVERSE, BOTH):
                edges.append((b, a, distance))

    graph = GraphData.from_edges(coordinates, edges)
    logger.info("OSM graph built: %d nodes, %d edges", graph.node_count, graph.edge_count)
    logger.info(
        "Way directions: two-way %d, one-way forward %d, one-way reverse %d",
        counts[BOTH], counts[FORWARD], counts[REVERSE],
    )
    return graph
