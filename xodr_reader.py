"""
OpenDRIVE (.xodr) graph reader.

Every road with plan-view geometry becomes two nodes, ``road:<id>:start`` and
``road:<id>:end``, and every junction becomes one node, ``junction:<id>``,
placed at the mean of the road endpoints linked to it. Edges come from three
passes, applied in this order so later passes overwrite earlier ones:

1. intra-road: start -> end (and back when the road is two-way), weighted by
   the road length; only for roads outside junctions.
2. inter-road: predecessor/successor links, weighted by JOINT_WEIGHT.
3. intra-junction: incoming road -> connecting road, plus the connecting
   road's own length edge and links.
"""

import logging
import math
import statistics
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Optional

from common import GraphData, Point, namespace_of, read_attribute
from constants import ARC_CURVATURE_EPSILON, JOINT_WEIGHT, XODR_ATTRIBUTE_DEFAULTS

logger = logging.getLogger(__name__)

ROAD = "road"
JUNCTION = "junction"


@dataclass(frozen=True)
class RoadLink:
    """Predecessor or successor of a road."""
    element_type: str     # "road" or "junction"
    element_id: str
    contact_point: str    # "start", "end" or "" when not given


@dataclass
class XodrRoad:
    """The parts of an OpenDRIVE road the graph needs."""
    id: str
    length: float
    junction: str
    start: Point
    end: Point
    bidirectional: bool = True
    predecessor: Optional[RoadLink] = None
    successor: Optional[RoadLink] = None

    @property
    def start_key(self):
        return f"road:{self.id}:start"

    @property
    def end_key(self):
        return f"road:{self.id}:end"

    @property
    def in_junction(self):
        return self.junction not in ("-1", "")


def junction_key(junction_id):
    return f"junction:{junction_id}"


def read_xodr(xodr_path):
    """Load an .xodr file and build its road graph

    Args:
        xodr_path (str): Path to the OpenDRIVE XML file

    Returns:
        GraphData: graph of road endpoints and junction centroids
    """
    logger.info("Parsing OpenDRIVE file %s", xodr_path)
    tree = ET.parse(xodr_path)
    return build_xodr_graph(tree.getroot())


def parse_xodr(xml_text):
    """Same as read_xodr, for OpenDRIVE XML already held in memory."""
    return build_xodr_graph(ET.fromstring(xml_text))


###############################################################################
# Geometry
###############################################################################

def project_end(x, y, hdg, length, kind="line", curvature=0.0):
    """End point of a plan-view geometry segment.

    Arcs follow the circle of radius 1/curvature through the start point;
    lines, nearly flat arcs and every other kind use the straight line along
    the heading.
    """
    if kind == "arc" and abs(curvature) >= ARC_CURVATURE_EPSILON:
        radius = 1.0 / curvature
        end_hdg = hdg + length * curvature
        end_x = x + radius * (math.sin(end_hdg) - math.sin(hdg))
        end_y = y - radius * (math.cos(end_hdg) - math.cos(hdg))
        return end_x, end_y
    return x + length * math.cos(hdg), y + length * math.sin(hdg)


def geometry_kind(geometry, ns=""):
    """Returns ('line'|'arc'|other tag, curvature) for a <geometry> element."""
    arc = geometry.find(ns + "arc")
    if arc is not None:
        return "arc", read_attribute(arc, "curvature", XODR_ATTRIBUTE_DEFAULTS["arc"])
    for child in geometry:
        return child.tag[len(ns):], 0.0
    return "line", 0.0


###############################################################################
# Road parsing
###############################################################################

def parse_link(link, tag, ns=""):
    element = link.find(ns + tag) if link is not None else None
    if element is None:
        return None
    defaults = XODR_ATTRIBUTE_DEFAULTS["link"]
    return RoadLink(
        element_type=read_attribute(element, "elementType", defaults),
        element_id=read_attribute(element, "elementId", defaults),
        contact_point=read_attribute(element, "contactPoint", defaults),
    )


def has_driving_lane(side):
    if side is None:
        return False
    return any(
        read_attribute(lane, "type", XODR_ATTRIBUTE_DEFAULTS["lane"]) == "driving"
        for lane in side
        if lane.tag.endswith("lane")
    )


def is_bidirectional(road, ns=""):
    """A road is two-way unless its first lane section drives on one side only."""
    lanes = road.find(ns + "lanes")
    if lanes is None:
        return True
    section = lanes.find(ns + "laneSection")
    if section is None:
        return True
    return has_driving_lane(section.find(ns + "left")) and has_driving_lane(section.find(ns + "right"))


def parse_road(road, ns=""):
    """Turn a <road> element into an XodrRoad, or None when it has no geometry."""
    defaults = XODR_ATTRIBUTE_DEFAULTS["road"]
    road_id = read_attribute(road, "id", defaults)
    if not road_id:
        return None

    plan_view = road.find(ns + "planView")
    if plan_view is None:
        logger.debug("Road %s has no planView, skipped", road_id)
        return None
    geom_defaults = XODR_ATTRIBUTE_DEFAULTS["geometry"]
    geometries = sorted(
        plan_view.findall(ns + "geometry"),
        key=lambda g: read_attribute(g, "s", geom_defaults),
    )
    if not geometries:
        logger.debug("Road %s has no geometry, skipped", road_id)
        return None

    first, last = geometries[0], geometries[-1]
    start = Point(
        read_attribute(first, "x", geom_defaults),
        read_attribute(first, "y", geom_defaults),
        0.0,
    )
    kind, curvature = geometry_kind(last, ns)
    end_x, end_y = project_end(
        read_attribute(last, "x", geom_defaults),
        read_attribute(last, "y", geom_defaults),
        read_attribute(last, "hdg", geom_defaults),
        read_attribute(last, "length", geom_defaults),
        kind,
        curvature,
    )

    link = road.find(ns + "link")
    return XodrRoad(
        id=road_id,
        length=read_attribute(road, "length", defaults),
        junction=read_attribute(road, "junction", defaults),
        start=start,
        end=Point(end_x, end_y, 0.0),
        bidirectional=is_bidirectional(road, ns),
        predecessor=parse_link(link, "predecessor", ns),
        successor=parse_link(link, "successor", ns),
    )


###############################################################################
# Junctions
###############################################################################

def junction_centroids(junction_ids, roads):
    """Mean of the road endpoints linked to each junction; (0, 0, 0) when none are."""
    touching = {jid: [] for jid in junction_ids}
    for road in roads.values():
        for link, point in ((road.predecessor, road.start), (road.successor, road.end)):
            if link is not None and link.element_type == JUNCTION and link.element_id in touching:
                touching[link.element_id].append(point)

    centroids = {}
    for jid, points in touching.items():
        if not points:
            centroids[jid] = Point(0.0, 0.0, 0.0)
            continue
        centroids[jid] = Point(
            sum(p.x for p in points) / len(points),
            sum(p.y for p in points) / len(points),
            sum(p.z for p in points) / len(points),
        )
    return centroids


def junction_side(road, junction_id):
    """The endpoint key of a road that touches the given junction."""
    succ, pred = road.successor, road.predecessor
    if succ is not None and succ.element_type == JUNCTION and succ.element_id == junction_id:
        return road.end_key
    if pred is not None and pred.element_type == JUNCTION and pred.element_id == junction_id:
        return road.start_key
    return road.end_key


###############################################################################
# Edge passes
###############################################################################

def road_edges(roads):
    """Intra-road edges for roads outside junctions."""
    edges = []
    for road in roads.values():
        if road.in_junction:
            continue
        edges.append((road.start_key, road.end_key, road.length))
        if road.bidirectional:
            edges.append((road.end_key, road.start_key, road.length))
    return edges


def link_edges(road, roads, junction_ids):
    """Joint edges for one road's predecessor and successor links.

    A road link without a contactPoint attaches to the linked road's end.
    """
    edges = []
    pred = road.predecessor
    if pred is not None:
        if pred.element_type == ROAD and pred.element_id in roads:
            other = roads[pred.element_id]
            from_key = other.start_key if pred.contact_point == "start" else other.end_key
            edges.append((from_key, road.start_key, JOINT_WEIGHT))
        elif pred.element_type == JUNCTION and pred.element_id in junction_ids:
            edges.append((junction_key(pred.element_id), road.start_key, JOINT_WEIGHT))
        else:
            logger.debug("Road %s: predecessor %s %r not found", road.id, pred.element_type, pred.element_id)

    succ = road.successor
    if succ is not None:
        if succ.element_type == ROAD and succ.element_id in roads:
            other = roads[succ.element_id]
            to_key = other.start_key if succ.contact_point == "start" else other.end_key
            edges.append((road.end_key, to_key, JOINT_WEIGHT))
        elif succ.element_type == JUNCTION and succ.element_id in junction_ids:
            edges.append((road.end_key, junction_key(succ.element_id), JOINT_WEIGHT))
        else:
            logger.debug("Road %s: successor %s %r not found", road.id, succ.element_type, succ.element_id)
    return edges


def connection_edges(junction_elements, roads, junction_ids, ns=""):
    """Intra-junction edges; returns (edges, number of connections wired).

    A connection enters the connecting road at its start only when its
    contactPoint says "start", otherwise at its end, and then the road is
    also traversable end -> start.
    """
    edges = []
    wired = 0
    defaults = XODR_ATTRIBUTE_DEFAULTS["connection"]
    for junction in junction_elements:
        jid = read_attribute(junction, "id", XODR_ATTRIBUTE_DEFAULTS["junction"])
        if not jid:
            continue
        for connection in junction.findall(ns + "connection"):
            incoming = roads.get(read_attribute(connection, "incomingRoad", defaults))
            connecting = roads.get(read_attribute(connection, "connectingRoad", defaults))
            if incoming is None or connecting is None:
                logger.debug("Junction %s: connection with unknown road skipped", jid)
                continue
            contact = read_attribute(connection, "contactPoint", defaults)

            entry_key = connecting.start_key if contact == "start" else connecting.end_key
            edges.append((junction_side(incoming, jid), entry_key, JOINT_WEIGHT))
            edges.append((connecting.start_key, connecting.end_key, connecting.length))
            if entry_key == connecting.end_key:
                edges.append((connecting.end_key, connecting.start_key, connecting.length))
            edges.extend(link_edges(connecting, roads, junction_ids))
            wired += 1
    return edges, wired


###############################################################################
# Graph assembly
###############################################################################

def build_xodr_graph(root):
    """Build a GraphData from a parsed <OpenDRIVE> root element."""
    ns = namespace_of(root)
    road_elements = list(root.iter(ns + "road"))
    junction_elements = list(root.iter(ns + "junction"))
    logger.info("Found %d roads and %d junctions", len(road_elements), len(junction_elements))

    roads = {}
    for element in road_elements:
        road = parse_road(element, ns)
        if road is not None:
            roads[road.id] = road

    junction_ids = []
    for junction in junction_elements:
        jid = read_attribute(junction, "id", XODR_ATTRIBUTE_DEFAULTS["junction"])
        if jid and jid not in junction_ids:
            junction_ids.append(jid)
    centroids = junction_centroids(junction_ids, roads)

    points = {}
    for road in roads.values():
        points[road.start_key] = road.start
        points[road.end_key] = road.end
    for jid, centroid in centroids.items():
        points[junction_key(jid)] = centroid
    coordinates = {key: points[key] for key in sorted(points)}

    edges = road_edges(roads)
    for road in roads.values():
        edges.extend(link_edges(road, roads, centroids))
    junction_edges, wired = connection_edges(junction_elements, roads, centroids, ns)
    edges.extend(junction_edges)

    logger.info(
        "Created %d nodes (road: %d, junction: %d)",
        len(coordinates), 2 * len(roads), len(centroids),
    )
    logger.info("Created %d connections (junction internal: %d)", len(edges), wired)
    if edges:
        weights = [w for _a, _b, w in edges]
        logger.info(
            "Edge weights: min %.2f, max %.2f, mean %.2f",
            min(weights), max(weights), statistics.fmean(weights),
        )

    return GraphData.from_edges(coordinates, edges)
