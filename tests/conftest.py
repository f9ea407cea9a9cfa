"""
Pytest configuration and shared fixtures.

Map fixtures are small XML documents; ``write_map`` puts them on disk when a
test needs a real file path.
"""

import pytest

from common import GraphData, Point


SIX_NODE_MATRIX = [
    [0, 8, 3, 6, 0, 0],
    [8, 0, 4, 5, 5, 7],
    [3, 4, 0, 0, 0, 0],
    [6, 5, 0, 0, 0, 6],
    [0, 5, 0, 0, 0, 0],
    [0, 7, 0, 6, 0, 0],
]

SIX_NODE_COORDINATES = [
    Point(28.7, 41.2, 0), Point(33.0, 40.1, 0), Point(27.1, 38.2, 0),
    Point(30.8, 36.9, 0), Point(39.7, 40.9, 0), Point(40.2, 37.9, 0),
]


def osm_document(ways, nodes=None):
    """Build an OSM document from way snippets and optional node snippets."""
    if nodes is None:
        nodes = [
            '<node id="1" lat="0.0" lon="0.0"/>',
            '<node id="2" lat="0.0" lon="0.001"/>',
        ]
    return '<osm version="0.6">' + "".join(nodes) + "".join(ways) + "</osm>"


def xodr_document(*elements):
    return "<OpenDRIVE><header/>" + "".join(elements) + "</OpenDRIVE>"


def line_road(road_id, x, y, length, hdg=0.0, junction="-1", link="", lanes=""):
    """A road made of one straight geometry."""
    return (
        f'<road id="{road_id}" length="{length}" junction="{junction}">'
        f"{link}"
        f'<planView><geometry s="0" x="{x}" y="{y}" hdg="{hdg}" length="{length}"><line/></geometry></planView>'
        f"{lanes}"
        "</road>"
    )


@pytest.fixture
def two_node_way():
    """A residential way between two nodes; pass extra tags to change it."""
    def make(*extra_tags):
        tags = "".join(extra_tags)
        return osm_document([
            f'<way id="10"><nd ref="1"/><nd ref="2"/><tag k="highway" v="residential"/>{tags}</way>'
        ])
    return make


@pytest.fixture
def write_map(tmp_path):
    """Write map text to tmp_path/<name> and return the path."""
    def write(name, text):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path
    return write


@pytest.fixture
def six_node_graph():
    """The six node cost table, 0 meaning "no edge", with its coordinates."""
    return GraphData.from_matrix(SIX_NODE_MATRIX, SIX_NODE_COORDINATES)


@pytest.fixture
def six_node_graph_no_coordinates():
    """Same table with every node at the origin, so the A* heuristic is 0."""
    return GraphData.from_matrix(SIX_NODE_MATRIX)
