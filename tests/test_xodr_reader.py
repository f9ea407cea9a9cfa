import math
import xml.etree.ElementTree as ET

import pytest

from conftest import line_road, xodr_document
from constants import JOINT_WEIGHT
from strategies.dijkstra import run_dijkstra
from xodr_reader import parse_xodr, project_end, read_xodr

ONE_WAY_LANES = (
    '<lanes><laneSection s="0">'
    '<center><lane id="0" type="none"/></center>'
    '<right><lane id="-1" type="driving"/></right>'
    "</laneSection></lanes>"
)

TWO_WAY_LANES = (
    '<lanes><laneSection s="0">'
    '<left><lane id="1" type="driving"/></left>'
    '<right><lane id="-1" type="driving"/><lane id="-2" type="sidewalk"/></right>'
    "</laneSection></lanes>"
)


def edge(graph, a, b):
    return graph.weight(graph.index_of(a), graph.index_of(b))


def point_of(graph, key):
    return graph.get_coordinates(graph.index_of(key))


def test_straight_road():
    graph = parse_xodr(xodr_document(line_road("1", 0, 0, 100)))
    assert graph.node_count == 2
    end = point_of(graph, "road:1:end")
    assert end.x == pytest.approx(100.0)
    assert end.y == pytest.approx(0.0, abs=1e-9)
    assert tuple(point_of(graph, "road:1:start")) == (0.0, 0.0, 0.0)
    assert edge(graph, "road:1:start", "road:1:end") == 100.0
    assert edge(graph, "road:1:end", "road:1:start") == 100.0


def test_node_ids_are_sorted():
    graph = parse_xodr(xodr_document(line_road("2", 0, 0, 10), line_road("10", 5, 5, 10)))
    assert list(graph.id_to_index) == sorted(graph.id_to_index)
    assert graph.index_of("road:10:end") == 0


def test_one_way_lanes():
    graph = parse_xodr(xodr_document(line_road("1", 0, 0, 50, lanes=ONE_WAY_LANES)))
    assert edge(graph, "road:1:start", "road:1:end") == 50.0
    assert math.isinf(edge(graph, "road:1:end", "road:1:start"))


def test_two_way_lanes():
    graph = parse_xodr(xodr_document(line_road("1", 0, 0, 50, lanes=TWO_WAY_LANES)))
    assert edge(graph, "road:1:end", "road:1:start") == 50.0


def test_arc_end_point():
    length = math.pi / 2 * 10  # quarter circle, radius 10
    road = (
        '<road id="1" length="15.70796" junction="-1"><planView>'
        f'<geometry s="0" x="0" y="0" hdg="0" length="{length}"><arc curvature="0.1"/></geometry>'
        "</planView></road>"
    )
    end = point_of(parse_xodr(xodr_document(road)), "road:1:end")
    assert end.x == pytest.approx(10.0)
    assert end.y == pytest.approx(10.0)


def test_project_end():
    x, y = project_end(0, 0, 0, math.pi * 5, "arc", -0.1)
    assert (x, y) == (pytest.approx(10.0), pytest.approx(-10.0))
    # nearly flat arcs and unknown kinds fall back to a straight line
    assert project_end(1, 1, 0, 10, "arc", 1e-12) == (pytest.approx(11.0), pytest.approx(1.0))
    x, y = project_end(0, 0, math.pi / 2, 10, "spiral")
    assert (x, y) == (pytest.approx(0.0, abs=1e-9), pytest.approx(10.0))


def test_last_geometry_by_s_gives_end():
    road = (
        '<road id="1" length="20" junction="-1"><planView>'
        '<geometry s="10" x="10" y="0" hdg="1.5707963267948966" length="10"><line/></geometry>'
        '<geometry s="0" x="0" y="0" hdg="0" length="10"><line/></geometry>'
        "</planView></road>"
    )
    graph = parse_xodr(xodr_document(road))
    assert tuple(point_of(graph, "road:1:start")) == (0.0, 0.0, 0.0)
    end = point_of(graph, "road:1:end")
    assert end.x == pytest.approx(10.0)
    assert end.y == pytest.approx(10.0)


def test_road_without_geometry_is_skipped():
    graph = parse_xodr(xodr_document(
        line_road("1", 0, 0, 10),
        '<road id="9" length="5" junction="-1"><planView/></road>',
        '<road id="8" length="5" junction="-1"/>',
    ))
    assert set(graph.id_to_index) == {"road:1:start", "road:1:end"}


def test_successor_road_link():
    link_1 = '<link><successor elementType="road" elementId="2" contactPoint="start"/></link>'
    link_2 = '<link><predecessor elementType="road" elementId="1" contactPoint="end"/></link>'
    graph = parse_xodr(xodr_document(
        line_road("1", 0, 0, 100, link=link_1),
        line_road("2", 100, 0, 50, link=link_2),
    ))
    assert edge(graph, "road:1:end", "road:2:start") == JOINT_WEIGHT
    assert math.isinf(edge(graph, "road:2:start", "road:1:end"))

    result = run_dijkstra(graph, graph.index_of("road:1:start"))
    assert result.distance[graph.index_of("road:2:end")] == pytest.approx(150 + JOINT_WEIGHT)


def test_link_contact_point_defaults():
    link_1 = '<link><successor elementType="road" elementId="2"/></link>'
    link_3 = '<link><predecessor elementType="road" elementId="2"/></link>'
    graph = parse_xodr(xodr_document(
        line_road("1", 0, 0, 10, link=link_1),
        line_road("2", 10, 0, 10),
        line_road("3", 20, 0, 10, link=link_3),
    ))
    assert edge(graph, "road:1:end", "road:2:end") == JOINT_WEIGHT
    assert math.isinf(edge(graph, "road:1:end", "road:2:start"))
    assert edge(graph, "road:2:end", "road:3:start") == JOINT_WEIGHT


def test_unknown_link_targets_are_skipped():
    link = (
        '<link><predecessor elementType="road" elementId="404" contactPoint="end"/>'
        '<successor elementType="junction" elementId="405"/></link>'
    )
    graph = parse_xodr(xodr_document(line_road("1", 0, 0, 10, link=link)))
    assert graph.node_count == 2
    assert graph.edge_count == 2


def junction_map():
    road_1 = line_road("1", 0, 0, 100, link='<link><successor elementType="junction" elementId="100"/></link>')
    road_2 = line_road("2", 110, 0, 100, link='<link><predecessor elementType="junction" elementId="100"/></link>')
    road_3 = line_road(
        "3", 100, 0, 10, junction="100",
        link=(
            '<link><predecessor elementType="road" elementId="1" contactPoint="end"/>'
            '<successor elementType="road" elementId="2" contactPoint="start"/></link>'
        ),
    )
    junction = (
        '<junction id="100" name="crossing">'
        '<connection id="0" incomingRoad="1" connectingRoad="3" contactPoint="start">'
        '<laneLink from="-1" to="-1"/></connection>'
        "</junction>"
    )
    return xodr_document(road_1, road_2, road_3, junction)


def test_junction_centroid_is_mean_of_linked_endpoints():
    graph = parse_xodr(junction_map())
    assert tuple(point_of(graph, "junction:100")) == (105.0, 0.0, 0.0)


def test_junction_wiring():
    graph = parse_xodr(junction_map())
    assert graph.node_count == 7
    assert edge(graph, "road:1:end", "junction:100") == JOINT_WEIGHT
    assert edge(graph, "junction:100", "road:2:start") == JOINT_WEIGHT
    assert edge(graph, "road:1:end", "road:3:start") == JOINT_WEIGHT
    assert edge(graph, "road:3:start", "road:3:end") == 10.0
    assert edge(graph, "road:3:end", "road:2:start") == JOINT_WEIGHT


def test_connection_without_contact_point_enters_at_end():
    road_1 = line_road("1", 0, 0, 100, link='<link><successor elementType="junction" elementId="100"/></link>')
    road_3 = line_road("3", 100, 0, 10, junction="100")
    junction = '<junction id="100"><connection id="0" incomingRoad="1" connectingRoad="3"/></junction>'
    graph = parse_xodr(xodr_document(road_1, road_3, junction))
    assert edge(graph, "road:1:end", "road:3:end") == JOINT_WEIGHT
    assert math.isinf(edge(graph, "road:1:end", "road:3:start"))
    assert edge(graph, "road:3:start", "road:3:end") == 10.0
    assert edge(graph, "road:3:end", "road:3:start") == 10.0


def test_connecting_road_entered_at_start_is_one_way():
    # road 3 has no lane data, so it counts as two-way outside a junction
    graph = parse_xodr(junction_map())
    assert math.isinf(edge(graph, "road:3:end", "road:3:start"))


def test_connecting_road_has_no_intra_road_edge_without_connection():
    road_3 = line_road("3", 100, 0, 10, junction="100")
    graph = parse_xodr(xodr_document(road_3, '<junction id="100"/>'))
    assert graph.edge_count == 0


def test_path_through_junction():
    graph = parse_xodr(junction_map())
    result = run_dijkstra(graph, graph.index_of("road:1:start"))
    target = graph.index_of("road:2:end")
    assert result.distance[target] == pytest.approx(200 + 2 * JOINT_WEIGHT)
    path = [graph.id_of(i) for i in result.path_to(target)]
    assert path == ["road:1:start", "road:1:end", "junction:100", "road:2:start", "road:2:end"]


def test_isolated_junction_sits_at_origin():
    graph = parse_xodr(xodr_document(line_road("1", 5, 5, 10), '<junction id="7"/>'))
    assert tuple(point_of(graph, "junction:7")) == (0.0, 0.0, 0.0)


def test_later_pass_overwrites_earlier_edge():
    # road 1 loops back onto its own start: the joint edge replaces the reverse road edge
    link = '<link><successor elementType="road" elementId="1" contactPoint="start"/></link>'
    graph = parse_xodr(xodr_document(line_road("1", 0, 0, 100, link=link)))
    assert edge(graph, "road:1:end", "road:1:start") == JOINT_WEIGHT
    assert edge(graph, "road:1:start", "road:1:end") == 100.0


def test_missing_attributes_default():
    road = '<road id="1"><planView><geometry><line/></geometry></planView></road>'
    graph = parse_xodr(xodr_document(road))
    assert tuple(point_of(graph, "road:1:end")) == (0.0, 0.0, 0.0)
    assert edge(graph, "road:1:start", "road:1:end") == 0.0


def test_bad_number_falls_back_to_default(caplog):
    with caplog.at_level("WARNING"):
        graph = parse_xodr(xodr_document(line_road("1", 0, 0, "long")))
    assert edge(graph, "road:1:start", "road:1:end") == 0.0
    assert "not a number" in caplog.text


def test_malformed_xml_raises():
    with pytest.raises(ET.ParseError):
        parse_xodr("<OpenDRIVE><road></OpenDRIVE>")


def test_read_xodr_from_file(write_map):
    path = write_map("town.xodr", junction_map())
    assert read_xodr(path).node_count == 7
