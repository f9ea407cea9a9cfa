import argparse
import functools
import logging
import sys
import time
import tracemalloc

import psutil

from common import GraphData, Point
from constants import DEFAULT_ASTAR_WEIGHT, DEFAULT_LOG_LEVEL, DEMO_ASTAR_WEIGHTS, LOG_FORMAT
from errors import InvalidWeightError, UnsupportedFormatError
from file_reader import parse_map_file
from strategies.astar import WeightedAStar
from strategies.common import physical_length
from strategies.dijkstra import DijkstraSolver

# Cost table of the built-in demo; 0 off the diagonal means "no edge"
DEMO_MATRIX = [
    [0, 8, 3, 6, 0, 0],
    [8, 0, 4, 5, 5, 7],
    [3, 4, 0, 0, 0, 0],
    [6, 5, 0, 0, 0, 6],
    [0, 5, 0, 0, 0, 0],
    [0, 7, 0, 6, 0, 0],
]
DEMO_COORDINATES = [
    Point(28.7, 41.2, 0), Point(33.0, 40.1, 0), Point(27.1, 38.2, 0),
    Point(30.8, 36.9, 0), Point(39.7, 40.9, 0), Point(40.2, 37.9, 0),
]
DEMO_SOURCE = 0
DEMO_TARGET = 4


def _format_bytes(n_bytes: int) -> str:
    """Human-readable bytes in KB/MB with 2 decimals."""
    if n_bytes < 1024:
        return f"{n_bytes} B"
    kb = n_bytes / 1024.0
    if kb < 1024:
        return f"{kb:.2f} KB"
    mb = kb / 1024.0
    if mb < 1024:
        return f"{mb:.2f} MB"
    gb = mb / 1024.0
    return f"{gb:.2f} GB"


def _execute_with_metrics(run_fn):
    """Run a search function and collect runtime and memory metrics.

    Returns: (result, runtime_seconds, peak_tracemalloc_bytes, rss_after_bytes)
    """
    tracemalloc.start()
    proc = psutil.Process()
    t0 = time.perf_counter()
    result = run_fn()
    dt = time.perf_counter() - t0
    _cur, peak = tracemalloc.get_traced_memory()
    tracemalloc.stop()
    return result, dt, peak, proc.memory_info().rss


def resolve_node(graph, token):
    """Map a command line node reference to an index.

    External ids are tried first; a plain integer that is not an id is taken
    as a 0-based index.
    """
    if token in graph.id_to_index:
        return graph.index_of(token)
    try:
        index = int(token)
    except ValueError:
        raise KeyError(f"Unknown node id: {token}") from None
    if not 0 <= index < graph.node_count:
        raise KeyError(f"Node index {index} out of range (0..{graph.node_count - 1})")
    return index


def format_path(graph, path):
    return " -> ".join(str(graph.id_of(i) if graph.id_of(i) is not None else i) for i in path)


def print_summary(graph):
    """Node/edge counts and edge weight statistics."""
    edges = graph.edges_frame()
    print(f"Nodes: {graph.node_count}")
    print(f"Edges: {len(edges)}")
    if not edges.empty:
        stats = edges["weight"].describe()
        print(f"Edge weights: min {stats['min']:.2f}, max {stats['max']:.2f}, mean {stats['mean']:.2f}")


def print_result(graph, result, source, target):
    if not result.reachable(target):
        print(f"{graph.id_of(source)} -> {graph.id_of(target)}: No path found")
        return
    path = result.path_to(target)
    print(f"Total path cost:{result.distance[target]}")
    print(f"Physical length:{physical_length(graph, path):.2f}")
    print(f"Number of Nodes on path:{len(path)}")
    print(format_path(graph, path))


def print_all(graph, result, source):
    """Every node's cost and path from source (Dijkstra without a target)."""
    print(f"Source node: {graph.id_of(source)}")
    for target in range(graph.node_count):
        if not result.reachable(target):
            print(f"{graph.id_of(target)}\tunreachable")
            continue
        print(f"{graph.id_of(target)}\t{result.distance[target]}\t{format_path(graph, result.path_to(target))}")


def _emit_metrics(metrics_mode, method, solver, runtime_s, peak_bytes, rss_after):
    if metrics_mode not in ("stderr", "stdout"):
        return
    metrics_line = (
        f"Metrics: method={method} nodes_expanded={solver.expanded} "
        f"runtime_ms={(runtime_s*1000):.3f} peak_py_mem={_format_bytes(peak_bytes)} "
        f"rss_now={_format_bytes(rss_after)}"
    )
    print(metrics_line, file=sys.stdout if metrics_mode == "stdout" else sys.stderr)


def run_demo():
    """The built-in 6-node scenario: Dijkstra, then A* at several weights."""
    graph = GraphData.from_matrix(DEMO_MATRIX, DEMO_COORDINATES)
    print("--- Dijkstra ---")
    print_all(graph, DijkstraSolver(graph).run(DEMO_SOURCE), DEMO_SOURCE)
    print("\n--- Weighted A* ---")
    for weight in DEMO_ASTAR_WEIGHTS:
        print(f"\nA* (weight: {weight})")
        result = WeightedAStar(graph, weight).run(DEMO_SOURCE, DEMO_TARGET)
        print_result(graph, result, DEMO_SOURCE, DEMO_TARGET)


def main(filename, method, source, target=None, weight=DEFAULT_ASTAR_WEIGHT,
         metrics_mode="none", summary=False):
    """Read a map, run the requested solver and print the result.

    metrics_mode: "none" | "stderr" | "stdout"
    Returns the process exit status.
    """
    try:
        graph = parse_map_file(filename)
    except UnsupportedFormatError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Map File: {filename}, Method: {method}")
    if summary:
        print_summary(graph)

    method = method.upper()
    try:
        source_index = resolve_node(graph, source)
        target_index = resolve_node(graph, target) if target is not None else None
    except KeyError as e:
        print(f"Error: {e.args[0]}", file=sys.stderr)
        return 1

    if method == "DIJKSTRA":
        solver = DijkstraSolver(graph)
        run_fn = functools.partial(solver.run, source_index)
    elif method == "AS":
        if target_index is None:
            print("Error: A* needs a target node", file=sys.stderr)
            return 1
        try:
            solver = WeightedAStar(graph, weight)
        except InvalidWeightError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        run_fn = functools.partial(solver.run, source_index, target_index)
    else:
        print(f"Unknown method: {method}", file=sys.stderr)
        return 1

    result, runtime_s, peak_bytes, rss_after = _execute_with_metrics(run_fn)

    print(f"{filename} {method}")
    if target_index is None:
        print_all(graph, result, source_index)
    else:
        print_result(graph, result, source_index, target_index)

    _emit_metrics(metrics_mode, method, solver, runtime_s, peak_bytes, rss_after)
    return 0


def build_parser():
    parser = argparse.ArgumentParser(description="Shortest paths over .osm / .xodr road maps")
    parser.add_argument("filename", nargs="?", help="Map file (.osm or .xodr)")
    parser.add_argument("method", nargs="?", default="DIJKSTRA", help="DIJKSTRA or AS")
    parser.add_argument("source", nargs="?", help="Source node id (or 0-based index)")
    parser.add_argument("target", nargs="?", help="Target node id (required for AS)")
    parser.add_argument("--weight", type=float, default=DEFAULT_ASTAR_WEIGHT,
                        help="Heuristic weight for AS (default: %(default)s)")
    parser.add_argument("--metrics", "-m", dest="metrics_mode", action="store_const",
                        const="stderr", default="none", help="Print metrics to stderr")
    parser.add_argument("--metrics-stdout", dest="metrics_mode", action="store_const",
                        const="stdout", help="Print metrics to stdout")
    parser.add_argument("--summary", action="store_true", help="Print graph statistics")
    parser.add_argument("--demo", action="store_true", help="Run the built-in 6-node scenario")
    parser.add_argument("--log-level", default=DEFAULT_LOG_LEVEL, help="Logging level")
    return parser


if __name__ == "__main__":
    args = build_parser().parse_args()
    logging.basicConfig(level=args.log_level.upper(), format=LOG_FORMAT)

    if args.demo:
        run_demo()
        sys.exit(0)
    if args.filename is None or args.source is None:
        print("Usage: python search.py <map_file> <method> <source> [<target>] "
              "[--weight W] [--metrics | --metrics-stdout] [--summary]")
        print("Methods: DIJKSTRA, AS")
        sys.exit(1)

    sys.exit(main(args.filename, args.method, args.source, args.target, args.weight,
                  args.metrics_mode, args.summary))
