"""
Module for building and walking the graph of supply relationships between the sectors of a region.

An edge `(consumer, supplier)` means `consumer` has a technology using `supplier`'s output as its
fuel. The region itself is added as a root node with an edge to every sector with final demand.
"""
import warnings

import networkx as nx

from . import loop_resolution


def make_sector_graph(root, sectors, final_demand_sectors):
    """
    Build the supply graph of a region.

    Parameters
    ----------
    root : str
        Name of the root node (the region).
    sectors : dict {str: GEMS.Sector}
        The sectors of the region, keyed by name.
    final_demand_sectors : iterable [str]
        Names of the sectors consumed directly by the region.

    Returns
    -------
    networkx.DiGraph :
        The supply graph.
    """
    graph = nx.DiGraph()
    graph.add_node(root)
    graph.add_nodes_from(sectors)
    for sector_name in final_demand_sectors:
        graph.add_edge(root, sector_name)

    for consumer, sector in sectors.items():
        for fuel in sector.get_fuels():
            if fuel in sectors:
                graph.add_edge(consumer, fuel)

    return graph


def top_down_traversal(graph, node_process_func, *args, root=None,
                       loop_resolution_func=loop_resolution.min_distance_from_root, **kwargs):
    """
    Visit each node in `graph` applying `node_process_func` to each node as its visited.

    A node is only visited once its parents (consumers) have been visited. In the case of a loop
    (where every remaining node has at least one parent who hasn't been visited) the node closest to
    the root will be visited and processed using the values held over from the last iteration.

    Parameters
    ----------
    graph : networkx.DiGraph
        The graph to traverse.

    node_process_func : function (nx.DiGraph, str, *args, **kwargs) -> None
        The function to be applied to each node in `graph`.

    root : str, optional
        The root of the graph. If not provided, the node with no parents and the shortest name is
        used.

    Returns
    -------
    None

    """
    root = root if root is not None else _find_root(graph)
    dist_from_root = nx.single_source_shortest_path_length(graph, root)

    sg_cur = graph.copy()
    while len(sg_cur.nodes) > 0:
        n_cur = find_next_node(sg_cur.in_degree)
        if n_cur is None:
            cycles = find_loops(sg_cur)
            n_cur = loop_resolution_func(cycles, dist_from_root, **kwargs)

        node_process_func(graph, n_cur, *args, **kwargs)
        sg_cur.remove_node(n_cur)


def bottom_up_traversal(graph, node_process_func, *args, root=None,
                        loop_resolution_func=loop_resolution.max_distance_from_root, **kwargs):
    """
    Visit each node in `graph` applying `node_process_func` to each node as its visited.

    A node is only visited once its children (suppliers) have been visited. In the case of a loop
    the node furthest from the root will be visited and processed using the values held over from
    the last iteration.

    Parameters
    ----------
    graph : networkx.DiGraph
        The graph to traverse.

    node_process_func : function (nx.DiGraph, str, *args, **kwargs) -> None
        The function to be applied to each node in `graph`.

    root : str, optional
        The root of the graph. If not provided, the node with no parents and the shortest name is
        used.

    Returns
    -------
    None

    """
    root = root if root is not None else _find_root(graph)
    dist_from_root = nx.single_source_shortest_path_length(graph, root)

    sg_cur = graph.copy()
    while len(sg_cur.nodes) > 0:
        n_cur = find_next_node(sg_cur.out_degree)
        if n_cur is None:
            cycles = find_loops(sg_cur)
            n_cur = loop_resolution_func(cycles, dist_from_root, **kwargs)

        node_process_func(graph, n_cur, *args, **kwargs)
        sg_cur.remove_node(n_cur)


def _find_root(graph):
    possible_roots = [n for n, d in graph.in_degree() if d == 0]
    possible_roots.sort(key=lambda n: len(n))
    return possible_roots[0]


def find_next_node(degrees):
    for node, degree in sorted(degrees, key=lambda x: str(x[0])):
        if degree == 0:
            return node


def find_loops(graph, warn=False):
    loops = list(nx.simple_cycles(graph))
    if warn and len(loops) > 0:
        warning_str = f"Found {len(loops)} loops in the sector graph"
        warnings.warn(warning_str)
    return loops
