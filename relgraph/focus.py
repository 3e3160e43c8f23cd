# /relgraph/focus.py

from collections import defaultdict
from typing import Dict, Optional, Set

from relgraph.models import FocusFilters, GraphData, GraphNode

MAX_FOCUS_DEPTH = 2


def _adjacency(graph: GraphData) -> Dict[str, Set[str]]:
    """Undirected neighbour sets over links whose endpoints both exist."""
    node_ids = graph.node_ids()
    neighbors: Dict[str, Set[str]] = defaultdict(set)
    for link in graph.links:
        if link.source in node_ids and link.target in node_ids:
            neighbors[link.source].add(link.target)
            neighbors[link.target].add(link.source)
    return neighbors


def focus_levels(graph: GraphData, selected_id: str, max_depth: int = MAX_FOCUS_DEPTH) -> Dict[str, int]:
    """
    Level of every node in the ego network of `selected_id`.

    Level 0 is the selected node, level 1 every direct neighbour (either direction),
    level 2 only person nodes adjacent to a level-1 node. Expanding level 2 through
    every type explodes hub nodes with hundreds of investors and subsidiaries.
    """
    nodes_by_id: Dict[str, GraphNode] = {node.id: node for node in graph.nodes}
    if selected_id not in nodes_by_id:
        return {}

    levels = {selected_id: 0}
    if max_depth < 1:
        return levels

    neighbors = _adjacency(graph)
    first_degree = sorted(neighbors[selected_id])
    for node_id in first_degree:
        levels.setdefault(node_id, 1)

    if max_depth < 2:
        return levels

    for node_id in first_degree:
        for candidate in sorted(neighbors[node_id]):
            if candidate not in levels and nodes_by_id[candidate].type == 'person':
                levels[candidate] = 2
    return levels


def _matches_search(node: GraphNode, search: Optional[str]) -> bool:
    if not search:
        return True
    return search.lower() in node.name.lower()


def _restrict(graph: GraphData, keep: Set[str], filters: FocusFilters) -> GraphData:
    nodes = [node for node in graph.nodes if node.id in keep]
    links = [
        link for link in graph.links
        if link.source in keep and link.target in keep and filters.link_visible(link)
    ]
    return GraphData(nodes=nodes, links=links)


def filter_graph(graph: GraphData, filters: Optional[FocusFilters] = None) -> GraphData:
    """Applies node-type, search and link-type visibility to the whole graph."""
    filters = filters or FocusFilters()
    keep = {
        node.id for node in graph.nodes
        if filters.node_visible(node) and _matches_search(node, filters.search)
    }
    return _restrict(graph, keep, filters)


def select_focus_subgraph(
    graph: GraphData,
    selected_id: str,
    filters: Optional[FocusFilters] = None,
    max_depth: int = MAX_FOCUS_DEPTH,
) -> GraphData:
    """
    The focus subgraph for `selected_id`: the union of levels 0-2, then visibility
    toggles. A link survives only if both endpoints survive and its type is not
    deselected. Stateless; recompute on every selection change.
    """
    filters = filters or FocusFilters()
    levels = focus_levels(graph, selected_id, max_depth=max_depth)
    if not levels:
        return GraphData()

    keep = set()
    for node in graph.nodes:
        if node.id not in levels or not filters.node_visible(node):
            continue
        # The selected node stays even when it does not match the search text
        if node.id == selected_id or _matches_search(node, filters.search):
            keep.add(node.id)
    return _restrict(graph, keep, filters)
