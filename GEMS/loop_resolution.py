"""
Module containing loop resolution functions. When every remaining node of a traversal is waiting on
another remaining node, one of these functions picks the node to process next using the values held
over from the last iteration.
"""


def _loop_candidates(list_of_cycles, distances_from_root):
    # Nodes which can't be reached from the root are treated as the furthest from it
    furthest = max(distances_from_root.values(), default=0) + 1
    return {node: distances_from_root.get(node, furthest) for cycle in list_of_cycles
            for node in cycle}


def min_distance_from_root(list_of_cycles, distances_from_root, **kwargs):
    """Pick the node in `list_of_cycles` closest to the root."""
    candidates = _loop_candidates(list_of_cycles, distances_from_root)
    next_node = min(candidates, key=lambda x: (candidates[x], x))
    return next_node


def max_distance_from_root(list_of_cycles, distances_from_root, **kwargs):
    """Pick the node in `list_of_cycles` furthest from the root."""
    candidates = _loop_candidates(list_of_cycles, distances_from_root)
    next_node = max(candidates, key=lambda x: (candidates[x], x))
    return next_node
