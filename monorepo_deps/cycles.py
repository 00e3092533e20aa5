"""
Circular dependency detection over the internal project graph.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Set

from .graph import DependencyGraph


logger = logging.getLogger(__name__)


def cycle_key(cycle: List[str]) -> str:
    """Membership key of a cycle; rotations and reorderings share a key."""
    return ",".join(sorted(cycle))


def _cycles_from(start: str, adjacency: Dict[str, List[str]]) -> List[List[str]]:
    """Depth-first walk from ``start`` collecting every back edge as a cycle.

    ``visited`` spans the whole walk from ``start``: a node reached again
    outside the current path has already been explored and is not descended
    into twice. ``on_path`` maps each node of the current path to its index.
    """
    cycles: List[List[str]] = []
    visited: Set[str] = {start}
    path: List[str] = [start]
    on_path: Dict[str, int] = {start: 0}
    stack: List[Iterator[str]] = [iter(adjacency.get(start, ()))]

    while stack:
        neighbor = next(stack[-1], None)
        if neighbor is None:
            stack.pop()
            del on_path[path.pop()]
            continue
        if neighbor in on_path:
            cycles.append(path[on_path[neighbor]:])
            continue
        if neighbor in visited:
            continue
        visited.add(neighbor)
        on_path[neighbor] = len(path)
        path.append(neighbor)
        stack.append(iter(adjacency.get(neighbor, ())))

    return cycles


def find_cycles(adjacency: Dict[str, List[str]]) -> List[List[str]]:
    """Distinct cycles of an adjacency list, deduplicated by membership.

    Two different edge cycles through the same set of nodes are reported
    once, as the first one found.
    """
    seen: Set[str] = set()
    result: List[List[str]] = []
    for node in adjacency:
        for cycle in _cycles_from(node, adjacency):
            key = cycle_key(cycle)
            if key in seen:
                continue
            seen.add(key)
            result.append(cycle)
    return result


def find_circular_dependencies(graph: DependencyGraph) -> List[List[str]]:
    """Cycles among the projects of ``graph``, following internal edges only."""
    cycles = find_cycles(graph.adjacency())
    if cycles:
        logger.info("Found %d circular dependency chains", len(cycles))
    return cycles
