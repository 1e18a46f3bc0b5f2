"""
Shortest paths between board nodes with a bounded, symmetric result cache.
"""

import logging
import threading
from collections import OrderedDict, deque
from dataclasses import dataclass
from typing import Tuple

from utils import PATH_CACHE_CAPACITY

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PathResult:
    found: bool
    path: Tuple[str, ...] = ()

    @property
    def length(self):
        """Number of edges on the path, or None when no path exists."""
        return len(self.path) - 1 if self.found else None


NOT_FOUND = PathResult(found=False)


class PathCache:
    """
    Insertion-ordered cache of path results keyed by the unordered node pair.

    Must be cleared whenever the board's edge set changes: a single new edge
    can change the answer for any pair.
    """

    def __init__(self, capacity=PATH_CACHE_CAPACITY):
        if capacity < 1:
            raise ValueError("PathCache capacity must be at least 1")
        self.capacity = capacity
        self._entries = OrderedDict()
        self._lock = threading.Lock()

    @staticmethod
    def make_key(start_id, end_id):
        return (start_id, end_id) if start_id <= end_id else (end_id, start_id)

    def get(self, start_id, end_id):
        with self._lock:
            return self._entries.get(self.make_key(start_id, end_id))

    def set(self, start_id, end_id, result):
        key = self.make_key(start_id, end_id)
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.capacity:
                oldest, _ = self._entries.popitem(last=False)
                logger.debug("Evicted cached path %s", oldest)
            self._entries[key] = result

    def clear(self):
        with self._lock:
            self._entries.clear()
        logger.debug("Path cache cleared")

    def __len__(self):
        with self._lock:
            return len(self._entries)


def build_adjacency(edges):
    """Undirected adjacency lists; neighbour order follows the edge list."""
    adjacency = {}
    for edge in edges or []:
        adjacency.setdefault(edge.source, []).append(edge.target)
        adjacency.setdefault(edge.target, []).append(edge.source)
    return adjacency


def breadth_first_search(start_id, end_id, adjacency):
    """
    Breadth-first search returning the path with the fewest edges.

    Args:
        start_id: Starting node key
        end_id: Target node key
        adjacency: Mapping of node key -> list of neighbour keys

    Returns:
        PathResult
    """
    visited = set()
    queue = deque([(start_id, (start_id,))])

    while queue:
        current, path = queue.popleft()
        if current == end_id:
            return PathResult(found=True, path=path)
        if current in visited:
            continue
        visited.add(current)
        for neighbour in adjacency.get(current, []):
            if neighbour not in visited:
                queue.append((neighbour, path + (neighbour,)))

    return NOT_FOUND


class PathFinder:
    """Per-session path finder; owns (or is given) its PathCache."""

    def __init__(self, cache=None):
        self.cache = cache if cache is not None else PathCache()

    def find_path(self, start_id, end_id, edges):
        """
        Find the shortest path between two node keys over the given edges.

        A cached answer for the pair (in either direction) is returned as is.

        Args:
            start_id: Starting node key
            end_id: Target node key
            edges: Current list of Edge

        Returns:
            PathResult
        """
        cached = self.cache.get(start_id, end_id)
        if cached is not None:
            logger.debug("Using cached path result for %s -> %s", start_id, end_id)
            return cached

        if start_id == end_id:
            result = PathResult(found=True, path=(start_id,))
        else:
            adjacency = build_adjacency(edges)
            if start_id not in adjacency or end_id not in adjacency:
                result = NOT_FOUND
            else:
                result = breadth_first_search(start_id, end_id, adjacency)

        self.cache.set(start_id, end_id, result)
        return result

    def clear_cache(self):
        self.cache.clear()


def find_path_between_nodes(start_id, end_id, edges, cache=None):
    """Convenience wrapper around PathFinder.find_path."""
    return PathFinder(cache).find_path(start_id, end_id, edges)
