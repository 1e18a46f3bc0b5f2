"""
Constant-time lookup tables over the nodes currently on the board.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict

from entities import Node, Person, Movie, TVShow

logger = logging.getLogger(__name__)


@dataclass
class CatalogIndex:
    person_index: Dict[int, Node] = field(default_factory=dict)
    movie_index: Dict[int, Node] = field(default_factory=dict)
    tv_index: Dict[int, Node] = field(default_factory=dict)

    def is_empty(self):
        return not (self.person_index or self.movie_index or self.tv_index)


def build_catalog_index(nodes):
    """
    Index board nodes by kind and catalog id.

    Nodes without an id or with an unknown entity type are skipped. A fresh
    index is returned on every call.

    Args:
        nodes: Iterable of Node

    Returns:
        CatalogIndex
    """
    index = CatalogIndex()
    for node in nodes or []:
        entity = getattr(node, "entity", None)
        if entity is None or entity.id is None:
            logger.debug("Skipping node without an entity id: %r", node)
            continue
        if isinstance(entity, Person):
            index.person_index[entity.id] = node
        elif isinstance(entity, Movie):
            index.movie_index[entity.id] = node
        elif isinstance(entity, TVShow):
            index.tv_index[entity.id] = node
        else:
            logger.debug("Skipping node of unknown kind: %r", node)

    logger.debug(
        "Built connection index: %d people, %d movies, %d TV shows",
        len(index.person_index), len(index.movie_index), len(index.tv_index)
    )
    return index
