"""
Board state for one game session: nodes, derived edges and path queries.
"""

import logging
from collections import OrderedDict

from catalog_index import build_catalog_index
from connection_discovery import discover_connections
from entities import Node, Person
from path_finder import PathFinder, NOT_FOUND

logger = logging.getLogger(__name__)


class GameBoard:
    """
    Owns the starting pair, the nodes placed so far and the edges between them.

    Every change to the edge set clears the session's path cache.
    """

    def __init__(self, catalog=None, path_finder=None):
        self.catalog = catalog
        self.path_finder = path_finder if path_finder is not None else PathFinder()
        self.starting_pair = ()
        self._nodes = OrderedDict()
        self._edges = []

    @property
    def nodes(self):
        return list(self._nodes.values())

    @property
    def edges(self):
        return list(self._edges)

    def get_node(self, key):
        return self._nodes.get(key)

    def _with_credits(self, entity):
        if entity.credits_loaded or self.catalog is None:
            return entity
        return self.catalog.get_details(entity.kind, entity.id)

    def start_game(self, starting_pair):
        """
        Reset the board with two starting people.

        Args:
            starting_pair: Two Person entities

        Raises:
            ValueError: if the pair is not two distinct people
            CatalogFetchError: if a starting person's credits cannot be fetched
        """
        people = list(starting_pair or [])
        if len(people) != 2 or not all(isinstance(person, Person) for person in people):
            raise ValueError("A game starts with exactly two people")
        if people[0].id == people[1].id:
            raise ValueError("Starting people must be different")

        people = [self._with_credits(person) for person in people]
        self.starting_pair = tuple(people)
        self._nodes = OrderedDict((person.key, Node(person)) for person in people)
        self._edges = []
        self.path_finder.clear_cache()
        logger.info("Started game between %s and %s", people[0].title, people[1].title)

    def is_initial_phase(self):
        """True while only the starting people (or fewer) are on the board."""
        return len(self._nodes) <= 2 and all(isinstance(node.entity, Person) for node in self._nodes.values())

    def add_entity(self, entity):
        """
        Place an entity on the board and connect it to existing nodes.

        Args:
            entity: Person, Movie or TVShow

        Returns:
            List of new Edge, or None if the entity is already on the board

        Raises:
            CatalogFetchError: if the entity's credits cannot be fetched
        """
        if entity.key in self._nodes:
            logger.debug("%s is already on the board", entity.key)
            return None

        entity = self._with_credits(entity)
        index = build_catalog_index(self._nodes.values())
        discovered = discover_connections(entity, index, entity.key)

        existing = {edge.endpoints for edge in self._edges}
        new_edges = []
        for edge in discovered:
            if edge.endpoints in existing:
                continue
            existing.add(edge.endpoints)
            new_edges.append(edge)

        self._nodes[entity.key] = Node(entity)
        self._edges.extend(new_edges)
        self.path_finder.clear_cache()
        logger.info("Added %s with %d new connections", entity.key, len(new_edges))
        return new_edges

    def remove_node(self, key):
        """
        Remove a node and its edges. Starting people cannot be removed.

        Returns:
            True if the node was removed
        """
        if key not in self._nodes:
            return False
        if any(person.key == key for person in self.starting_pair):
            logger.warning("Refusing to remove starting person %s", key)
            return False

        del self._nodes[key]
        self._edges = [edge for edge in self._edges if not edge.touches(key)]
        self.path_finder.clear_cache()
        return True

    def find_path(self, start_key, end_key):
        return self.path_finder.find_path(start_key, end_key, self._edges)

    def check_completion(self):
        """
        Look for a path between the two starting people.

        Returns:
            PathResult; not found before a game has started
        """
        if len(self.starting_pair) != 2:
            return NOT_FOUND
        first, second = self.starting_pair
        return self.find_path(first.key, second.key)

    def shortest_path_length(self):
        """Edges on the path between the starting people, or None."""
        return self.check_completion().length
