"""
Edge discovery between one entity and the nodes already on the board.
"""

import logging

from entities import Edge, Person, Movie, TVShow

logger = logging.getLogger(__name__)


def discover_from_person(person, index, person_node_id):
    """
    Find edges between a person and the movies/TV shows on the board.

    Args:
        person: Person with credits loaded
        index: CatalogIndex of the board
        person_node_id: Node key of the person

    Returns:
        List of Edge; TV edges carry the credit's guest flag
    """
    connections = []

    seen_movies = set()
    for credit in person.movie_credits or []:
        if credit.target_id in seen_movies:
            continue
        seen_movies.add(credit.target_id)
        movie_node = index.movie_index.get(credit.target_id)
        if movie_node:
            connections.append(Edge(source=person_node_id, target=movie_node.key))
            logger.debug("Found connection between %s and movie %s", person_node_id, movie_node.key)

    seen_shows = set()
    for credit in list(person.tv_credits or []) + list(person.guest_appearances or []):
        if credit.target_id in seen_shows:
            continue
        seen_shows.add(credit.target_id)
        tv_node = index.tv_index.get(credit.target_id)
        if tv_node:
            connections.append(Edge(
                source=person_node_id,
                target=tv_node.key,
                is_guest_appearance=credit.is_guest_appearance
            ))
            logger.debug(
                "Found connection between %s and TV show %s%s",
                person_node_id, tv_node.key, " (guest)" if credit.is_guest_appearance else ""
            )

    return connections


def discover_from_movie(movie, index, movie_node_id):
    """Edges between a movie and the people on the board who are in its cast."""
    connections = []
    seen = set()
    for member in movie.cast or []:
        if member.id in seen:
            continue
        seen.add(member.id)
        person_node = index.person_index.get(member.id)
        if person_node:
            connections.append(Edge(source=person_node.key, target=movie_node_id))
            logger.debug("Found connection between movie %s and actor %s", movie_node_id, person_node.key)
    return connections


def discover_from_show(show, index, tv_node_id):
    """
    Find edges between a TV show and the people on the board.

    The show's own cast lists miss many guest stars, so after matching the
    regular and aggregate cast, every person node's own TV credits are
    checked for this show as well.

    Args:
        show: TVShow with cast loaded
        index: CatalogIndex of the board
        tv_node_id: Node key of the show

    Returns:
        List of Edge
    """
    connections = []
    connected = set()

    for member in list(show.cast or []) + list(show.aggregate_cast or []):
        if member.id in connected:
            continue
        person_node = index.person_index.get(member.id)
        if person_node:
            connected.add(member.id)
            connections.append(Edge(
                source=person_node.key,
                target=tv_node_id,
                is_guest_appearance=member.is_guest_appearance
            ))
            logger.debug("Found cast connection between TV show %s and actor %s", tv_node_id, person_node.key)

    # Second pass: the person's side of the relationship
    for person_id, person_node in index.person_index.items():
        if person_id in connected:
            continue
        credit = person_node.entity.find_tv_credit(show.id)
        if credit:
            connected.add(person_id)
            connections.append(Edge(
                source=person_node.key,
                target=tv_node_id,
                is_guest_appearance=credit.is_guest_appearance
            ))
            logger.debug(
                "Found %s connection between TV show %s and actor %s",
                "guest appearance" if credit.is_guest_appearance else "cast", tv_node_id, person_node.key
            )

    return connections


def discover_connections(entity, index, node_id):
    """
    Dispatch to the discovery routine for the entity's kind.

    Unknown kinds produce no edges.
    """
    if isinstance(entity, Person):
        return discover_from_person(entity, index, node_id)
    if isinstance(entity, Movie):
        return discover_from_movie(entity, index, node_id)
    if isinstance(entity, TVShow):
        return discover_from_show(entity, index, node_id)
    logger.debug("No discovery rule for %r", entity)
    return []
