"""
Connectability checks: can a candidate entity legally join the board?

None of these functions modify the board. Catalog failures are absorbed and
reported as "not connectable".
"""

import logging
import concurrent.futures

from catalog_index import build_catalog_index
from catalog_service import CatalogFetchError, fetch_full_person
from entities import PERSON, MOVIE, TV, Person, Movie, TVShow, MalformedEntityError
from utils import MAX_CONNECTABILITY_WORKERS

logger = logging.getLogger(__name__)

ABSORBED_ERRORS = (CatalogFetchError, MalformedEntityError)


def _resolve(entity, catalog):
    """Return the entity itself if its credits are loaded, otherwise fetch it."""
    if entity.credits_loaded:
        return entity
    return catalog.get_details(entity.kind, entity.id)


def _resolve_person(person, catalog):
    if person.credits_loaded:
        return person
    return fetch_full_person(catalog, person.id)


def _connects_to_index(details, index):
    """
    True if a fully detailed entity shares a credit with any indexed node.
    """
    if isinstance(details, Person):
        if any(movie_id in index.movie_index for movie_id in details.movie_credit_ids()):
            return True
        return any(tv_id in index.tv_index for tv_id in details.tv_credit_ids())

    if isinstance(details, Movie):
        return any(person_id in index.person_index for person_id in details.cast_ids())

    if isinstance(details, TVShow):
        for person_id in index.person_index:
            if details.find_cast_member(person_id):
                return True
        # Guest stars are often only visible from the person's credits
        for person_node in index.person_index.values():
            if person_node.entity.find_tv_credit(details.id):
                return True
        return False

    logger.debug("No connectability rule for %r", details)
    return False


def check_initial_connectability(candidate, starting_pair, catalog):
    """
    Check whether a candidate connects to either of the two starting people.

    Movies need a starting person in their cast. TV shows need one in their
    cast, or the show in a starting person's TV credits (guest appearances
    count). People must share a movie or TV show with a starting person and
    may not be a starting person themselves.

    Args:
        candidate: Person, Movie or TVShow (credits may be unloaded)
        starting_pair: The two starting Person entities
        catalog: CatalogService used for lazy credit fetches

    Returns:
        Boolean
    """
    starting_people = [person for person in starting_pair or [] if person is not None]
    if not starting_people:
        logger.warning("No starting people supplied to the initial connectability check")
        return False

    starting_ids = {person.id for person in starting_people}

    try:
        if isinstance(candidate, Movie):
            details = _resolve(candidate, catalog)
            return bool(details.cast_ids() & starting_ids)

        if isinstance(candidate, TVShow):
            details = _resolve(candidate, catalog)
            if any(details.find_cast_member(person_id) for person_id in starting_ids):
                return True
            for start_person in starting_people:
                full_person = _resolve_person(start_person, catalog)
                if candidate.id in full_person.tv_credit_ids():
                    return True
            return False

        if isinstance(candidate, Person):
            if candidate.id in starting_ids:
                logger.debug("Rejecting starting person %s as a candidate", candidate.id)
                return False
            details = _resolve_person(candidate, catalog)
            movie_ids = details.movie_credit_ids()
            tv_ids = details.tv_credit_ids()
            for start_person in starting_people:
                full_person = _resolve_person(start_person, catalog)
                if movie_ids & full_person.movie_credit_ids() or tv_ids & full_person.tv_credit_ids():
                    return True
            return False

    except ABSORBED_ERRORS as e:
        logger.warning("Initial connectability check failed for %s: %s", candidate.key, e)
        return False

    logger.debug("Unknown candidate kind: %r", candidate)
    return False


def check_board_connectability(candidate, board_nodes, catalog):
    """
    Check whether a candidate shares a credit with any node on the board.

    Args:
        candidate: Person, Movie or TVShow
        board_nodes: Current board Nodes (assumed fully detailed)
        catalog: CatalogService used to fetch the candidate's details

    Returns:
        Boolean; an empty board is never connectable
    """
    if not board_nodes:
        return False

    index = build_catalog_index(board_nodes)
    if index.is_empty():
        return False

    try:
        details = _resolve(candidate, catalog)
    except ABSORBED_ERRORS as e:
        logger.warning("Board connectability check failed for %s: %s", candidate.key, e)
        return False

    return _connects_to_index(details, index)


check_item_connectability = check_board_connectability


def _process_group(kind, items, index, catalog, cancel_event):
    results = {}
    for item in items:
        if cancel_event is not None and cancel_event.is_set():
            logger.info("Connectability batch for %s cancelled with %d items left", kind, len(items) - len(results))
            break
        try:
            details = _resolve(item, catalog)
            results[item.key] = _connects_to_index(details, index)
        except ABSORBED_ERRORS as e:
            logger.error("Error checking connectability for %s %s: %s", kind, item.id, e)
            results[item.key] = False
    return results


def batch_check_connectability(candidates, board_nodes, catalog, cancel_event=None):
    """
    Check many candidates against the board at once.

    Candidates are grouped by kind; the groups run in parallel and the items
    within a group run one after another. The board index is built once.

    Args:
        candidates: List of Person/Movie/TVShow
        board_nodes: Current board Nodes
        catalog: CatalogService
        cancel_event: Optional threading.Event; once set, unchecked items
            are left out of the result

    Returns:
        Dictionary of node key -> bool
    """
    valid = [item for item in candidates or [] if item is not None and item.id is not None]
    if not board_nodes:
        return {item.key: False for item in valid}

    index = build_catalog_index(board_nodes)
    groups = {
        PERSON: [item for item in valid if isinstance(item, Person)],
        MOVIE: [item for item in valid if isinstance(item, Movie)],
        TV: [item for item in valid if isinstance(item, TVShow)],
    }

    results = {}
    with concurrent.futures.ThreadPoolExecutor(max_workers=MAX_CONNECTABILITY_WORKERS) as executor:
        futures = [
            executor.submit(_process_group, kind, items, index, catalog, cancel_event)
            for kind, items in groups.items()
            if items
        ]
        for future in concurrent.futures.as_completed(futures):
            results.update(future.result())

    logger.info(
        "Batch processed %d items: %d connectable",
        len(valid), sum(1 for connectable in results.values() if connectable)
    )
    return results
