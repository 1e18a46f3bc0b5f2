"""
Search orchestration: local search results filtered for display and
annotated with whether each result can join the board.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from connectability import check_initial_connectability, batch_check_connectability
from entities import Person, Movie, TVShow, MediaEntity, has_required_image
from local_search import search_local, Suggestion
from utils import SMALL_RESULT_SET, MAX_DISPLAY_RESULTS

logger = logging.getLogger(__name__)


@dataclass
class SearchOutcome:
    results: List[MediaEntity] = field(default_factory=list)
    exact_match: Optional[MediaEntity] = None
    suggestions: List[Suggestion] = field(default_factory=list)
    connectable: Dict[str, bool] = field(default_factory=dict)


def filter_valid_entities(entities):
    """Keep entities with an id and the image their kind needs for display."""
    return [entity for entity in entities or [] if entity is not None and has_required_image(entity)]


def process_results(results):
    """
    Prepare ranked results for display.

    Small result sets pass through untouched. Larger sets are deduplicated by
    node key (first occurrence wins) and capped at MAX_DISPLAY_RESULTS.
    """
    if len(results) <= SMALL_RESULT_SET:
        return list(results)

    seen = set()
    processed = []
    for entity in results:
        if entity.key in seen:
            continue
        seen.add(entity.key)
        processed.append(entity)
        if len(processed) >= MAX_DISPLAY_RESULTS:
            break
    return processed


def _add_entity(corpus, seen, entity):
    if entity.key in seen or not has_required_image(entity):
        return
    seen.add(entity.key)
    corpus.append(entity)


def build_search_corpus(nodes):
    """
    Derive the local search corpus from the board.

    People contribute their movie and TV credits; movies and shows contribute
    their cast. Derived entities carry no credits of their own, so the
    connectability checks fetch them on demand.

    Args:
        nodes: Current board Nodes

    Returns:
        List of entities, unique by node key, none of them already on the board
    """
    board_keys = {node.key for node in nodes or []}
    seen = set(board_keys)
    corpus = []

    for node in nodes or []:
        entity = node.entity
        if isinstance(entity, Person):
            for credit in entity.movie_credits or []:
                _add_entity(corpus, seen, Movie(
                    id=credit.target_id, title=credit.title,
                    image_path=credit.image_path, popularity=credit.popularity
                ))
            for credit in list(entity.tv_credits or []) + list(entity.guest_appearances or []):
                _add_entity(corpus, seen, TVShow(
                    id=credit.target_id, title=credit.title,
                    image_path=credit.image_path, popularity=credit.popularity
                ))
        elif isinstance(entity, (Movie, TVShow)):
            members = list(entity.cast or [])
            if isinstance(entity, TVShow):
                members += list(entity.aggregate_cast or [])
            for member in members:
                _add_entity(corpus, seen, Person(
                    id=member.id, title=member.name,
                    image_path=member.profile_path, popularity=member.popularity
                ))
        else:
            logger.debug("No corpus rule for node %r", node)

    logger.debug("Built search corpus of %d entities from %d board nodes", len(corpus), len(board_keys))
    return corpus


class SearchOrchestrator:
    """
    Runs local search and annotates results with connectability.

    The orchestrator keeps a connectable-items map (node key -> bool) across
    searches; entries are overwritten with fresh outcomes but never removed.
    """

    def __init__(self, catalog_service, board=None, connectable_items=None):
        self.catalog_service = catalog_service
        self.board = board
        self.connectable_items = connectable_items if connectable_items is not None else {}

    def _check(self, candidates, cancel_event=None):
        if self.board is None or not candidates:
            return {}

        if self.board.is_initial_phase():
            starting_pair = self.board.starting_pair
            outcomes = {}
            for candidate in candidates:
                if cancel_event is not None and cancel_event.is_set():
                    logger.info("Initial connectability checks cancelled")
                    break
                outcomes[candidate.key] = check_initial_connectability(
                    candidate, starting_pair, self.catalog_service
                )
            return outcomes

        return batch_check_connectability(
            candidates, self.board.nodes, self.catalog_service, cancel_event=cancel_event
        )

    def search(self, term, corpus, options=None, hide_unconnectable=False, cancel_event=None):
        """
        Search the corpus and check which results can join the board.

        Args:
            term: Raw player input
            corpus: Entities to search
            options: SearchOptions for the local search
            hide_unconnectable: Drop results not confirmed connectable
            cancel_event: Optional threading.Event to abandon pending checks

        Returns:
            SearchOutcome; without a board the connectable map is empty
        """
        local = search_local(term, corpus, options)
        results = process_results(filter_valid_entities(local.results))

        exact_match = local.exact_match
        if exact_match is not None and not has_required_image(exact_match):
            exact_match = None

        candidates = list(results)
        if exact_match is not None and all(entity.key != exact_match.key for entity in candidates):
            candidates.append(exact_match)

        connectable = self._check(candidates, cancel_event)
        self.connectable_items.update(connectable)

        if hide_unconnectable and self.board is not None:
            results = [entity for entity in results if connectable.get(entity.key) is True]

        logger.debug(
            "Search for %r returned %d results (%d connectable)",
            term, len(results), sum(1 for value in connectable.values() if value)
        )
        return SearchOutcome(
            results=results,
            exact_match=exact_match,
            suggestions=local.suggestions,
            connectable=connectable
        )
