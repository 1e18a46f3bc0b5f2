"""
Local search over a cached entity corpus with typo tolerance.

Matching runs in independent stages (exact, edit distance/containment and
word overlap). Stage results are merged, deduplicated by (kind, id) and
ranked by score.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from entities import MediaEntity, MalformedEntityError, entity_from_dict
from string_matching import normalize_term, normalize_punctuation, split_words, string_similarity
from utils import (
    SIMILARITY_THRESHOLDS, MATCH_WEIGHTS, COMMON_WORDS,
    MIN_EDIT_SIMILARITY, MIN_WORD_SIMILARITY, MIN_WORD_MATCH_RATIO,
    MIN_CONTAINMENT_LENGTH, MIN_WORD_LENGTH, MIN_SEARCH_LENGTH,
    MAX_SEARCH_RESULTS, MAX_SUGGESTIONS, QUICK_SEARCH_LIMIT
)

logger = logging.getLogger(__name__)


@dataclass
class SearchOptions:
    max_results: int = MAX_SEARCH_RESULTS
    include_partial_matches: bool = True
    include_similarity_matches: bool = True
    filter_by_type: Optional[str] = None
    filter_by_studio: Optional[str] = None
    filter_by_genre: Optional[str] = None


@dataclass
class MatchCandidate:
    entity: MediaEntity
    score: float
    match_kind: str


@dataclass
class Suggestion:
    suggestion: str
    entity: MediaEntity
    similarity: float


@dataclass
class SearchResult:
    results: List[MediaEntity] = field(default_factory=list)
    exact_match: Optional[MediaEntity] = None
    suggestions: List[Suggestion] = field(default_factory=list)


def _prepare_corpus(corpus):
    """Accept entities or raw payloads; drop anything without an id."""
    prepared = []
    for item in corpus or []:
        if isinstance(item, dict):
            try:
                item = entity_from_dict(item)
            except MalformedEntityError as e:
                logger.debug("Skipping malformed corpus entry: %s", e)
                continue
        if getattr(item, "id", None) is None:
            continue
        prepared.append(item)
    return prepared


def _contains_casefold(values, needle):
    needle = needle.lower()
    return any(needle in value.lower() for value in values)


def apply_filters(entities, options):
    """Narrow the corpus by kind, studio and genre before scoring."""
    filtered = entities
    if options.filter_by_type:
        filtered = [entity for entity in filtered if entity.kind == options.filter_by_type]
    if options.filter_by_studio:
        filtered = [entity for entity in filtered if _contains_casefold(entity.studios, options.filter_by_studio)]
    if options.filter_by_genre:
        filtered = [entity for entity in filtered if _contains_casefold(entity.genres, options.filter_by_genre)]
    return filtered


def find_exact_matches(term, entities):
    """
    Exact stage: primary title equality scores 1.0, alternate title equality 0.95.

    Both the plain lowercase form and the punctuation-free form are compared.
    """
    normalized_term = normalize_punctuation(term)
    matches = []

    for entity in entities:
        title = normalize_term(entity.title)
        if title == term:
            matches.append(MatchCandidate(entity, MATCH_WEIGHTS["exact"], "exact"))
            continue
        if normalized_term and normalize_punctuation(title) == normalized_term:
            matches.append(MatchCandidate(entity, MATCH_WEIGHTS["exact"], "exact-normalized"))
            continue
        for alternate in entity.alternate_titles:
            if normalize_term(alternate) == term or (
                    normalized_term and normalize_punctuation(alternate) == normalized_term):
                matches.append(MatchCandidate(entity, MATCH_WEIGHTS["alternate"], "exact-alt"))
                break

    matches.sort(key=lambda match: match.score, reverse=True)
    return matches


def find_edit_distance_matches(term, entities, skip_keys=frozenset()):
    """
    Edit-distance and containment stage.

    Args:
        term: Lowercased, trimmed search term
        entities: Candidate entities
        skip_keys: Node keys already matched exactly

    Returns:
        List of MatchCandidate sorted by score
    """
    normalized_term = normalize_punctuation(term)
    matches = []

    for entity in entities:
        if entity.key in skip_keys:
            continue
        normalized_title = normalize_punctuation(entity.title)

        similarity = string_similarity(normalized_term, normalized_title)
        if similarity >= MIN_EDIT_SIMILARITY:
            matches.append(MatchCandidate(entity, similarity * MATCH_WEIGHTS["edit_distance"], "edit-distance"))

        if (len(normalized_term) >= MIN_CONTAINMENT_LENGTH and normalized_title
                and normalized_term in normalized_title):
            coverage = min(len(normalized_term) / len(normalized_title), MATCH_WEIGHTS["containment_cap"])
            matches.append(MatchCandidate(entity, coverage * MATCH_WEIGHTS["containment"], "contains"))

    matches.sort(key=lambda match: match.score, reverse=True)
    return matches


def find_word_matches(term, entities):
    """
    Word-overlap stage for multi-word searches.

    A query word matches when it is similar enough to any title word. At
    least half the query words must match.
    """
    query_words = split_words(term, MIN_WORD_LENGTH)
    if len(query_words) < 2:
        return []

    matches = []
    for entity in entities:
        title_words = split_words(entity.title, MIN_WORD_LENGTH)
        if not title_words:
            continue

        matched = sum(
            1 for query_word in query_words
            if any(string_similarity(query_word, title_word) >= MIN_WORD_SIMILARITY for title_word in title_words)
        )
        ratio = matched / len(query_words)
        if ratio >= MIN_WORD_MATCH_RATIO:
            matches.append(MatchCandidate(entity, ratio * MATCH_WEIGHTS["word_overlap"], "word-match"))

    matches.sort(key=lambda match: match.score, reverse=True)
    return matches


def combine_and_rank(*match_groups):
    """Merge stage outputs, keep the best score per (kind, id), sort descending."""
    best = {}
    for group in match_groups:
        for match in group:
            key = match.entity.key
            if key not in best or match.score > best[key].score:
                best[key] = match
    return sorted(best.values(), key=lambda match: match.score, reverse=True)


def generate_suggestions(term, entities, exact_match):
    """
    "Did you mean" suggestions, only when nothing matched exactly.

    Returns:
        Up to MAX_SUGGESTIONS Suggestion objects, most similar first
    """
    if exact_match is not None:
        return []

    threshold = SIMILARITY_THRESHOLDS["suggestion"] + 0.1
    suggestions = []
    seen_titles = set()

    for entity in entities:
        title = normalize_term(entity.title)
        if len(title) < 3 or title in seen_titles:
            continue
        similarity = string_similarity(term, title)
        if similarity >= threshold:
            seen_titles.add(title)
            suggestions.append(Suggestion(entity.display_title, entity, similarity))

    suggestions.sort(key=lambda suggestion: suggestion.similarity, reverse=True)
    return suggestions[:MAX_SUGGESTIONS]


def _is_searchable(term):
    return len(term) >= MIN_SEARCH_LENGTH and term not in COMMON_WORDS


def _run_stages(term, entities, options):
    exact_matches = find_exact_matches(term, entities)
    exact_keys = {match.entity.key for match in exact_matches}
    edit_matches = find_edit_distance_matches(term, entities, exact_keys) if options.include_partial_matches else []
    word_matches = find_word_matches(term, entities) if options.include_similarity_matches else []
    return exact_matches, combine_and_rank(exact_matches, edit_matches, word_matches)


def rank_candidates(search_term, corpus, options=None):
    """
    Scored matches for a search term, best first.

    Args:
        search_term: Raw player input
        corpus: Entities (or raw payloads) to search
        options: SearchOptions

    Returns:
        List of MatchCandidate, at most options.max_results long
    """
    options = options or SearchOptions()
    term = normalize_term(search_term)
    if not _is_searchable(term):
        return []
    entities = apply_filters(_prepare_corpus(corpus), options)
    _, ranked = _run_stages(term, entities, options)
    return ranked[:options.max_results]


def search_local(search_term, corpus, options=None):
    """
    Search the cached corpus for a player's input.

    Args:
        search_term: Raw player input
        corpus: Entities (or raw payloads) to search
        options: SearchOptions

    Returns:
        SearchResult with ranked entities, the best exact match and typo suggestions
    """
    options = options or SearchOptions()
    term = normalize_term(search_term)
    entities = _prepare_corpus(corpus)

    if not entities or not _is_searchable(term):
        return SearchResult()

    entities = apply_filters(entities, options)
    exact_matches, ranked = _run_stages(term, entities, options)
    exact_match = exact_matches[0].entity if exact_matches else None

    return SearchResult(
        results=[match.entity for match in ranked[:options.max_results]],
        exact_match=exact_match,
        suggestions=generate_suggestions(term, entities, exact_match)
    )


def quick_search(search_term, entities, max_results=QUICK_SEARCH_LIMIT):
    """
    Typeahead: titles starting with the term first, then titles containing it.
    """
    term = normalize_term(search_term)
    if len(term) < MIN_SEARCH_LENGTH:
        return []

    ranked = []
    for entity in _prepare_corpus(entities):
        title = normalize_term(entity.title)
        if title.startswith(term):
            ranked.append((1, title, entity))
        elif term in title:
            ranked.append((2, title, entity))

    ranked.sort(key=lambda row: (row[0], row[1]))
    return [entity for _, _, entity in ranked[:max_results]]


def get_available_studios(entities):
    studios = set()
    for entity in _prepare_corpus(entities):
        studios.update(entity.studios)
    return sorted(studios)


def get_available_genres(entities):
    genres = set()
    for entity in _prepare_corpus(entities):
        genres.update(entity.genres)
    return sorted(genres)
