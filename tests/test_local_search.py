"""
Unit tests for local search and fuzzy matching.
"""

import unittest
import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))
sys.path.insert(0, os.path.dirname(__file__))

from local_search import (
    SearchOptions, search_local, rank_candidates, quick_search,
    get_available_studios, get_available_genres
)
from entities import Movie, TVShow, Person
from catalog_fixtures import make_movie, make_show


class TestSearchLocal(unittest.TestCase):
    """Test the multi-stage search pipeline."""

    def setUp(self):
        self.corpus = [
            make_movie(1, "Iron Man"),
            make_movie(2, "Iron Man 2"),
            make_movie(3, "The Matrix", alternate_titles=["Matrix"]),
            make_movie(4, "Spider-Man: Far From Home"),
            make_movie(5, "Inception"),
            Person(id=6, title="Robert Downey Jr.", image_path="/rdj.jpg")
        ]

    def test_exact_match_scores_one(self):
        """Test that a primary title match is the exact match with score 1.0."""
        result = search_local("iron man", self.corpus)

        self.assertEqual(result.exact_match.title, "Iron Man")
        self.assertEqual(result.results[0].title, "Iron Man")
        self.assertEqual(result.suggestions, [])

        ranked = rank_candidates("iron man", self.corpus)
        self.assertEqual(ranked[0].score, 1.0)
        self.assertEqual(ranked[0].match_kind, "exact")
        self.assertEqual(ranked[1].entity.title, "Iron Man 2")
        self.assertAlmostEqual(ranked[1].score, 0.8 * 0.9)

    def test_punctuation_insensitive_exact_match(self):
        result = search_local("spiderman far from home", self.corpus)
        self.assertEqual(result.exact_match.id, 4)

    def test_alternate_title_match(self):
        """Test that alternate titles score just below a primary match."""
        ranked = rank_candidates("matrix", self.corpus)

        self.assertEqual(ranked[0].entity.id, 3)
        self.assertEqual(ranked[0].score, 0.95)
        self.assertEqual(search_local("matrix", self.corpus).exact_match.id, 3)

    def test_results_are_unique(self):
        """Test that no two results share a kind and id."""
        corpus = self.corpus + [make_movie(1, "Iron Man"), make_movie(2, "Iron Man 2")]
        for term in ("iron man", "iron", "man", "spider man", "incepton"):
            keys = [entity.key for entity in search_local(term, corpus).results]
            self.assertEqual(len(keys), len(set(keys)), term)

    def test_same_id_different_kinds_kept(self):
        corpus = [make_movie(9, "Fargo"), make_show(9, "Fargo")]
        keys = {entity.key for entity in search_local("fargo", corpus).results}
        self.assertEqual(keys, {"movie-9", "tv-9"})

    def test_word_overlap_threshold(self):
        """Test a partial multi-word query against a punctuated title."""
        result = search_local("spider man homecoming", self.corpus)
        self.assertIsNone(result.exact_match)
        self.assertEqual([entity.id for entity in result.results], [4])

        ranked = rank_candidates("spider man homecoming", self.corpus)
        self.assertEqual(ranked[0].match_kind, "word-match")
        self.assertAlmostEqual(ranked[0].score, (2 / 3) * 0.6)

    def test_word_overlap_below_threshold(self):
        """Test that one matching word out of three is not enough."""
        self.assertEqual(search_local("spider pig party", self.corpus).results, [])

    def test_containment(self):
        """Test that a long enough substring of a title matches."""
        ranked = rank_candidates("downey", self.corpus)
        self.assertEqual(ranked[0].entity.id, 6)
        self.assertEqual(ranked[0].match_kind, "contains")

    def test_common_and_short_terms(self):
        """Test that stop words and single characters return nothing."""
        for term in ("the", "  Movie ", "tv", "a", "", None):
            result = search_local(term, self.corpus)
            self.assertEqual(result.results, [])
            self.assertIsNone(result.exact_match)
            self.assertEqual(rank_candidates(term, self.corpus), [])

    def test_empty_corpus(self):
        self.assertEqual(search_local("iron man", []).results, [])

    def test_suggestions_for_typos(self):
        """Test 'did you mean' suggestions when nothing matches exactly."""
        result = search_local("incepton", self.corpus)

        self.assertIsNone(result.exact_match)
        self.assertEqual([suggestion.suggestion for suggestion in result.suggestions], ["Inception"])
        self.assertAlmostEqual(result.suggestions[0].similarity, 1 - 1 / 9)

    def test_suggestions_deduplicated_by_title(self):
        corpus = [make_movie(5, "Inception"), make_show(50, "Inception")]
        self.assertEqual(len(search_local("incepton", corpus).suggestions), 1)

    def test_max_results(self):
        options = SearchOptions(max_results=1)
        self.assertEqual(len(search_local("iron man", self.corpus, options).results), 1)

    def test_partial_matches_disabled(self):
        options = SearchOptions(include_partial_matches=False, include_similarity_matches=False)
        result = search_local("iron man", self.corpus, options)
        self.assertEqual([entity.id for entity in result.results], [1])

    def test_raw_payloads_accepted(self):
        """Test that dict payloads are parsed and malformed ones skipped."""
        corpus = [
            {"id": 1, "title": "Heat", "media_type": "movie"},
            {"title": "Heat", "media_type": "movie"}
        ]
        result = search_local("heat", corpus)
        self.assertEqual([entity.key for entity in result.results], ["movie-1"])


class TestSearchFilters(unittest.TestCase):

    def setUp(self):
        self.corpus = [
            make_movie(1, "Star Wars", studios=["Lucasfilm"], genres=["Science Fiction"]),
            make_show(2, "Star Wars Rebels", studios=["Lucasfilm Animation"], genres=["Animation"]),
            make_movie(3, "Star Trek", studios=["Paramount"], genres=["Science Fiction"])
        ]

    def test_type_filter(self):
        options = SearchOptions(filter_by_type="tv")
        result = search_local("star wars", self.corpus, options)
        self.assertTrue(all(isinstance(entity, TVShow) for entity in result.results))
        self.assertIsNone(result.exact_match)

    def test_studio_filter(self):
        options = SearchOptions(filter_by_studio="paramount")
        ids = [entity.id for entity in search_local("star trek", self.corpus, options).results]
        self.assertEqual(ids, [3])

    def test_genre_filter(self):
        options = SearchOptions(filter_by_genre="Animation")
        ids = [entity.id for entity in search_local("star wars", self.corpus, options).results]
        self.assertEqual(ids, [2])

    def test_available_facets(self):
        self.assertEqual(get_available_studios(self.corpus), ["Lucasfilm", "Lucasfilm Animation", "Paramount"])
        self.assertEqual(get_available_genres(self.corpus), ["Animation", "Science Fiction"])


class TestQuickSearch(unittest.TestCase):

    def setUp(self):
        self.entities = [
            Movie(id=1, title="The Batman"),
            Movie(id=2, title="Batman Begins"),
            Movie(id=3, title="Batman"),
            Movie(id=4, title="Superman")
        ]

    def test_prefix_matches_first(self):
        """Test prefix matches come before substring matches, alphabetically."""
        titles = [entity.title for entity in quick_search("bat", self.entities)]
        self.assertEqual(titles, ["Batman", "Batman Begins", "The Batman"])

    def test_limit(self):
        self.assertEqual(len(quick_search("man", self.entities, max_results=2)), 2)

    def test_short_term(self):
        self.assertEqual(quick_search("b", self.entities), [])


if __name__ == '__main__':
    unittest.main()
