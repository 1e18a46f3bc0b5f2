"""
Unit tests for the catalog service and the TMDB client.
"""

import unittest
from unittest.mock import patch, MagicMock
import sys
import os
import requests

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))
sys.path.insert(0, os.path.dirname(__file__))

from catalog_service import TMDbCatalogService, CatalogFetchError, fetch_full_person
from entities import PERSON, MOVIE, TV, Person, Movie, TVShow, Credit
from catalog_fixtures import FakeCatalog, make_person


class TestFetchFullPerson(unittest.TestCase):

    def test_guest_appearances_merged(self):
        """Test that guest credits are merged into the person's TV credits."""
        catalog = FakeCatalog(
            people=[make_person(1, tv_ids=[10])],
            guest_appearances={1: [Credit(target_id=20)]}
        )

        person = fetch_full_person(catalog, 1)

        self.assertEqual(person.tv_credit_ids(), {10, 20})
        self.assertTrue(person.find_tv_credit(20).is_guest_appearance)

    def test_guest_lookup_failure_keeps_regular_credits(self):
        """Test that a failed guest lookup is not fatal."""
        catalog = FakeCatalog(people=[make_person(1, tv_ids=[10])], failing=[("guest_appearances", 1)])

        person = fetch_full_person(catalog, 1)

        self.assertEqual(person.tv_credit_ids(), {10})

    def test_person_lookup_failure_raises(self):
        with self.assertRaises(CatalogFetchError):
            fetch_full_person(FakeCatalog(), 1)

    def test_get_details_dispatch(self):
        """Test the kind-based dispatch on the base class."""
        catalog = FakeCatalog(people=[make_person(1)])

        self.assertIsInstance(catalog.get_details(PERSON, 1), Person)
        self.assertIn(("guest_appearances", 1), catalog.calls)
        with self.assertRaises(CatalogFetchError):
            catalog.get_details("podcast", 1)


class TestTMDbCatalogService(unittest.TestCase):

    def setUp(self):
        patchers = [
            patch('catalog_service.TMDb'),
            patch('catalog_service.PersonApi'),
            patch('catalog_service.MovieApi'),
            patch('catalog_service.TVApi'),
        ]
        self.mock_tmdb, self.mock_person_api, self.mock_movie_api, self.mock_tv_api = [
            patcher.start() for patcher in patchers
        ]
        for patcher in patchers:
            self.addCleanup(patcher.stop)

        self.service = TMDbCatalogService(api_key="test-key")

    def test_api_key_configured(self):
        self.assertEqual(self.mock_tmdb.return_value.api_key, "test-key")

    def test_get_person_details(self):
        """Test person details are parsed and cached."""
        self.mock_person_api.return_value.details.return_value = {
            "id": 31,
            "name": "Tom Hanks",
            "profile_path": "/hanks.jpg",
            "movie_credits": {"cast": [{"id": 13, "title": "Forrest Gump"}]}
        }

        person = self.service.get_person_details(31)
        again = self.service.get_person_details(31)

        self.assertIsInstance(person, Person)
        self.assertEqual(person.movie_credit_ids(), {13})
        self.assertEqual(person.tv_credits, [])
        self.assertIs(person, again)
        self.mock_person_api.return_value.details.assert_called_once_with(
            31, append_to_response="movie_credits,tv_credits"
        )

    def test_get_movie_details(self):
        self.mock_movie_api.return_value.details.return_value = {"id": 13, "title": "Forrest Gump"}

        movie = self.service.get_movie_details(13)

        self.assertIsInstance(movie, Movie)
        self.assertEqual(movie.cast, [])

    def test_get_tv_show_details_with_aggregate_cast(self):
        self.mock_tv_api.return_value.details.return_value = {
            "id": 1400,
            "name": "Band of Brothers",
            "credits": {"cast": [{"id": 1}]},
            "aggregate_credits": {"cast": [{"id": 2, "roles": [{"character": "Cameo", "episode_count": 1}]}]}
        }

        show = self.service.get_tv_show_details(1400)

        self.assertIsInstance(show, TVShow)
        self.assertTrue(show.find_cast_member(2).is_guest_appearance)

    def test_errors_wrapped(self):
        """Test that client exceptions surface as CatalogFetchError."""
        self.mock_movie_api.return_value.details.side_effect = requests.exceptions.ConnectionError("down")

        with self.assertRaises(CatalogFetchError) as context:
            self.service.get_movie_details(13)

        self.assertEqual(context.exception.kind, MOVIE)
        self.assertEqual(context.exception.entity_id, 13)

    def test_malformed_payload_wrapped(self):
        self.mock_tv_api.return_value.details.return_value = {"name": "No id"}
        with self.assertRaises(CatalogFetchError):
            self.service.get_tv_show_details(5)

    @patch('catalog_service.requests.get')
    def test_find_person_guest_appearances(self, mock_get):
        """Test guest credits are TV entries missing from the regular credits."""
        mock_response = MagicMock()
        mock_response.status_code = 200
        mock_response.json.return_value = {
            "known_for_department": "Acting",
            "tv_credits": {"cast": [{"id": 10}]},
            "combined_credits": {"cast": [
                {"id": 10, "media_type": "tv", "name": "Regular Show"},
                {"id": 20, "media_type": "tv", "name": "Guest Show"},
                {"id": 20, "media_type": "tv", "name": "Guest Show"},
                {"id": 30, "media_type": "movie", "title": "A Movie"}
            ]}
        }
        mock_get.return_value = mock_response

        credits = self.service.find_person_guest_appearances(31)

        self.assertEqual([credit.target_id for credit in credits], [20])
        self.assertTrue(credits[0].is_guest_appearance)
        self.assertEqual(credits[0].title, "Guest Show")

    @patch('catalog_service.requests.get')
    def test_non_actor_has_no_guest_appearances(self, mock_get):
        mock_response = MagicMock()
        mock_response.status_code = 200
        mock_response.json.return_value = {
            "known_for_department": "Directing",
            "combined_credits": {"cast": [{"id": 20, "media_type": "tv"}]}
        }
        mock_get.return_value = mock_response

        self.assertEqual(self.service.find_person_guest_appearances(31), [])

    @patch('catalog_service.requests.get')
    def test_guest_lookup_http_error(self, mock_get):
        mock_response = MagicMock()
        mock_response.status_code = 404
        mock_get.return_value = mock_response

        with self.assertRaises(CatalogFetchError):
            self.service.find_person_guest_appearances(31)

    @patch('catalog_service.requests.get')
    def test_get_details_person_merges_guests(self, mock_get):
        """Test the full person fetch through the TMDB client."""
        self.mock_person_api.return_value.details.return_value = {
            "id": 31, "name": "Tom Hanks",
            "movie_credits": {"cast": []},
            "tv_credits": {"cast": [{"id": 10}]}
        }
        mock_response = MagicMock()
        mock_response.status_code = 200
        mock_response.json.return_value = {
            "known_for_department": "Acting",
            "tv_credits": {"cast": [{"id": 10}]},
            "combined_credits": {"cast": [{"id": 20, "media_type": "tv"}]}
        }
        mock_get.return_value = mock_response

        person = self.service.get_details(PERSON, 31)

        self.assertEqual(person.tv_credit_ids(), {10, 20})
        self.assertFalse(person.find_tv_credit(10).is_guest_appearance)
        self.assertTrue(person.find_tv_credit(20).is_guest_appearance)

    def test_get_details_unknown_kind(self):
        with self.assertRaises(CatalogFetchError):
            self.service.get_details(TV + "x", 1)


if __name__ == '__main__':
    unittest.main()
