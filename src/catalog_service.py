"""
Catalog access: the CatalogService interface and its TMDB implementation.
"""

import logging
import requests
from abc import ABC, abstractmethod
from tmdbv3api import TMDb
from tmdbv3api import Person as PersonApi
from tmdbv3api import Movie as MovieApi
from tmdbv3api import TV as TVApi

from entities import (
    PERSON, MOVIE, TV,
    entity_from_dict, credit_from_dict, merge_guest_appearances, MalformedEntityError
)
from utils import get_tmdb_api_key

logger = logging.getLogger(__name__)

TMDB_API_URL = "https://api.themoviedb.org/3"
REQUEST_TIMEOUT = 10


class CatalogFetchError(Exception):
    """A catalog lookup failed (network, HTTP or payload error)."""

    def __init__(self, kind, entity_id, message=""):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"Failed to fetch {kind} {entity_id}: {message}")


class CatalogService(ABC):
    """Source of full entity details and credit data."""

    @abstractmethod
    def get_person_details(self, person_id):
        """Return a Person with movie and TV credits loaded."""

    @abstractmethod
    def get_movie_details(self, movie_id):
        """Return a Movie with its cast loaded."""

    @abstractmethod
    def get_tv_show_details(self, tv_id):
        """Return a TVShow with its cast (and aggregate cast when available)."""

    @abstractmethod
    def find_person_guest_appearances(self, person_id):
        """Return a list of Credit for TV shows the person guest-starred in."""

    def get_details(self, kind, entity_id):
        """
        Fetch full details for any entity kind.

        People are returned with guest appearances merged into their TV credits.

        Raises:
            CatalogFetchError: if the lookup fails or the kind is unknown
        """
        if kind == PERSON:
            return fetch_full_person(self, entity_id)
        if kind == MOVIE:
            return self.get_movie_details(entity_id)
        if kind == TV:
            return self.get_tv_show_details(entity_id)
        raise CatalogFetchError(kind, entity_id, "unknown entity kind")


def fetch_full_person(catalog, person_id):
    """
    Fetch a person and merge their guest appearances into the TV credits.

    A failed guest-appearance lookup is not fatal; the person is returned
    with regular credits only.

    Args:
        catalog: CatalogService implementation
        person_id: Catalog id of the person

    Returns:
        Person with merged credits

    Raises:
        CatalogFetchError: if the person details themselves cannot be fetched
    """
    person = catalog.get_person_details(person_id)
    try:
        guest_credits = catalog.find_person_guest_appearances(person_id)
    except CatalogFetchError as e:
        logger.warning("Guest appearances unavailable for person %s: %s", person_id, e)
        guest_credits = []
    return merge_guest_appearances(person, guest_credits)


def _as_dict(payload):
    """tmdbv3api returns AsObj wrappers; unwrap them to the raw JSON dict."""
    if isinstance(payload, dict):
        return payload
    raw = getattr(payload, "_json", None)
    if isinstance(raw, dict):
        return raw
    return dict(payload)


class TMDbCatalogService(CatalogService):
    """
    CatalogService backed by The Movie Database.

    Details come through tmdbv3api; the guest-appearance lookup calls the
    REST API directly. Results are cached per instance.
    """

    def __init__(self, api_key=None, language="en"):
        self.tmdb = TMDb()
        api_key = api_key or get_tmdb_api_key()
        if api_key:
            self.tmdb.api_key = api_key
        else:
            logger.warning("No TMDB API key configured; catalog lookups will fail")
        self.tmdb.language = language
        self.person_api = PersonApi()
        self.movie_api = MovieApi()
        self.tv_api = TVApi()
        self._cache = {}

    def _cached(self, operation, entity_id, kind, loader):
        cache_key = (operation, entity_id)
        if cache_key in self._cache:
            return self._cache[cache_key]
        try:
            result = loader()
        except CatalogFetchError:
            raise
        except Exception as e:
            raise CatalogFetchError(kind, entity_id, str(e)) from e
        self._cache[cache_key] = result
        return result

    def _parse(self, payload, kind, entity_id):
        try:
            return entity_from_dict(_as_dict(payload), kind=kind)
        except MalformedEntityError as e:
            raise CatalogFetchError(kind, entity_id, str(e)) from e

    def get_person_details(self, person_id):
        def load():
            details = self.person_api.details(person_id, append_to_response="movie_credits,tv_credits")
            person = self._parse(details, PERSON, person_id)
            # Credits were requested, so missing blocks mean "none"
            if person.movie_credits is None:
                person.movie_credits = []
            if person.tv_credits is None:
                person.tv_credits = []
            return person
        return self._cached("person", person_id, PERSON, load)

    def get_movie_details(self, movie_id):
        def load():
            details = self.movie_api.details(movie_id, append_to_response="credits")
            movie = self._parse(details, MOVIE, movie_id)
            if movie.cast is None:
                movie.cast = []
            return movie
        return self._cached("movie", movie_id, MOVIE, load)

    def get_tv_show_details(self, tv_id):
        def load():
            details = self.tv_api.details(tv_id, append_to_response="credits,aggregate_credits")
            show = self._parse(details, TV, tv_id)
            if show.cast is None:
                show.cast = []
            return show
        return self._cached("tv", tv_id, TV, load)

    def find_person_guest_appearances(self, person_id):
        """
        TV shows in a person's combined credits that are missing from their
        regular TV credits. Non-actors have no guest appearances.
        """
        def load():
            url = f"{TMDB_API_URL}/person/{person_id}"
            params = {
                "api_key": self.tmdb.api_key,
                "append_to_response": "tv_credits,combined_credits"
            }
            response = requests.get(url, params=params, timeout=REQUEST_TIMEOUT)
            if response.status_code != 200:
                raise CatalogFetchError(PERSON, person_id, f"HTTP {response.status_code}")

            data = response.json()
            if data.get("known_for_department") != "Acting":
                return []

            regular_ids = {show.get("id") for show in (data.get("tv_credits") or {}).get("cast", [])}
            guest_credits = []
            seen = set()
            for row in (data.get("combined_credits") or {}).get("cast", []):
                show_id = row.get("id")
                if row.get("media_type") != "tv" or show_id in regular_ids or show_id in seen:
                    continue
                credit = credit_from_dict(dict(row, is_guest_appearance=True))
                if credit is not None:
                    seen.add(show_id)
                    guest_credits.append(credit)
            return guest_credits
        return self._cached("guest_appearances", person_id, PERSON, load)
