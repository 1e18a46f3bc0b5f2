"""
Entity model for board items: people, movies and TV shows, plus their credits.

Catalog payloads (TMDB-shaped dicts) are parsed into a closed set of
dataclasses. Credit data that has not been fetched yet is None; an empty
list means the credits were fetched and there are none.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import ClassVar, List, Optional

from utils import GUEST_EPISODE_LIMIT, GUEST_ROLE_MARKERS

logger = logging.getLogger(__name__)

PERSON = "person"
MOVIE = "movie"
TV = "tv"
KINDS = (PERSON, MOVIE, TV)


class MalformedEntityError(ValueError):
    """Raised when a catalog payload has no id or no recognisable kind."""


def node_key(kind, entity_id):
    """Board key for an entity, e.g. 'person-31'."""
    return f"{kind}-{entity_id}"


@dataclass
class Credit:
    """A person's appearance in a movie or TV show."""
    target_id: int
    is_guest_appearance: bool = False
    title: str = ""
    image_path: Optional[str] = None
    character: str = ""
    credit_id: str = ""
    popularity: float = 0.0
    episode_count: Optional[int] = None


@dataclass
class CastMember:
    id: int
    name: str = ""
    profile_path: Optional[str] = None
    character: str = ""
    popularity: float = 0.0
    episode_count: Optional[int] = None
    is_guest_appearance: bool = False


@dataclass
class MediaEntity:
    id: int
    title: str = ""
    image_path: Optional[str] = None
    popularity: float = 0.0
    alternate_titles: List[str] = field(default_factory=list)
    studios: List[str] = field(default_factory=list)
    genres: List[str] = field(default_factory=list)

    kind: ClassVar[str] = ""

    @property
    def key(self):
        return node_key(self.kind, self.id)

    @property
    def display_title(self):
        return self.title


@dataclass
class Person(MediaEntity):
    kind: ClassVar[str] = PERSON

    movie_credits: Optional[List[Credit]] = None
    tv_credits: Optional[List[Credit]] = None
    guest_appearances: Optional[List[Credit]] = None

    @property
    def credits_loaded(self):
        return self.movie_credits is not None and self.tv_credits is not None

    def movie_credit_ids(self):
        return {credit.target_id for credit in self.movie_credits or []}

    def tv_credit_ids(self):
        """TV ids from regular credits and the separate guest list."""
        ids = {credit.target_id for credit in self.tv_credits or []}
        ids.update(credit.target_id for credit in self.guest_appearances or [])
        return ids

    def find_tv_credit(self, show_id):
        """Return this person's credit for a show, checking the guest list last."""
        for credit in self.tv_credits or []:
            if credit.target_id == show_id:
                return credit
        for credit in self.guest_appearances or []:
            if credit.target_id == show_id:
                return credit
        return None


@dataclass
class Movie(MediaEntity):
    kind: ClassVar[str] = MOVIE

    cast: Optional[List[CastMember]] = None

    @property
    def credits_loaded(self):
        return self.cast is not None

    def cast_ids(self):
        return {member.id for member in self.cast or []}


@dataclass
class TVShow(MediaEntity):
    kind: ClassVar[str] = TV

    cast: Optional[List[CastMember]] = None
    aggregate_cast: Optional[List[CastMember]] = None

    @property
    def credits_loaded(self):
        return self.cast is not None

    def cast_ids(self):
        """Regular cast only."""
        return {member.id for member in self.cast or []}

    def find_cast_member(self, person_id):
        """
        Look a person up in the regular cast, then in the aggregate cast.

        Args:
            person_id: Catalog id of the person

        Returns:
            Matching CastMember or None. Aggregate-only members carry the
            guest flag computed when the show was parsed.
        """
        for member in self.cast or []:
            if member.id == person_id:
                return member
        for member in self.aggregate_cast or []:
            if member.id == person_id:
                return member
        return None


ENTITY_TYPES = {PERSON: Person, MOVIE: Movie, TV: TVShow}


@dataclass
class Node:
    """An entity placed on the board."""
    entity: MediaEntity

    @property
    def key(self):
        return self.entity.key

    @property
    def kind(self):
        return self.entity.kind

    @property
    def id(self):
        return self.entity.id


@dataclass(frozen=True)
class Edge:
    """Undirected connection between two board nodes."""
    source: str
    target: str
    is_guest_appearance: bool = False

    @property
    def id(self):
        return f"{self.source}-{self.target}"

    @property
    def endpoints(self):
        return frozenset((self.source, self.target))

    def touches(self, key):
        return key == self.source or key == self.target


def get_item_title(item):
    """Display title for an entity; empty string when missing."""
    if item is None:
        return ""
    return item.title or ""


def has_required_image(entity):
    """People need a profile image and productions a poster before they are shown."""
    return bool(entity.id) and bool(entity.image_path)


# ---------------------------------------------------------------------------
# Guest-appearance heuristics
#
# Best-effort fallbacks for payloads that carry no explicit guest flag. They
# match on substrings, so a character literally named "Guest" or a credit id
# that happens to contain the word will be classified as a guest appearance.
# ---------------------------------------------------------------------------

def is_probable_guest_credit(raw):
    """
    Guess whether a raw credit row is a guest appearance.

    Args:
        raw: Credit dictionary without an 'is_guest_appearance' key

    Returns:
        True if the credit id or character mentions 'guest'
    """
    credit_id = (raw.get("credit_id") or "").lower()
    character = (raw.get("character") or "").lower()
    return "guest" in credit_id or "guest" in character


def is_probable_guest_role(roles):
    """
    Guess whether an aggregate-cast entry is a guest star.

    Args:
        roles: List of role dictionaries with 'character' and 'episode_count'

    Returns:
        True if any role is short-lived or labelled as a guest/cameo
    """
    for role in roles or []:
        episode_count = role.get("episode_count")
        if episode_count is not None and episode_count < GUEST_EPISODE_LIMIT:
            return True
        character = (role.get("character") or "").lower()
        if any(marker in character for marker in GUEST_ROLE_MARKERS):
            return True
    return False


# ---------------------------------------------------------------------------
# Payload parsing
# ---------------------------------------------------------------------------

def _names(values):
    """Accept either plain strings or {'name': ...} dictionaries."""
    names = []
    for value in values or []:
        name = value.get("name", "") if isinstance(value, dict) else value
        if name:
            names.append(name)
    return names


def _credit_list(container):
    """Extract the cast list from a {'cast': [...]} block, or None when absent."""
    if container is None:
        return None
    if isinstance(container, dict):
        return container.get("cast") or []
    return list(container)


def credit_from_dict(raw):
    """
    Parse a credit row; returns None when the row has no target id.
    """
    target_id = raw.get("id")
    if target_id is None:
        return None
    if "is_guest_appearance" in raw:
        is_guest = bool(raw["is_guest_appearance"])
    else:
        is_guest = is_probable_guest_credit(raw)
    return Credit(
        target_id=target_id,
        is_guest_appearance=is_guest,
        title=raw.get("title") or raw.get("name") or "",
        image_path=raw.get("poster_path"),
        character=raw.get("character") or "",
        credit_id=raw.get("credit_id") or "",
        popularity=raw.get("popularity") or 0.0,
        episode_count=raw.get("episode_count")
    )


def _credits(rows):
    if rows is None:
        return None
    parsed = []
    for row in rows:
        credit = credit_from_dict(row)
        if credit is not None:
            parsed.append(credit)
    return parsed


def cast_member_from_dict(raw, aggregate=False):
    member_id = raw.get("id")
    if member_id is None:
        return None
    roles = raw.get("roles") or []
    primary_role = roles[0] if roles else {}
    episode_count = raw.get("total_episode_count", raw.get("episode_count"))
    return CastMember(
        id=member_id,
        name=raw.get("name") or "",
        profile_path=raw.get("profile_path"),
        character=raw.get("character") or primary_role.get("character") or "",
        popularity=raw.get("popularity") or 0.0,
        episode_count=episode_count,
        is_guest_appearance=is_probable_guest_role(roles) if aggregate else False
    )


def _cast(rows, aggregate=False):
    if rows is None:
        return None
    members = []
    for row in rows:
        member = cast_member_from_dict(row, aggregate=aggregate)
        if member is not None:
            members.append(member)
    return members


def _alternates(raw, primary):
    alternates = []
    for key in ("name", "title", "original_name", "original_title"):
        value = raw.get(key)
        if value and value != primary and value not in alternates:
            alternates.append(value)
    return alternates


def entity_from_dict(raw, kind=None):
    """
    Build a typed entity from a catalog payload.

    Args:
        raw: TMDB-shaped dictionary
        kind: Entity kind; defaults to the payload's 'media_type'

    Returns:
        Person, Movie or TVShow

    Raises:
        MalformedEntityError: if the payload has no id or an unknown kind
    """
    if not isinstance(raw, dict):
        raise MalformedEntityError(f"Expected a dict payload, got {type(raw).__name__}")

    kind = kind or raw.get("media_type")
    entity_id = raw.get("id")
    if entity_id is None:
        raise MalformedEntityError("Catalog payload has no id")
    if kind not in ENTITY_TYPES:
        raise MalformedEntityError(f"Unknown entity kind {kind!r} for id {entity_id}")

    common = {
        "id": entity_id,
        "popularity": raw.get("popularity") or 0.0,
        "genres": _names(raw.get("genres")),
        "studios": _names(raw.get("studios") or raw.get("production_companies")),
    }

    if kind == PERSON:
        title = raw.get("name") or ""
        return Person(
            title=title,
            image_path=raw.get("profile_path"),
            alternate_titles=_alternates(raw, title),
            movie_credits=_credits(_credit_list(raw.get("movie_credits"))),
            tv_credits=_credits(_credit_list(raw.get("tv_credits"))),
            guest_appearances=_credits(raw.get("guest_appearances")),
            **common
        )

    if kind == MOVIE:
        title = raw.get("title") or raw.get("name") or ""
        return Movie(
            title=title,
            image_path=raw.get("poster_path"),
            alternate_titles=_alternates(raw, title),
            cast=_cast(_credit_list(raw.get("credits"))),
            **common
        )

    title = raw.get("name") or raw.get("title") or ""
    return TVShow(
        title=title,
        image_path=raw.get("poster_path"),
        alternate_titles=_alternates(raw, title),
        cast=_cast(_credit_list(raw.get("credits"))),
        aggregate_cast=_cast(_credit_list(raw.get("aggregate_credits")), aggregate=True),
        **common
    )


def entities_from_dicts(payloads, kind=None):
    """Parse a list of payloads, skipping malformed ones."""
    entities = []
    for raw in payloads or []:
        try:
            entities.append(entity_from_dict(raw, kind=kind))
        except MalformedEntityError as e:
            logger.debug("Skipping malformed entity: %s", e)
    return entities


def merge_guest_appearances(person, guest_credits):
    """
    Merge a separately fetched guest-appearance list into a person's TV credits.

    Credits only present in the guest list are appended and always marked as
    guest appearances. A credit already present keeps its existing flag, so a
    regular credit is never downgraded.

    Args:
        person: Person with loaded credits
        guest_credits: List of Credit from the guest-appearance lookup

    Returns:
        New Person; the input is not modified
    """
    if not guest_credits:
        return person

    tv_credits = list(person.tv_credits or [])
    known_ids = {credit.target_id for credit in tv_credits}
    guest_list = []

    for credit in guest_credits:
        guest_credit = replace(credit, is_guest_appearance=True)
        guest_list.append(guest_credit)
        if credit.target_id not in known_ids:
            tv_credits.append(guest_credit)
            known_ids.add(credit.target_id)

    return replace(person, tv_credits=tv_credits, guest_appearances=guest_list)
