"""
Connect the Stars - Streamlit demo
Link two actors through shared movies and TV shows
"""

import streamlit as st
import sys
import os

# =============================================================================
# IMPORTS AND SETUP
# =============================================================================

# Add src directory to path for imports
current_dir = os.path.dirname(os.path.abspath(__file__))
src_dir = os.path.join(current_dir, 'src')

if src_dir not in sys.path:
    sys.path.insert(0, src_dir)

from catalog_service import TMDbCatalogService, CatalogFetchError
from entities import Person
from game_board import GameBoard
from local_search import SearchOptions
from search_orchestrator import SearchOrchestrator, build_search_corpus
from utils import get_logger

logger = get_logger(__name__)

TMDB_IMAGE_URL = "https://image.tmdb.org/t/p/w185"

# Tom Hanks and Meg Ryan
DEFAULT_START_IDS = (31, 5344)

# =============================================================================
# SESSION STATE MANAGEMENT
# =============================================================================

@st.cache_resource
def get_catalog_service():
    """One catalog client (and request cache) per server process."""
    return TMDbCatalogService()


def initialize_session_state():
    """Initialize all required session state variables."""

    if "board" not in st.session_state:
        st.session_state.board = GameBoard(catalog=get_catalog_service())

    if "connectable_items" not in st.session_state:
        st.session_state.connectable_items = {}


def start_new_game(first_id, second_id):
    board = GameBoard(catalog=get_catalog_service())
    try:
        board.start_game((Person(id=first_id), Person(id=second_id)))
    except (CatalogFetchError, ValueError) as e:
        logger.error("Could not start game: %s", e)
        st.error(f"Could not start the game: {e}")
        return
    st.session_state.board = board
    st.session_state.connectable_items = {}

# =============================================================================
# UI RENDERING
# =============================================================================

def image_url(entity):
    return f"{TMDB_IMAGE_URL}{entity.image_path}" if entity.image_path else None


def render_board(board):
    """Show the nodes on the board and the current shortest path."""
    st.subheader("Board")
    if not board.nodes:
        st.info("Pick two starting actors to begin.")
        return

    cols = st.columns(min(len(board.nodes), 5))
    for i, node in enumerate(board.nodes):
        with cols[i % len(cols)]:
            url = image_url(node.entity)
            if url:
                st.image(url, use_container_width=True)
            st.caption(f"{node.entity.title} ({node.kind})")

    result = board.check_completion()
    if result.found:
        titles = [board.get_node(key).entity.title for key in result.path]
        st.success(f"Connected in {result.length} steps: " + " → ".join(titles))
    else:
        st.write(f"{len(board.edges)} connections so far, no path yet.")


def render_search(board):
    """Search box, results with a connectable badge, and add buttons."""
    st.subheader("Search")
    term = st.text_input("Actor, movie or TV show", key="search_term")
    hide = st.checkbox("Only show connectable results", value=False)
    kind = st.selectbox("Type", ["any", "person", "movie", "tv"])

    if not term:
        return

    options = SearchOptions(filter_by_type=None if kind == "any" else kind)
    orchestrator = SearchOrchestrator(
        get_catalog_service(),
        board=board,
        connectable_items=st.session_state.connectable_items
    )

    with st.spinner("Searching..."):
        outcome = orchestrator.search(term, build_search_corpus(board.nodes), options, hide_unconnectable=hide)

    if not outcome.results:
        st.warning("No results found.")
        for suggestion in outcome.suggestions:
            st.write(f"Did you mean **{suggestion.suggestion}**?")
        return

    for entity in outcome.results:
        connectable = outcome.connectable.get(entity.key)
        badge = "✅" if connectable else ("❌" if connectable is False else "❔")
        col1, col2 = st.columns([4, 1])
        with col1:
            st.write(f"{badge} {entity.title} ({entity.kind})")
        with col2:
            if st.button("Add", key=f"add_{entity.key}", disabled=not connectable):
                try:
                    board.add_entity(entity)
                except CatalogFetchError as e:
                    st.error(f"Could not add {entity.title}: {e}")
                st.rerun()


def main():
    """Main application function."""
    st.set_page_config(page_title="Connect the Stars", page_icon="⭐", layout="wide")
    initialize_session_state()

    st.title("⭐ Connect the Stars")

    with st.sidebar:
        first_id = st.number_input("First actor TMDB id", value=DEFAULT_START_IDS[0], step=1)
        second_id = st.number_input("Second actor TMDB id", value=DEFAULT_START_IDS[1], step=1)
        if st.button("New game", type="primary"):
            start_new_game(int(first_id), int(second_id))

    board = st.session_state.board
    render_board(board)
    if board.nodes:
        render_search(board)


if __name__ == "__main__":
    main()
