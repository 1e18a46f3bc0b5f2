"""
Configuration constants, logging and secrets helpers for the connection engine.
"""

import os
import logging
import streamlit as st

# String matching thresholds
SIMILARITY_THRESHOLDS = {
    "suggestion": 0.7,
    "exact_match": 0.9
}

MATCH_WEIGHTS = {
    "exact": 1.0,
    "alternate": 0.95,
    "edit_distance": 0.9,
    "containment": 0.8,
    "containment_cap": 0.8,
    "word_overlap": 0.6
}

MIN_EDIT_SIMILARITY = 0.7
MIN_WORD_SIMILARITY = 0.7
MIN_WORD_MATCH_RATIO = 0.5
MIN_CONTAINMENT_LENGTH = 4
MIN_WORD_LENGTH = 3

# Search input limits
COMMON_WORDS = {"the", "and", "movie", "show", "actor", "star", "film", "tv", "series"}
MIN_SEARCH_LENGTH = 2
MAX_SEARCH_RESULTS = 50
MAX_SUGGESTIONS = 3
QUICK_SEARCH_LIMIT = 10

# Result post-processing
SMALL_RESULT_SET = 20
MAX_DISPLAY_RESULTS = 20

# Graph and catalog
PATH_CACHE_CAPACITY = 1000
MAX_CONNECTABILITY_WORKERS = 3
GUEST_EPISODE_LIMIT = 3
GUEST_ROLE_MARKERS = ("guest", "special appearance", "cameo")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name, level=logging.INFO):
    """
    Return a module logger, configuring the root handler once if nothing else has.

    Args:
        name: Logger name, usually __name__
        level: Level applied to the returned logger

    Returns:
        logging.Logger instance
    """
    logger = logging.getLogger(name)
    if not logging.getLogger().handlers and not logger.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    logger.setLevel(level)
    return logger


def get_tmdb_api_key():
    """
    Look up the TMDB API key from Streamlit secrets, then the environment.

    Returns:
        API key string or None if it is not configured
    """
    try:
        if "TMDB_API_KEY" in st.secrets:
            return st.secrets["TMDB_API_KEY"]
    except Exception as e:
        # st.secrets raises when no secrets.toml exists outside a Streamlit run
        logging.getLogger(__name__).debug("Streamlit secrets unavailable: %s", e)
    return os.environ.get("TMDB_API_KEY")
