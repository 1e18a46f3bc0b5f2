"""
Connect the Stars - Source Package

This package contains the connection and search engine for the game:
- entities: People, movies, TV shows, credits and board nodes/edges
- catalog_service: Catalog interface and the TMDB implementation
- catalog_index: Lookup tables over the board's nodes
- connection_discovery: Edge discovery between a new entity and the board
- connectability: Checks whether a candidate can join the board
- path_finder: Shortest paths with a bounded result cache
- string_matching: Normalisation and similarity helpers
- local_search: Multi-stage fuzzy search over a cached corpus
- search_orchestrator: Search results annotated with connectability
- game_board: Board state for a game session
- utils: Utility functions and configuration constants
"""
