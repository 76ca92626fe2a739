"""MangaSync: manga catalog backend with favourites and history sync."""

__version__ = "0.1.0"
