"""tilescore: score compiler for a tile rhythm game."""

__version__ = "0.1.0"
