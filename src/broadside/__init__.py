"""Broadside: a two-player grid battle game engine."""

__version__ = "0.1.0"
