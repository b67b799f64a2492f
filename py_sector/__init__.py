"""Procedural star sector density maps with Traveller-style worlds."""

__version__ = "0.1.0"
