"""Pryvo dating backend: matching, discovery and real-time chat."""

__version__ = "1.0.0"
