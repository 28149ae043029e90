"""Formpulse — live response aggregation for published forms."""

__version__ = "0.4.2"
