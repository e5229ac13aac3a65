# backend/civicmatch/__init__.py

"""CivicMatch backend: maps colloquial voter priorities to formal policy terms."""

__version__ = "1.0.0"
