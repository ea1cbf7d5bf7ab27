"""Engagement tracking service for the newsletter CMS."""

__version__ = "0.4.0"
