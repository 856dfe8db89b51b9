"""Folio Blog: a single-admin blog and portfolio CMS backend."""

__version__ = "1.0.0"
