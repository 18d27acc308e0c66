"""Fetch pipeline for top Reddit posts and their comment threads."""

__version__ = "0.1.0"
