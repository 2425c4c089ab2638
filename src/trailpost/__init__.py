"""Trailpost: consistency core for reactions, comment threads and content flags."""

__version__ = "0.1.0"
