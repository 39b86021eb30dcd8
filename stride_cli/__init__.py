"""Guided mobility routines with companion wearable sync."""

__version__ = "0.1.0"
