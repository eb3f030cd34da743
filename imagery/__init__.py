"""Decode, transform, resize, rotate and re-encode images."""

__version__ = "2.0.0"