"""Retrieve account data from Africa's Talking."""

__version__ = "0.1.0"
