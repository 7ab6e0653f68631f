"""Entropy SDK — client-side model, validator and agent driver for the Entropy grid game."""

__version__ = "0.1.0"
