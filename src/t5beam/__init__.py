"""Encoder subgraph contract checks and first-step feed construction for beam search."""

__version__ = "0.1.0"
