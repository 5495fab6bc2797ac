"""Outbound integration layer for the portfolio backend."""

__version__ = "0.1.0"
