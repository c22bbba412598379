"""Parley — one message pipeline for bots on any chat platform."""

__version__ = "0.1.0"
