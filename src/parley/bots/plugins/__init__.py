"""Bundled platform bots."""
