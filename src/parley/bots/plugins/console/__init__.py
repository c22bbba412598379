"""Console bot — a terminal 'platform' for trying pipelines locally."""

from .bot import ConsoleBot

__all__ = ["ConsoleBot"]
