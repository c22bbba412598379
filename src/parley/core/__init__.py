"""Core building blocks: errors, events, configuration, logging."""
