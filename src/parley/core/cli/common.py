"""Shared setup logic for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from parley.core.exceptions import ConfigurationError

if TYPE_CHECKING:
    from parley.core.config import Config


def load_config(config_file: str | None) -> Config:
    """Load config from *config_file* (plus ``PARLEY_`` env vars), exiting on errors."""
    from parley.core.config import Config

    try:
        config = Config(config_file=config_file)
        config.validated()
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e
    return config


def configure_logging(config: Config, level: str | None) -> None:
    from parley.core.utils.logging import setup_logging

    setup_logging(
        level=level or config.get("logging.level", "WARNING"),
        log_file=config.get("logging.file"),
        only_bots=config.get("logging.only_bots"),
    )
