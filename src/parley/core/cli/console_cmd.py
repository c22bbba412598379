"""parley console — chat with an echo bot in the terminal."""

from __future__ import annotations

import asyncio

import click
from rich.markup import escape


@click.command()
@click.option("--config", "config_file", type=click.Path(dir_okay=False), help="YAML or JSON config file.")
@click.option("--log-level", default=None, help="Override logging.level (DEBUG, INFO, WARNING, ...).")
@click.option("--cascade/--no-cascade", default=False, help="Reply with a typing indicator then the echo.")
def console(config_file: str | None, log_level: str | None, cascade: bool) -> None:
    """Run a console bot in the terminal that echoes what you type."""
    from parley.bots.plugins.console import ConsoleBot
    from parley.core.cli.common import configure_logging, load_config
    from parley.core.exceptions import ConfigurationError

    config = load_config(config_file)
    configure_logging(config, log_level)

    try:
        bot = ConsoleBot(config.bot_settings("console"))
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e

    bot.on("update", _echo_handler(cascade))
    bot.on("error", lambda event: bot.console.print(f"[red]Error:[/] {escape(str(event.error))}"))

    asyncio.run(bot.run())


def _echo_handler(cascade: bool):  # type: ignore[no-untyped-def]
    async def echo(event) -> None:  # type: ignore[no-untyped-def]
        bot = event.bot
        text = (event.update.get("message") or {}).get("text", "")
        if cascade:
            await bot.send_cascade_to([{"is_typing": True}, {"text": f"You said: {text}"}], event.update["sender"]["id"])
        else:
            await bot.reply(event.update, f"You said: {text}")

    return echo
