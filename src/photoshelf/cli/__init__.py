"""PhotoShelf CLI entry point with lazy command registration."""

from __future__ import annotations

import logging

import click

from photoshelf.settings import settings

_COMMANDS_REGISTERED = False


def _register_commands_once() -> None:
    global _COMMANDS_REGISTERED
    if _COMMANDS_REGISTERED:
        return

    from .commands import init_db, search, tags

    cli.add_command(init_db.init_db_command, name="init-db")
    cli.add_command(search.search_command, name="search")
    cli.add_command(tags.list_tags_command, name="list-tags")

    _COMMANDS_REGISTERED = True


class _LazyCLIGroup(click.Group):
    def list_commands(self, ctx):
        _register_commands_once()
        return super().list_commands(ctx)

    def get_command(self, ctx, cmd_name):
        _register_commands_once()
        return super().get_command(ctx, cmd_name)


@click.group(cls=_LazyCLIGroup)
def cli():
    """PhotoShelf CLI for local administration and search."""
    pass


def main():
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    cli()


if __name__ == "__main__":
    main()
