"""Tag catalog commands."""

import click

from photoshelf.cli.base import CliCommand
from photoshelf.tags import TagService


@click.command(name="list-tags")
@click.option("--owner-id", required=True, type=int, help="User ID owning the library")
def list_tags_command(owner_id: int):
    """List an owner's tags."""
    cmd = ListTagsCommand(owner_id)
    cmd.run()


class ListTagsCommand(CliCommand):
    """Command to list tags."""

    def __init__(self, owner_id: int):
        super().__init__()
        self.owner_id = owner_id

    def run(self):
        self.setup_db()
        try:
            self.load_owner(self.owner_id)
            self._list_tags()
        finally:
            self.cleanup_db()

    def _list_tags(self):
        tags = TagService(self.db, self.owner.id).list_tags()
        for tag in tags:
            color = tag.color or "-"
            click.echo(f"{tag.id:>6}  {tag.name:<50}  {color}")
        click.echo(f"Total: {len(tags)} tags")
