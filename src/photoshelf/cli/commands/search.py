"""Image search command."""

import logging

import click

from photoshelf.cli.base import CliCommand
from photoshelf.search import ImageSearch, SearchFailedError

logger = logging.getLogger(__name__)

# click option name -> search filter key
_FILTER_OPTIONS = {
    "keyword": "keyword",
    "keyword_mode": "keyword_mode",
    "start_date": "created_start",
    "end_date": "created_end",
    "taken_start": "taken_start",
    "taken_end": "taken_end",
    "width_min": "width_min",
    "width_max": "width_max",
    "height_min": "height_min",
    "height_max": "height_max",
    "size_min": "size_min",
    "size_max": "size_max",
    "tags": "tags",
    "tag_mode": "tag_mode",
}


@click.command(name="search")
@click.option("--owner-id", required=True, type=int, help="User ID owning the library")
@click.option("--keyword", help="Substring of the original filename")
@click.option("--keyword-mode", type=click.Choice(["and", "or"]), help="Combine keyword with other filters")
@click.option("--start-date", help="Upload date lower bound (YYYY-MM-DD or RFC 3339)")
@click.option("--end-date", help="Upload date upper bound (YYYY-MM-DD or RFC 3339)")
@click.option("--taken-start", help="Capture date lower bound")
@click.option("--taken-end", help="Capture date upper bound")
@click.option("--width-min", help="Minimum width in pixels")
@click.option("--width-max", help="Maximum width in pixels")
@click.option("--height-min", help="Minimum height in pixels")
@click.option("--height-max", help="Maximum height in pixels")
@click.option("--size-min", help="Minimum file size in MB")
@click.option("--size-max", help="Maximum file size in MB")
@click.option("--tags", help="Comma-separated tag names")
@click.option("--tag-mode", type=click.Choice(["and", "or"]), help="Combine tags with AND or OR")
@click.option("--page", default=1, type=int, help="Page number (1-based)")
@click.option("--page-size", default=20, type=int, help="Images per page")
def search_command(owner_id: int, page: int, page_size: int, **options):
    """Search an owner's images."""
    filters = {key: options[name] for name, key in _FILTER_OPTIONS.items()}
    cmd = SearchCommand(owner_id, filters, page, page_size)
    cmd.run()


class SearchCommand(CliCommand):
    """Command to run a filtered image search."""

    def __init__(self, owner_id: int, filters: dict, page: int, page_size: int):
        super().__init__()
        self.owner_id = owner_id
        self.filters = filters
        self.page = page
        self.page_size = page_size

    def run(self):
        """Execute search command."""
        self.setup_db()
        try:
            self.load_owner(self.owner_id)
            self._search()
        finally:
            self.cleanup_db()

    def _search(self):
        try:
            result = ImageSearch(self.db, self.owner.id, logger=logger).run(
                self.filters, self.page, self.page_size
            )
        except SearchFailedError as exc:
            raise click.ClickException(str(exc))

        for image in result.items:
            tag_names = ", ".join(tag.name for tag in image.tags)
            click.echo(
                f"{image.id:>6}  {image.created_at:%Y-%m-%d %H:%M}  "
                f"{image.width}x{image.height}  {image.file_size:>10}  "
                f"{image.original_filename}  [{tag_names}]"
            )
        click.echo(f"Page {result.page} ({result.page_size} per page), total: {result.total} images")
