"""Schema bootstrap command."""

import click

from photoshelf.cli.base import CliCommand
from photoshelf.metadata import Base


@click.command(name="init-db")
def init_db_command():
    """Create all tables in the configured database."""
    cmd = InitDbCommand()
    cmd.run()


class InitDbCommand(CliCommand):
    """Command to create the schema."""

    def run(self):
        self.setup_db()
        try:
            Base.metadata.create_all(self.engine)
            click.echo(f"Created {len(Base.metadata.tables)} tables")
        finally:
            self.cleanup_db()
