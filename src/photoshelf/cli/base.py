"""Base command class for shared CLI setup/teardown."""

import click
from sqlalchemy.orm import sessionmaker

from photoshelf.database import build_engine
from photoshelf.metadata import User


class CliCommand:
    """Base class for all CLI commands with shared setup/teardown."""

    def __init__(self):
        self.engine = None
        self.Session = None
        self.db = None
        self.owner = None

    def setup_db(self):
        """Initialize database connection."""
        self.engine = build_engine()
        self.Session = sessionmaker(bind=self.engine)
        self.db = self.Session()

    def cleanup_db(self):
        """Close database connection."""
        if self.db:
            self.db.close()
        if self.engine:
            self.engine.dispose()

    def load_owner(self, owner_id: int) -> User:
        """Load the library owner the command acts for."""
        if not self.db:
            raise click.ClickException("Database not initialized")

        owner = self.db.query(User).filter(User.id == owner_id).first()
        if not owner:
            raise click.ClickException(f"User {owner_id} not found in database")

        self.owner = owner
        return owner

    def run(self):
        """Execute command - override in subclasses."""
        raise NotImplementedError

    def __enter__(self):
        """Context manager entry."""
        self.setup_db()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.cleanup_db()
