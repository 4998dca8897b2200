"""PhotoShelf API routers package."""

from . import images
from . import tags

__all__ = [
    "images",
    "tags",
]
