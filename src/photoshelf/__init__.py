"""PhotoShelf - personal photo library with filtered image search."""

__version__ = "0.1.0"
