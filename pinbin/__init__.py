"""pinbin — pinned command-line tool installer."""

__version__ = "0.1.0"
