"""pkgtools - entry-point build ordering and API doc categorization."""

__version__ = "0.3.0"
