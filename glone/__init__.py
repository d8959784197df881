"""Keep local git checkouts in sync with their remotes."""

__version__ = "0.1.0"
