"""ccstats — Claude usage windows, session history and CLI freshness."""

__version__ = "0.1.0"
