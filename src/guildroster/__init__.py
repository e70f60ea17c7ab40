"""Guild roster import, reconciliation and query toolkit."""

__version__ = "0.1.0"
