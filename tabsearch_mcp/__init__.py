"""tabsearch - search the open documents of an editor."""

__version__ = "0.1.0"
