"""Keep a local web-engine artifact tree in sync with a remote CMS instance."""

__version__ = "0.1.0"
