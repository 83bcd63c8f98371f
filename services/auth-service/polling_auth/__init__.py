"""Account lifecycle and authentication service for the polling backend."""

__version__ = "0.1.0"
