"""Player session state, request handlers and SQLite storage for a role-playing game server."""

__version__ = "0.1.0"