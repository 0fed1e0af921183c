"""Command-line interface for bot-session-storage."""
