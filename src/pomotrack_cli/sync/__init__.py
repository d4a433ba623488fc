"""Synchronization of finished sessions with the remote store."""
