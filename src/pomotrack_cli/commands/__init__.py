"""Command modules for Pomotrack CLI."""
