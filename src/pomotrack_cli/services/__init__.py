"""Application services built on the core and storage layers."""
