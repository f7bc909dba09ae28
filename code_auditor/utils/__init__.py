"""Utility helpers: exclusion globs and stage timing."""
