"""Shared types, geo helpers, configuration and logging."""
