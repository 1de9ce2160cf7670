"""Shared models, configuration and filesystem access."""
