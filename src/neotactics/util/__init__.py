"""Shared utilities: event bus, constants."""
