"""Shared infrastructure: configuration, logging, errors."""
