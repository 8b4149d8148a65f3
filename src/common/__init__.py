"""Shared helpers: errors, logging and HTTP transport."""
