"""Core infrastructure: configuration, logging and metrics."""
