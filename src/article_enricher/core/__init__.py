"""Core infrastructure: exceptions, logging, persistence and slugs."""
