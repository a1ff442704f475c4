"""FastAPI application package for Article Enricher."""
