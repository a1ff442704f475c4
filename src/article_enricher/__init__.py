"""Article Enricher.

Imports blog articles from a source site, finds top-ranking reference
articles on the same topic and rewrites the originals with a generative
model, keeping the original text for comparison.
"""
