"""Per-article enhancement and batch scheduling.

The coordinator drives one article through search, extraction and rewrite
and persists the result; the batch runner applies it to the pending
articles one at a time.
"""
