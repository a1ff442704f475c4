"""Rewrite orchestration against a generative language model.

:class:`~article_enricher.rewriter.orchestrator.RewriteOrchestrator` builds
the prompt (with or without reference material), calls a
:class:`~article_enricher.rewriter.orchestrator.GenerativeClient`, and
post-processes the answer into article HTML.
"""
