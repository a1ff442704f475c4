"""Rewrite orchestration: prompt, generate, post-process.

Two modes, chosen by whether any reference extracts are supplied:

- **with references**: the model is asked to rewrite the article in the
  style of the references and cite them; a References section is appended
  afterwards if the model left it out.
- **plain**: formatting and clarity pass only, no citations.

Model errors are not retried here.  They propagate to the coordinator,
which leaves the article untouched.
"""

from __future__ import annotations

import html
import logging
import re
from dataclasses import dataclass
from typing import Protocol, Sequence

from article_enricher.core.exceptions import GenerationError
from article_enricher.core.schemas.article import ReferenceArticle
from article_enricher.rewriter.prompts import build_plain_prompt, build_reference_prompt

logger = logging.getLogger(__name__)


class GenerativeClient(Protocol):
    """Anything that turns a prompt into text."""

    async def generate(self, prompt: str) -> str: ...


@dataclass(frozen=True)
class ReferenceExtract:
    """A reference article after extraction, as fed to the prompt."""

    url: str
    title: str
    text_content: str
    html_content: str = ""
    structure_signature: str = ""

    def as_reference(self) -> ReferenceArticle:
        return ReferenceArticle(url=self.url, title=self.title)


_OPENING_FENCE = re.compile(r"\A```[\w-]*[ \t]*\n?")
_CLOSING_FENCE = re.compile(r"\n?```\s*\Z")

_CITATION_MARKERS: tuple[str, ...] = ("references", "sources")


def strip_code_fence(text: str) -> str:
    """Remove a Markdown code fence wrapped around the whole answer.

    >>> strip_code_fence("```html\\n<p>Hi</p>\\n```")
    '<p>Hi</p>'
    """
    cleaned = text.strip()
    if not cleaned.startswith("```"):
        return cleaned
    cleaned = _OPENING_FENCE.sub("", cleaned, count=1)
    cleaned = _CLOSING_FENCE.sub("", cleaned, count=1)
    return cleaned.strip()


def add_citations(content: str, references: Sequence[ReferenceArticle]) -> str:
    """Append a References list unless one is already present.

    The content is left alone when ``references`` is empty or when it
    already mentions "references" or "sources" anywhere (case-insensitive),
    which also makes the function idempotent.
    """
    if not references:
        return content
    lowered = content.lower()
    if any(marker in lowered for marker in _CITATION_MARKERS):
        return content

    items = "\n".join(
        f'  <li><a href="{html.escape(ref.url, quote=True)}" target="_blank" '
        f'rel="noopener noreferrer">{html.escape(ref.title or ref.url)}</a></li>'
        for ref in references
    )
    return f"{content}\n<h2>References</h2>\n<ul>\n{items}\n</ul>"


class RewriteOrchestrator:
    """Produce the enhanced article body.

    Args:
        client: Generative model client.
    """

    def __init__(self, client: GenerativeClient) -> None:
        self._client = client

    async def rewrite(
        self,
        original_content: str,
        title: str,
        extracts: Sequence[ReferenceExtract] = (),
    ) -> str:
        """Return enhanced HTML for the article.

        Raises:
            GenerationError: If the model fails or answers with nothing.
        """
        if extracts:
            prompt = build_reference_prompt(title, original_content, extracts)
        else:
            prompt = build_plain_prompt(title, original_content)

        logger.info(
            "rewriter: generating %s rewrite for %r (%d chars of prompt)",
            "referenced" if extracts else "plain",
            title,
            len(prompt),
        )
        answer = strip_code_fence(await self._client.generate(prompt))
        if not answer:
            raise GenerationError(f"rewriter: model returned no content for {title!r}")

        if extracts:
            answer = add_citations(answer, [e.as_reference() for e in extracts])
        return answer
