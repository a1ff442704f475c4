"""Prompt templates for the two rewrite modes."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from article_enricher.rewriter.config import EXCERPT_CHARS

if TYPE_CHECKING:
    from article_enricher.rewriter.orchestrator import ReferenceExtract


_WITH_REFERENCES = """\
You are an expert content writer. Your task is to enhance and rewrite an article to match the style, formatting, and quality of top-ranking articles on Google.

ORIGINAL ARTICLE:
Title: {title}
Content:
{content}

REFERENCE ARTICLES (Top-ranking articles on Google for this topic):
{references}

INSTRUCTIONS:
1. Analyze the structure, formatting, and writing style of the reference articles
2. Rewrite the original article to match the quality and style of the reference articles
3. Maintain the core information and message of the original article
4. Use a similar heading structure and paragraph rhythm as the reference articles
5. Improve clarity and engagement and make the content more comprehensive
6. At the end of the article, add a "References" section citing the reference articles

OUTPUT FORMAT:
- Return only the enhanced article content in HTML format
- Use proper HTML tags: <h2> for main headings, <h3> for subheadings, <p> for paragraphs
- Include a "References" section at the bottom with links to the reference articles
- Do not include any meta-commentary or explanations, just the article content

Enhanced Article:"""

_REFERENCE_BLOCK = """\
Reference Article {index}:
Title: {title}
Structure: {structure}
Content Sample: {excerpt}..."""

_WITHOUT_REFERENCES = """\
You are an expert content writer and editor. Your task is to improve an article's formatting, structure, and clarity so it reads as professional and well organized.

ORIGINAL ARTICLE:
Title: {title}
Content:
{content}

INSTRUCTIONS:
1. Structure the article with proper headings (H2 for main sections, H3 for subsections)
2. Improve paragraph breaks and transitions for readability
3. Improve clarity while keeping the original information and facts intact
4. Fix any grammar or spelling issues

OUTPUT FORMAT:
- Return only the enhanced article content in HTML format
- Use proper HTML tags: <h2> for main headings, <h3> for subheadings, <p> for paragraphs
- Do not include any meta-commentary or explanations, just the article content
- Do not add a references section (there are no reference articles)

Enhanced Article:"""


def build_reference_prompt(
    title: str,
    content: str,
    extracts: Sequence["ReferenceExtract"],
) -> str:
    """Prompt asking for a rewrite in the style of ``extracts``."""
    references = "\n\n".join(
        _REFERENCE_BLOCK.format(
            index=index,
            title=extract.title,
            structure=extract.structure_signature,
            excerpt=extract.text_content[:EXCERPT_CHARS],
        )
        for index, extract in enumerate(extracts, start=1)
    )
    return _WITH_REFERENCES.format(title=title, content=content, references=references)


def build_plain_prompt(title: str, content: str) -> str:
    """Prompt asking for a formatting and clarity pass only."""
    return _WITHOUT_REFERENCES.format(title=title, content=content)
