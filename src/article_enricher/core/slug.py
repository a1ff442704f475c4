"""Slug derivation for article titles.

The slug is the article's stable public identifier and the key discovery
de-duplicates on, so it must be a pure function of the title.
"""

from __future__ import annotations

import re

_NON_WORD = re.compile(r"[^\w\s-]")
_SEPARATOR_RUNS = re.compile(r"[\s_-]+")


def slugify(title: str) -> str:
    """Return the URL slug for ``title``.

    Lower-cases, drops characters that are neither word characters,
    whitespace nor hyphens, collapses whitespace/underscore/hyphen runs into
    one ``-`` and trims hyphens at both ends.  Applying it to its own output
    returns the same string.

    >>> slugify("  Intro to X: Part_2 -- Basics! ")
    'intro-to-x-part-2-basics'
    """
    slug = _NON_WORD.sub("", title.lower().strip())
    slug = _SEPARATOR_RUNS.sub("-", slug)
    return slug.strip("-")
