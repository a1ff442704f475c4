"""Constants for the rewrite step."""

from __future__ import annotations

#: Base URL of the Gemini REST API.
GEMINI_API_BASE: str = "https://generativelanguage.googleapis.com/v1beta"

#: Seconds to wait for one generation.  Long articles take minutes.
GENERATION_TIMEOUT: int = 300

#: Characters of each reference article's text included in the prompt.
EXCERPT_CHARS: int = 500
