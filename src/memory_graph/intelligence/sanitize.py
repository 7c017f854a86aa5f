"""
Sanitize-and-delimit step for stored text that is sent back to an LLM.

Memory contents are user supplied and may carry instructions aimed at the
oracle. Statements are stripped of control characters, have their angle
brackets escaped so they cannot close the delimiter tags, and are truncated.
"""

import re

STATEMENT_OPEN = "<statement>"
STATEMENT_CLOSE = "</statement>"

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


def sanitize_statement(text: str, max_length: int = 2000) -> str:
    cleaned = _CONTROL_CHARS.sub("", text)
    cleaned = cleaned.replace("<", "&lt;").replace(">", "&gt;")
    if len(cleaned) > max_length:
        cleaned = cleaned[:max_length] + " [truncated]"
    return cleaned.strip()


def delimit(text: str, max_length: int = 2000) -> str:
    """Sanitize text and wrap it in statement delimiters."""
    return f"{STATEMENT_OPEN}\n{sanitize_statement(text, max_length)}\n{STATEMENT_CLOSE}"
