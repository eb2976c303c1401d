"""
Sender Identity Extraction.

Messaging apps decorate notification titles with message counts and media
markers, e.g. "老婆 - [语音] 2". The sender identity is the first
whitespace-delimited token of the title.

Names containing internal spaces are truncated to their first word. This is
a known limitation; such senders must be allow-listed by a single-word alias.
"""

from __future__ import annotations

from .models import SenderIdentity


def extract_identity(raw_title: str | None) -> SenderIdentity:
    """
    Map a raw notification title to its canonical sender identity.

    Args:
        raw_title: Notification title, possibly None or decorated

    Returns:
        First whitespace-delimited token, or "" for a missing/blank title

    Examples:
        >>> extract_identity("老婆 - [语音] 2")
        '老婆'
        >>> extract_identity("   ")
        ''
    """
    if not raw_title:
        return ""

    tokens = raw_title.split()
    return tokens[0] if tokens else ""
