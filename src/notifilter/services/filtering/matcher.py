"""
Allow-List Matching.

Fail-closed membership test: an empty allow-list allows nothing.
"""

from __future__ import annotations

from collections.abc import Collection

from .models import SenderIdentity


def is_allowed(identity: SenderIdentity, allow_list: Collection[str]) -> bool:
    """
    Check whether a sender identity is on the allow-list.

    Matching is exact: no case folding, trimming, or fuzzy comparison.

    Args:
        identity: Extracted sender identity
        allow_list: Current allow-list snapshot

    Returns:
        True only if allow_list is non-empty and contains identity
    """
    if not allow_list:
        return False

    # The empty identity is never an addable entry
    if not identity:
        return False

    return identity in allow_list
