"""
Campaign name -> advertising platform classification.

Matching is a case-insensitive substring test against an ordered list of
(keyword, tag) rules; the first rule that matches wins. "Google YouTube
Remarketing" is therefore Google, and "Meta / Facebook Lookalike" is Meta.
"""
from typing import Optional, Sequence, Tuple

from core.config import config
from core.models import Platform

Rule = Tuple[str, str]


def _to_platform(tag: str) -> Platform:
    try:
        return Platform(tag)
    except ValueError:
        return Platform.OTHER


def classify_platform(
    campaign_name: Optional[str],
    rules: Optional[Sequence[Rule]] = None,
) -> Platform:
    """
    Map a free-text campaign name to a platform tag.

    Args:
        campaign_name: Campaign name (None and "" fall through to Other)
        rules: Ordered (keyword, tag) pairs (default: config.platforms.rules)

    Returns:
        Platform of the first matching rule, or Platform.OTHER

    Examples:
        >>> classify_platform("Google Brand")
        <Platform.GOOGLE: 'Google'>

        >>> classify_platform("")
        <Platform.OTHER: 'Other'>
    """
    name = campaign_name.lower() if isinstance(campaign_name, str) else ""
    for keyword, tag in (rules if rules is not None else config.platforms.rules):
        if keyword and keyword.lower() in name:
            return _to_platform(tag)
    return Platform.OTHER
