"""
Visitor classification from user-agent strings.

Identifies AI content-ingestion agents (crawlers and browsing agents)
so the proxy can serve them the curated content variant.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..config.constants import (
    AI_VISITOR_PATTERNS,
    CHATGPT_OVERRIDE_TOKEN,
)


class BotCategory(str, Enum):
    """AI visitor categories, in evaluation order."""

    CHATGPT_USER = "ChatGPT-User"
    GPTBOT = "GPTBot"
    GOOGLE_EXTENDED = "Google-Extended"
    BING_PREVIEW = "BingPreview"
    PERPLEXITY_BOT = "PerplexityBot"
    CLAUDE_USER = "Claude-User"
    CLAUDE_WEB = "Claude-Web"
    CLAUDE_BOT = "ClaudeBot"
    NONE = "none"

    @property
    def is_ai_visitor(self) -> bool:
        return self is not BotCategory.NONE


@dataclass
class BotClassification:
    """Result of bot classification."""

    bot_name: str
    bot_provider: str
    category: BotCategory

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary."""
        return {
            "bot_name": self.bot_name,
            "bot_provider": self.bot_provider,
            "bot_category": self.category.value,
        }


# Pre-compiled in evaluation order; dicts keep insertion order
_BOT_PATTERNS: list[tuple[BotCategory, re.Pattern]] = [
    (BotCategory(bot_name), re.compile(info["pattern"], re.IGNORECASE))
    for bot_name, info in AI_VISITOR_PATTERNS.items()
]


def classify_visitor(
    user_agent: Optional[str], override: Optional[str] = None
) -> BotCategory:
    """
    Classify a visitor from its user-agent and optional query override.

    Patterns are tried in a fixed order and the first match wins. When no
    pattern matches, an override equal to "chatgpt" (any case) selects the
    ChatGPT category; this lets the curated variant be previewed from a
    regular browser.

    Args:
        user_agent: The HTTP User-Agent header value (may be empty)
        override: Value of the ``user-agent`` query parameter, if any

    Returns:
        The matching BotCategory, or BotCategory.NONE

    Examples:
        >>> classify_visitor("Mozilla/5.0 (compatible; GPTBot/1.0)")
        <BotCategory.GPTBOT: 'GPTBot'>
        >>> classify_visitor("Mozilla/5.0 Chrome/120", "ChatGPT")
        <BotCategory.CHATGPT_USER: 'ChatGPT-User'>
    """
    if user_agent:
        for category, pattern in _BOT_PATTERNS:
            if pattern.search(user_agent):
                return category

    if override is not None and override.lower() == CHATGPT_OVERRIDE_TOKEN:
        return BotCategory.CHATGPT_USER

    return BotCategory.NONE


def classify_bot(
    user_agent: Optional[str], override: Optional[str] = None
) -> Optional[BotClassification]:
    """
    Classify a visitor and attach its provider.

    Args:
        user_agent: The HTTP User-Agent header value
        override: Value of the ``user-agent`` query parameter, if any

    Returns:
        BotClassification, or None if no known AI visitor is identified
    """
    category = classify_visitor(user_agent, override)
    if not category.is_ai_visitor:
        return None
    return BotClassification(
        bot_name=category.value,
        bot_provider=AI_VISITOR_PATTERNS[category.value]["provider"],
        category=category,
    )

