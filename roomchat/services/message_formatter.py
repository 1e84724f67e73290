"""
Pure text helpers for message content.

Nothing here touches storage or the network; the use-case layer uses
truncate_for_preview() for reply previews, and format_content() renders
content for HTML clients.
"""

import re

URL_PATTERN = re.compile(r"(https?://[^\s]+)")
MENTION_PATTERN = re.compile(r"@(\w+)")


class MessageFormatter:
    """Formatting helpers for chat message content."""

    @staticmethod
    def escape_html(content: str) -> str:
        # Ampersand first, or the entities below would be escaped twice
        return content.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;").replace('"', "&quot;")

    @staticmethod
    def format_content(content: str) -> str:
        """
        Render content for display.

        Markup characters are escaped first, then URLs become links and
        @mentions become highlighted spans.
        """
        escaped = MessageFormatter.escape_html(content)
        linked = URL_PATTERN.sub(r'<a href="\1" target="_blank" rel="noopener">\1</a>', escaped)
        return MENTION_PATTERN.sub(r'<span class="mention">@\1</span>', linked)

    @staticmethod
    def extract_mentions(content: str) -> list[str]:
        return MENTION_PATTERN.findall(content)

    @staticmethod
    def truncate_for_preview(content: str, max_length: int = 50) -> str:
        if len(content) <= max_length:
            return content
        return f"{content[:max_length]}..."
