"""
Logging processors for structlog event processing.

Chat traffic is user generated, so message bodies are never written to the
logs verbatim and any credential-looking field is redacted.
"""

import re
from typing import Any

_SENSITIVE_PATTERNS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"\bpassword\b",
        r"\btoken\b",
        r"\bsecret\b",
        r"_key\b",
        r"^key$",
        r"\bcredential\b",
        r"\bauthorization\b",
    )
]

# Fields carrying raw chat text; logged only as a length
_CONTENT_FIELDS = {"content", "raw_frame", "raw_text"}


def sanitize_sensitive_data(_logger: Any, _name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Remove sensitive data from log entries.

    Credential-like keys are replaced with "[REDACTED]" and chat content is
    replaced by its length.

    Args:
        _logger: Logger instance (unused)
        _name: Logger name (unused)
        event_dict: Event dictionary to sanitize

    Returns:
        Sanitized event dictionary
    """
    for key in list(event_dict.keys()):
        if key == "event":
            continue
        if key in _CONTENT_FIELDS and isinstance(event_dict[key], str):
            event_dict[key] = f"<{len(event_dict[key])} chars>"
            continue
        if any(pattern.search(key) for pattern in _SENSITIVE_PATTERNS):
            event_dict[key] = "[REDACTED]"
    return event_dict
