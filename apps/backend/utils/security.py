"""
Redaction helpers for upstream credentials.

Source adapters pass API keys in query strings (``key=``) and bearer or basic
auth headers; error messages from httpx include the request URL, so anything
logged from an adapter failure goes through here first.
"""

import re

_TEXT_REDACTIONS = [
    (r"(api_key=)[^&\s'\"]+", r"\1[REDACTED]"),
    (r"([?&]key=)[^&\s'\"]+", r"\1[REDACTED]"),
    (r"(token=)[^&\s'\"]+", r"\1[REDACTED]"),
    (r"(Authorization:\s*(?:Bearer|Basic))\s+[^\s'\"]+", r"\1 [REDACTED]"),
]


def redact_secrets_from_text(text: str) -> str:
    """
    Redact secrets from plain text such as error messages and URLs.

    Args:
        text: String potentially containing secrets in URLs or headers

    Returns:
        String with secrets replaced with '[REDACTED]'
    """
    if not text:
        return text

    out = text
    for pattern, repl in _TEXT_REDACTIONS:
        out = re.sub(pattern, repl, out, flags=re.IGNORECASE)
    return out
